"""
Project: Restaurant Back-Office (RBO)

Description:
Shared fixtures: an application bound to an in-memory database and a
temporary upload folder, its HTTP test client, Socket.IO test clients
subscribed to both channels, and small helpers that create menu items and
orders through the REST API.
"""

import os
import sys

import pytest

# --- Make sure project root is importable ---
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app import create_app, socketio  # noqa: E402
from events import MENU_ITEMS_NAMESPACE, ORDERS_NAMESPACE  # noqa: E402
from models import db  # noqa: E402


@pytest.fixture
def app(tmp_path):
    app = create_app(testing=True, overrides={"UPLOAD_FOLDER": str(tmp_path / "menuIcons"), "LOG_LEVEL": "WARNING"})
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def menu_socket(app, client):
    sc = socketio.test_client(app, namespace=MENU_ITEMS_NAMESPACE, flask_test_client=client)
    assert sc.is_connected(MENU_ITEMS_NAMESPACE)
    sc.get_received(MENU_ITEMS_NAMESPACE)
    yield sc
    if sc.is_connected(MENU_ITEMS_NAMESPACE):
        sc.disconnect(namespace=MENU_ITEMS_NAMESPACE)


@pytest.fixture
def orders_socket(app, client):
    sc = socketio.test_client(app, namespace=ORDERS_NAMESPACE, flask_test_client=client)
    assert sc.is_connected(ORDERS_NAMESPACE)
    sc.get_received(ORDERS_NAMESPACE)
    yield sc
    if sc.is_connected(ORDERS_NAMESPACE):
        sc.disconnect(namespace=ORDERS_NAMESPACE)


def events_named(received, name):
    return [r["args"][0] for r in received if r["name"] == name]


@pytest.fixture
def make_menu_item(client):
    def _make(name="Classic Cheeseburger", price=9.99, category="Burgers", **extra):
        payload = {"name": name, "price": price, "category": category, **extra}
        r = client.post("/menu-items", json=payload)
        assert r.status_code == 201, r.get_json()
        return r.get_json()

    return _make


@pytest.fixture
def make_order(client, make_menu_item):
    def _make(items=None, type="Delivery", delivery_fee=3.99, customer="John Smith", **extra):
        if items is None:
            burger = make_menu_item()
            items = [{"menuItemId": burger["id"], "quantity": 2, "price": 9.99}]
        payload = {
            "customer": customer,
            "address": "123 Main St, New York, NY 10001",
            "type": type,
            "deliveryFee": delivery_fee,
            "items": items,
            **extra,
        }
        r = client.post("/orders", json=payload)
        assert r.status_code == 201, r.get_json()
        return r.get_json()

    return _make
