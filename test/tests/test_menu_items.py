import io
import os

from sqlalchemy.exc import OperationalError

from conftest import events_named
from models import db
from events import MENU_ITEM_CREATED, MENU_ITEM_DELETED, MENU_ITEM_UPDATED, ORDER_UPDATED

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _upload(client, url, filename="cheese burger.png", method="post", **fields):
    data = {"image": (io.BytesIO(PNG_BYTES), filename), **fields}
    return getattr(client, method)(url, data=data, content_type="multipart/form-data")


def test_menu_list_and_create(client, make_menu_item):
    assert client.get("/menu-items").get_json() == []
    item = make_menu_item(description="Juicy beef patty")
    assert item["name"] == "Classic Cheeseburger"
    assert item["price"] == 9.99
    assert item["imagePath"] is None
    listed = client.get("/menu-items").get_json()
    assert [m["id"] for m in listed] == [item["id"]]


def test_filter_by_category(client, make_menu_item):
    make_menu_item(name="Cherry Pie", price=5.99, category="Desserts")
    make_menu_item(name="Beef Tacos", price=10.99, category="Mexican")
    desserts = client.get("/menu-items?category=Desserts").get_json()
    assert [m["name"] for m in desserts] == ["Cherry Pie"]
    assert client.get("/menu-items?category=desserts").get_json() == []


def test_popular_is_newest_first(client, make_menu_item):
    names = ["A", "B", "C", "D", "E", "F", "G"]
    for name in names:
        make_menu_item(name=name, price=1)
    popular = client.get("/menu-items/popular").get_json()
    assert [m["name"] for m in popular] == ["G", "F", "E", "D", "C"]
    two = client.get("/menu-items/popular?limit=2").get_json()
    assert [m["name"] for m in two] == ["G", "F"]


def test_get_missing_menu_item(client):
    r = client.get("/menu-items/77")
    assert r.status_code == 404
    assert r.get_json() == {"error": "not_found", "message": "Menu item 77 not found"}


def test_create_validation(client):
    assert client.post("/menu-items", json={"name": "", "price": 3}).status_code == 400
    assert client.post("/menu-items", json={"name": "Soup", "price": -1}).status_code == 400
    assert client.post("/menu-items", json={"name": "Soup"}).status_code == 400


def test_update_merges_fields(client, make_menu_item):
    item = make_menu_item(description="Original")
    r = client.put(f"/menu-items/{item['id']}", json={"price": 10.49, "category": None})
    body = r.get_json()
    assert r.status_code == 200
    assert body["price"] == 10.49
    assert body["name"] == "Classic Cheeseburger"
    assert body["description"] == "Original"
    assert body["category"] is None
    assert client.put("/menu-items/404", json={"price": 1}).status_code == 404


def test_delete_menu_item(client, make_menu_item):
    item = make_menu_item()
    assert client.delete(f"/menu-items/{item['id']}").status_code == 204
    assert client.get(f"/menu-items/{item['id']}").status_code == 404
    assert client.delete(f"/menu-items/{item['id']}").status_code == 404


def test_deleting_referenced_menu_item_keeps_order_history(client, orders_socket, make_menu_item, make_order):
    burger = make_menu_item()
    order = make_order(items=[{"menuItemId": burger["id"], "quantity": 2}])
    orders_socket.get_received("/orders")

    assert client.delete(f"/menu-items/{burger['id']}").status_code == 204
    after = client.get(f"/orders/{order['id']}").get_json()
    line = after["orderItems"][0]
    assert line["menuItemId"] is None
    assert line["menuItem"] is None
    assert line["name"] == "Classic Cheeseburger"
    assert after["total"] == 23.97

    updated = events_named(orders_socket.get_received("/orders"), ORDER_UPDATED)
    assert [o["id"] for o in updated] == [order["id"]]


def test_upload_creates_item_with_image(client, app):
    r = _upload(client, "/menu-items/upload", name="Cheeseburger", price="9.99", category="Burgers")
    body = r.get_json()
    assert r.status_code == 201
    assert body["price"] == 9.99
    assert body["imagePath"].startswith("/public/menuIcons/")
    assert body["imagePath"].endswith("-cheese-burger.png")

    stored = os.path.join(app.config["UPLOAD_FOLDER"], body["imagePath"].rsplit("/", 1)[1])
    assert os.path.isfile(stored)

    image = client.get(f"/menu-items/image/{body['id']}")
    assert image.status_code == 200
    assert image.mimetype == "image/png"
    assert image.data == PNG_BYTES

    static = client.get(body["imagePath"])
    assert static.status_code == 200
    static.close()


def test_upload_requires_file(client):
    r = client.post("/menu-items/upload", data={"name": "No Image", "price": "1"}, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.get_json()["message"] == "No image file uploaded"


def test_upload_update_replaces_image(client, make_menu_item):
    item = make_menu_item()
    r = _upload(client, f"/menu-items/{item['id']}/upload", filename="new icon.gif", method="put", price="", name="Burger")
    body = r.get_json()
    assert r.status_code == 200
    assert body["name"] == "Burger"
    assert body["price"] == 9.99
    assert body["imagePath"].endswith("-new-icon.gif")
    assert client.get(f"/menu-items/image/{item['id']}").mimetype == "image/gif"

    assert _upload(client, "/menu-items/999/upload", method="put").status_code == 404


def test_image_missing_cases(client, app, make_menu_item):
    plain = make_menu_item()
    assert client.get(f"/menu-items/image/{plain['id']}").status_code == 404
    assert client.get("/menu-items/image/999").status_code == 404

    ghost = make_menu_item(name="Ghost", imagePath="/public/menuIcons/not-there.png")
    assert client.get(f"/menu-items/image/{ghost['id']}").status_code == 404

    remote = make_menu_item(name="Remote", imagePath="https://cdn.example.com/pizza.png")
    assert client.get(f"/menu-items/image/{remote['id']}").status_code == 404


def test_menu_events_are_broadcast(client, menu_socket, make_menu_item):
    item = make_menu_item()
    client.put(f"/menu-items/{item['id']}", json={"name": "Double Cheeseburger"})
    client.delete(f"/menu-items/{item['id']}")

    received = menu_socket.get_received("/menu-items")
    assert [m["id"] for m in events_named(received, MENU_ITEM_CREATED)] == [item["id"]]
    assert [m["name"] for m in events_named(received, MENU_ITEM_UPDATED)] == ["Double Cheeseburger"]
    assert events_named(received, MENU_ITEM_DELETED) == [{"id": item["id"]}]


def test_failed_emit_does_not_fail_command(client, app, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("socket layer down")

    monkeypatch.setattr(app.extensions["rbo.notifier"].socketio, "emit", boom)
    r = client.post("/menu-items", json={"name": "Cherry Pie", "price": 5.99})
    assert r.status_code == 201
    assert client.get(f"/menu-items/{r.get_json()['id']}").status_code == 200


def test_float_prices_are_rounded_to_cents(client, make_menu_item):
    item = make_menu_item(name="Side Salad", price=0.1 + 0.2)
    assert item["price"] == 0.3
    r = client.put(f"/menu-items/{item['id']}", json={"price": 2.675})
    assert r.get_json()["price"] == 2.68
    assert client.post("/menu-items", json={"name": "Soup", "price": "cheap"}).status_code == 400


def test_replacing_an_upload_removes_the_old_file(client, app):
    created = _upload(client, "/menu-items/upload", filename="old icon.png", name="Cheeseburger", price="9.99").get_json()
    folder = app.config["UPLOAD_FOLDER"]
    old_file = created["imagePath"].rsplit("/", 1)[1]
    assert os.listdir(folder) == [old_file]

    updated = _upload(client, f"/menu-items/{created['id']}/upload", filename="new icon.png", method="put").get_json()
    new_file = updated["imagePath"].rsplit("/", 1)[1]
    assert new_file != old_file
    assert os.listdir(folder) == [new_file]


def test_failed_save_leaves_no_uploaded_file(client, app, monkeypatch):
    def failing_commit():
        db.session.flush()
        raise OperationalError("INSERT INTO menu_item", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", failing_commit)
    r = _upload(client, "/menu-items/upload", name="Cheeseburger", price="9.99")
    assert r.status_code == 500
    assert r.get_json()["error"] == "transaction_failed"
    assert os.listdir(app.config["UPLOAD_FOLDER"]) == []
