"""
Project: Restaurant Back-Office (RBO)

Description:
REST routes for orders, their line items and status changes, plus the
dashboard aggregate endpoint.
"""

from flask import Blueprint, current_app, jsonify, request

import dashboard
from lifecycle import next_statuses
from models import db
from orders import OrderService
from schemas import OrderCreate, OrderUpdate, parse, parse_items

bp = Blueprint("orders_api", __name__)


def _orders() -> OrderService:
    return OrderService(db.session, current_app.extensions["rbo.notifier"])


# ----- reads -----
@bp.get("/orders")
def list_orders():
    orders = _orders().list(status=request.args.get("status") or None)
    return jsonify([o.to_dict() for o in orders])


@bp.get("/orders/<int:order_id>")
def get_order(order_id):
    return jsonify(_orders().get(order_id).to_dict())


@bp.get("/orders/user/<int:user_id>")
def list_user_orders(user_id):
    return jsonify([o.to_dict() for o in _orders().list_by_user(user_id)])


@bp.get("/orders/<int:order_id>/next-statuses")
def order_next_statuses(order_id):
    order = _orders().get(order_id)
    return jsonify({"status": order.status, "nextStatuses": [s.value for s in next_statuses(order.status)]})


# ----- writes -----
@bp.post("/orders")
def create_order():
    data = parse(OrderCreate, request.get_json(silent=True))
    return jsonify(_orders().create(data).to_dict()), 201


@bp.put("/orders/<int:order_id>")
def update_order(order_id):
    data = parse(OrderUpdate, request.get_json(silent=True))
    return jsonify(_orders().update(order_id, data).to_dict())


@bp.delete("/orders/<int:order_id>")
def delete_order(order_id):
    _orders().delete(order_id)
    return "", 204


@bp.post("/orders/<int:order_id>/items")
def add_order_items(order_id):
    items = parse_items(request.get_json(silent=True))
    return jsonify(_orders().add_items(order_id, items).to_dict())


@bp.delete("/orders/<int:order_id>/items/<int:item_id>")
def remove_order_item(order_id, item_id):
    return jsonify(_orders().remove_item(order_id, item_id).to_dict())


# ----- dashboard -----
@bp.get("/dashboard")
def dashboard_summary():
    orders = [o.to_dict() for o in _orders().list()]
    return jsonify(dashboard.summarize(orders))
