"""
Project: Restaurant Back-Office (RBO)

Description:
Change notification bus. Each entity type has its own Socket.IO namespace;
every created/updated/deleted entity is broadcast to all clients connected
to that namespace. Delivery is fire-and-forget: nothing is queued for
clients that are offline, and a failed emit never fails the command that
triggered it.
"""

from flask import request
from flask_socketio import Namespace
from loguru import logger

MENU_ITEMS_NAMESPACE = "/menu-items"
ORDERS_NAMESPACE = "/orders"

MENU_ITEM_CREATED = "menuItem:created"
MENU_ITEM_UPDATED = "menuItem:updated"
MENU_ITEM_DELETED = "menuItem:deleted"
ORDER_CREATED = "order:created"
ORDER_UPDATED = "order:updated"
ORDER_DELETED = "order:deleted"


class EntityNamespace(Namespace):
    """Subscription channel for one entity type. Clients only listen."""

    def on_connect(self, auth=None):
        logger.info(f"Client {request.sid} connected to {self.namespace}")

    def on_disconnect(self, reason=None):
        logger.info(f"Client {request.sid} disconnected from {self.namespace}")


class ChangeNotifier:
    def __init__(self, socketio):
        self.socketio = socketio

    def publish(self, namespace: str, event: str, payload: dict) -> bool:
        try:
            self.socketio.emit(event, payload, namespace=namespace)
        except Exception as e:
            logger.error(f"Failed to emit {event} on {namespace}: {e}")
            return False
        logger.debug(f"Emitted {event} for id {payload.get('id')} on {namespace}")
        return True

    # ----- menu items -----
    def menu_item_created(self, menu_item: dict):
        return self.publish(MENU_ITEMS_NAMESPACE, MENU_ITEM_CREATED, menu_item)

    def menu_item_updated(self, menu_item: dict):
        return self.publish(MENU_ITEMS_NAMESPACE, MENU_ITEM_UPDATED, menu_item)

    def menu_item_deleted(self, menu_item_id: int):
        return self.publish(MENU_ITEMS_NAMESPACE, MENU_ITEM_DELETED, {"id": menu_item_id})

    # ----- orders -----
    def order_created(self, order: dict):
        return self.publish(ORDERS_NAMESPACE, ORDER_CREATED, order)

    def order_updated(self, order: dict):
        return self.publish(ORDERS_NAMESPACE, ORDER_UPDATED, order)

    def order_deleted(self, order_id: int):
        return self.publish(ORDERS_NAMESPACE, ORDER_DELETED, {"id": order_id})


def register_namespaces(socketio):
    socketio.on_namespace(EntityNamespace(MENU_ITEMS_NAMESPACE))
    socketio.on_namespace(EntityNamespace(ORDERS_NAMESPACE))
