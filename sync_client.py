"""
Project: Restaurant Back-Office (RBO)

Description:
Client side of the real-time protocol. ``LiveSync`` keeps local copies of
the menu and the order list, applies created/updated/deleted events from
the two Socket.IO namespaces and re-fetches everything over REST whenever
the connection is (re)established, since the server keeps no backlog.
``Cart`` builds order payloads the way the order screen does.
"""

from decimal import Decimal
from typing import Callable, Dict, List, Optional

import requests
import socketio
from loguru import logger

import dashboard
from events import (
    MENU_ITEMS_NAMESPACE,
    MENU_ITEM_CREATED,
    MENU_ITEM_DELETED,
    MENU_ITEM_UPDATED,
    ORDERS_NAMESPACE,
    ORDER_CREATED,
    ORDER_DELETED,
    ORDER_UPDATED,
)
from lifecycle import OrderType

RECONNECT_DELAY = 1
RECONNECT_DELAY_MAX = 5
REQUEST_TIMEOUT = 20


class EntityCache:
    """Entities keyed by id, in arrival order."""

    def __init__(self):
        self._items: Dict[int, dict] = {}

    def __len__(self):
        return len(self._items)

    def __contains__(self, entity_id):
        return entity_id in self._items

    def get(self, entity_id) -> Optional[dict]:
        return self._items.get(entity_id)

    def all(self) -> List[dict]:
        return list(self._items.values())

    def replace_all(self, entities: List[dict]):
        self._items = {e["id"]: e for e in entities}

    def apply_created(self, entity: dict) -> bool:
        # Our own commands come back as echoes; keep the first copy
        if entity["id"] in self._items:
            return False
        self._items[entity["id"]] = entity
        return True

    def apply_updated(self, entity: dict) -> bool:
        if entity["id"] not in self._items:
            return False
        self._items[entity["id"]] = entity
        return True

    def apply_deleted(self, payload: dict) -> bool:
        return self._items.pop(payload["id"], None) is not None


class CartError(ValueError):
    pass


class Cart:
    def __init__(self, delivery_fee=Decimal("10.00")):
        self.lines: Dict[int, dict] = {}
        self.customer = ""
        self.address = ""
        self.order_type = OrderType.DELIVERY.value
        self.promotion_code = None
        self.delivery_fee = Decimal(str(delivery_fee))

    def add(self, menu_item: dict, quantity: int = 1):
        line = self.lines.get(menu_item["id"])
        if line:
            line["quantity"] += quantity
        else:
            self.lines[menu_item["id"]] = {"menuItem": menu_item, "quantity": quantity}

    def remove(self, menu_item_id: int):
        self.lines.pop(menu_item_id, None)

    def set_quantity(self, menu_item_id: int, quantity: int):
        if quantity <= 0:
            self.remove(menu_item_id)
        elif menu_item_id in self.lines:
            self.lines[menu_item_id]["quantity"] = quantity

    def clear(self):
        self.lines.clear()

    def subtotal(self) -> Decimal:
        return sum(
            (Decimal(str(line["menuItem"]["price"])) * line["quantity"] for line in self.lines.values()),
            Decimal("0"),
        ).quantize(Decimal("0.01"))

    def total(self) -> Decimal:
        fee = self.delivery_fee if self.order_type == OrderType.DELIVERY.value else Decimal("0")
        return (self.subtotal() + fee).quantize(Decimal("0.01"))

    def to_order_payload(self) -> dict:
        if not self.lines:
            raise CartError("Cannot submit an empty order")
        if not self.customer.strip() or not self.address.strip():
            raise CartError("Customer name and address are required")
        return {
            "customer": self.customer,
            "address": self.address,
            "type": self.order_type,
            "promotionCode": self.promotion_code,
            "deliveryFee": float(self.delivery_fee),
            "items": [
                {
                    "menuItemId": menu_item_id,
                    "quantity": line["quantity"],
                    "price": line["menuItem"]["price"],
                }
                for menu_item_id, line in self.lines.items()
            ],
        }


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_response(cls, response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        return cls(response.status_code, message or f"API request failed with status {response.status_code}")


class RestaurantApi:
    """Thin REST wrapper; raises ApiError for any non-2xx response."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()

    def _request(self, method: str, endpoint: str, **kwargs):
        response = self.http.request(method, self.base_url + endpoint, timeout=REQUEST_TIMEOUT, **kwargs)
        if not response.ok:
            raise ApiError.from_response(response)
        if response.status_code == 204:
            return None
        return response.json()

    def menu_items(self, category: Optional[str] = None):
        return self._request("GET", "/menu-items", params={"category": category} if category else None)

    def popular_menu_items(self, limit: int = 5):
        return self._request("GET", "/menu-items/popular", params={"limit": limit})

    def create_menu_item(self, data: dict):
        return self._request("POST", "/menu-items", json=data)

    def update_menu_item(self, item_id: int, data: dict):
        return self._request("PUT", f"/menu-items/{item_id}", json=data)

    def delete_menu_item(self, item_id: int):
        return self._request("DELETE", f"/menu-items/{item_id}")

    def orders(self, status: Optional[str] = None):
        return self._request("GET", "/orders", params={"status": status} if status else None)

    def order(self, order_id: int):
        return self._request("GET", f"/orders/{order_id}")

    def create_order(self, data: dict):
        return self._request("POST", "/orders", json=data)

    def update_order(self, order_id: int, data: dict):
        return self._request("PUT", f"/orders/{order_id}", json=data)

    def delete_order(self, order_id: int):
        return self._request("DELETE", f"/orders/{order_id}")

    def add_order_items(self, order_id: int, items: List[dict]):
        return self._request("POST", f"/orders/{order_id}/items", json=items)

    def remove_order_item(self, order_id: int, item_id: int):
        return self._request("DELETE", f"/orders/{order_id}/items/{item_id}")


class LiveSync:
    def __init__(self, base_url: str, api: Optional[RestaurantApi] = None, on_change: Optional[Callable] = None):
        self.base_url = base_url
        self.api = api or RestaurantApi(base_url)
        self.menu_items = EntityCache()
        self.orders = EntityCache()
        self.on_change = on_change
        # reconnection_attempts=0 retries forever
        self.sio = socketio.Client(
            reconnection=True,
            reconnection_attempts=0,
            reconnection_delay=RECONNECT_DELAY,
            reconnection_delay_max=RECONNECT_DELAY_MAX,
        )
        self._register_handlers()

    def _register_handlers(self):
        handlers = {
            MENU_ITEMS_NAMESPACE: {
                MENU_ITEM_CREATED: self.menu_items.apply_created,
                MENU_ITEM_UPDATED: self.menu_items.apply_updated,
                MENU_ITEM_DELETED: self.menu_items.apply_deleted,
            },
            ORDERS_NAMESPACE: {
                ORDER_CREATED: self.orders.apply_created,
                ORDER_UPDATED: self.orders.apply_updated,
                ORDER_DELETED: self.orders.apply_deleted,
            },
        }
        for namespace, events in handlers.items():
            self.sio.on("connect", self._make_connect_handler(namespace), namespace=namespace)
            for event, apply in events.items():
                self.sio.on(event, self._make_event_handler(event, apply), namespace=namespace)

    def _make_connect_handler(self, namespace: str):
        def on_connect():
            logger.info(f"Connected to {namespace}, resynchronizing")
            self.resync(namespace)

        return on_connect

    def _make_event_handler(self, event: str, apply: Callable):
        def on_event(payload):
            self.handle(event, apply, payload)

        return on_event

    def handle(self, event: str, apply: Callable, payload: dict) -> bool:
        changed = apply(payload)
        logger.debug(f"{event} for id {payload.get('id')} ({'applied' if changed else 'ignored'})")
        if changed and self.on_change:
            self.on_change(event, payload)
        return changed

    def resync(self, namespace: Optional[str] = None):
        if namespace in (None, MENU_ITEMS_NAMESPACE):
            self.menu_items.replace_all(self.api.menu_items())
        if namespace in (None, ORDERS_NAMESPACE):
            self.orders.replace_all(self.api.orders())

    def connect(self):
        self.sio.connect(
            self.base_url,
            namespaces=[MENU_ITEMS_NAMESPACE, ORDERS_NAMESPACE],
            transports=["websocket", "polling"],
        )

    def disconnect(self):
        self.sio.disconnect()

    def dashboard(self) -> dict:
        return dashboard.summarize(self.orders.all())
