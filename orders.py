"""
Project: Restaurant Back-Office (RBO)

Description:
Order aggregate service. An order owns its line items; every command that
touches the items also rewrites the order total inside the same
transaction, so a reader never sees one without the other. Status changes
go through the lifecycle rules in ``lifecycle``. Committed changes are
broadcast on the orders channel.
"""

from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from errors import ConcurrencyConflict, NotFound
from lifecycle import INITIAL_STATUS, validate_transition
from models import MenuItem, Order, OrderItem, atomic
from schemas import OrderCreate, OrderItemIn, OrderUpdate, provided_fields

_WITH_ITEMS = selectinload(Order.items).selectinload(OrderItem.menu_item)

# Columns that may be cleared by sending null
_NULLABLE = ("promotion_code", "delivery_fee")


class OrderService:
    def __init__(self, session, notifier):
        self.session = session
        self.notifier = notifier

    # ----- queries -----
    def get(self, order_id: int) -> Order:
        order = self.session.get(Order, order_id, options=[_WITH_ITEMS])
        if order is None:
            raise NotFound("Order", order_id)
        return order

    def list(self, status: Optional[str] = None) -> List[Order]:
        query = select(Order).options(_WITH_ITEMS).order_by(Order.id)
        if status:
            query = query.where(Order.status == status)
        return list(self.session.execute(query).scalars().all())

    def list_by_user(self, user_id: int) -> List[Order]:
        query = (
            select(Order)
            .options(_WITH_ITEMS)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(self.session.execute(query).scalars().all())

    # ----- commands -----
    def create(self, data: OrderCreate) -> Order:
        lines = self._build_lines(data.items)
        order = Order(
            customer=data.customer,
            address=data.address,
            type=data.type.value,
            status=INITIAL_STATUS.value,
            delivery_fee=data.delivery_fee,
            promotion_code=data.promotion_code,
            user_id=data.user_id,
        )
        order.items.extend(lines)
        order.recalculate_total()
        with atomic(self.session):
            self.session.add(order)
        logger.info(f"Order {order.id} created for {order.customer}: {len(lines)} items, total {order.total}")
        self.notifier.order_created(order.to_dict())
        return order

    def update(self, order_id: int, data: OrderUpdate) -> Order:
        order = self.get(order_id)
        fields = provided_fields(data)

        expected_version = fields.pop("version", None)
        if expected_version is not None and expected_version != order.version:
            raise ConcurrencyConflict(
                f"Order {order_id} is at version {order.version}, request was based on {expected_version}"
            )

        previous_status = order.status
        with atomic(self.session):
            target = fields.pop("status", None)
            if target is not None:
                order.status = validate_transition(order.status, target).value
            for key, value in fields.items():
                if value is None and key not in _NULLABLE:
                    continue
                setattr(order, key, value.value if key == "type" else value)
            if "type" in fields or "delivery_fee" in fields:
                order.recalculate_total()

        if order.status != previous_status:
            logger.info(f"Order {order_id} moved {previous_status} -> {order.status}")
        self.notifier.order_updated(order.to_dict())
        return order

    def add_items(self, order_id: int, items: Iterable[OrderItemIn]) -> Order:
        order = self.get(order_id)
        lines = self._build_lines(items)
        with atomic(self.session):
            order.items.extend(lines)
            order.recalculate_total()
        logger.info(f"Added {len(lines)} items to order {order_id}, total now {order.total}")
        self.notifier.order_updated(order.to_dict())
        return order

    def remove_item(self, order_id: int, item_id: int) -> Order:
        line = self.session.get(OrderItem, item_id)
        if line is None or line.order_id != order_id:
            raise NotFound("Order item", item_id)
        order = line.order
        with atomic(self.session):
            # delete-orphan cascade removes the row
            order.items.remove(line)
            order.recalculate_total()
        logger.info(f"Removed item {item_id} from order {order_id}, total now {order.total}")
        self.notifier.order_updated(order.to_dict())
        return order

    def delete(self, order_id: int) -> None:
        order = self.get(order_id)
        with atomic(self.session):
            self.session.delete(order)
        logger.info(f"Order {order_id} deleted")
        self.notifier.order_deleted(order_id)

    # ----- helpers -----
    def _build_lines(self, items: Iterable[OrderItemIn]) -> List[OrderItem]:
        lines = []
        # Lines are not attached to an order yet
        with self.session.no_autoflush:
            for item in items:
                menu_item = self.session.get(MenuItem, item.menu_item_id)
                if menu_item is None:
                    raise NotFound("Menu item", item.menu_item_id)
                # Price is frozen at order time; later menu price changes do not reach old orders
                price = item.price if item.price is not None else menu_item.price
                lines.append(
                    OrderItem(menu_item=menu_item, name=menu_item.name, price=price, quantity=item.quantity)
                )
        return lines
