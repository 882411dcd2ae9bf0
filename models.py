"""
Project: Restaurant Back-Office (RBO)

Description:
Database models for menu items, orders and their line items. Prices and
totals are stored as fixed two-decimal numerics and exposed to JSON as
floats with camelCase keys.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from flask_sqlalchemy import SQLAlchemy
from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from errors import ConcurrencyConflict, TransactionFailure
from lifecycle import INITIAL_STATUS, OrderType, next_statuses

db = SQLAlchemy()

CENT = Decimal("0.01")


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _money_json(value):
    return None if value is None else float(to_money(value))


def _iso(value):
    return value.isoformat() if value else None


@contextmanager
def atomic(session):
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield session
        session.commit()
    except StaleDataError as e:
        session.rollback()
        raise ConcurrencyConflict("Order was modified by another request") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise TransactionFailure("The change could not be saved") from e
    except Exception:
        session.rollback()
        raise


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE clauses unless asked per connection
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class MenuItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_path = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(80), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    order_items = db.relationship("OrderItem", back_populates="menu_item", passive_deletes=True, lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": _money_json(self.price),
            "imagePath": self.image_path,
            "description": self.description,
            "category": self.category,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Order(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    customer = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=INITIAL_STATUS.value, index=True)
    type = db.Column(db.String(20), nullable=False, default=OrderType.DELIVERY.value)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    delivery_fee = db.Column(db.Numeric(10, 2), nullable=True)
    promotion_code = db.Column(db.String(64), nullable=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    time = db.Column(db.DateTime, default=utcnow, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )

    __mapper_args__ = {"version_id_col": version}

    def subtotal(self) -> Decimal:
        return sum((item.line_total() for item in self.items), Decimal("0.00"))

    def applicable_delivery_fee(self) -> Decimal:
        # The fee only counts for delivery orders; pickup and dine-in keep it stored but unused
        if self.type != OrderType.DELIVERY.value:
            return Decimal("0.00")
        return to_money(self.delivery_fee)

    def compute_total(self) -> Decimal:
        return to_money(self.subtotal() + self.applicable_delivery_fee())

    def recalculate_total(self) -> Decimal:
        self.total = self.compute_total()
        return self.total

    def to_dict(self):
        return {
            "id": self.id,
            "customer": self.customer,
            "address": self.address,
            "status": self.status,
            "type": self.type,
            "total": _money_json(self.total),
            "deliveryFee": _money_json(self.delivery_fee),
            "promotionCode": self.promotion_code,
            "userId": self.user_id,
            "time": _iso(self.time),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "version": self.version,
            "nextStatuses": [s.value for s in next_statuses(self.status)],
            "orderItems": [i.to_dict() for i in self.items],
        }


class OrderItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = db.Column(db.Integer, db.ForeignKey("menu_item.id", ondelete="SET NULL"), nullable=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    order = db.relationship("Order", back_populates="items")
    menu_item = db.relationship("MenuItem", back_populates="order_items")

    def line_total(self) -> Decimal:
        return to_money(self.price) * self.quantity

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "price": _money_json(self.price),
            "quantity": self.quantity,
            "menuItem": self.menu_item.to_dict() if self.menu_item else None,
        }
