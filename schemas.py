"""
Project: Restaurant Back-Office (RBO)

Description:
Request schemas. Every request body is validated here before it reaches a
service. Field names on the wire are camelCase (``menuItemId``,
``deliveryFee``); the models expose snake_case attributes. Money fields
are rounded to cents on the way in.
"""

from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from errors import ValidationFailure
from lifecycle import OrderStatus, OrderType
from models import to_money


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _strip(value):
    if isinstance(value, str):
        value = value.strip()
    return value


Text = Annotated[str, BeforeValidator(_strip)]


def _money(value):
    # JSON clients send float sums like 0.30000000000000004
    if isinstance(value, (int, float, str, Decimal)) and not isinstance(value, bool):
        try:
            return to_money(value)
        except ArithmeticError:
            return value
    return value


Money = Annotated[Decimal, BeforeValidator(_money)]


class MenuItemCreate(_Schema):
    name: Text = Field(..., min_length=1, max_length=120)
    price: Money = Field(..., ge=0, max_digits=10, decimal_places=2)
    image_path: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=80)


class MenuItemUpdate(_Schema):
    name: Optional[Text] = Field(None, min_length=1, max_length=120)
    price: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_path: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=80)


class OrderItemIn(_Schema):
    menu_item_id: int
    quantity: int = Field(1, ge=1)
    # Omitted prices are copied from the catalog when the order is written
    price: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)


class OrderCreate(_Schema):
    customer: Text = Field(..., min_length=1, max_length=120)
    address: Text = Field(..., min_length=1, max_length=255)
    type: OrderType = OrderType.DELIVERY
    items: List[OrderItemIn] = Field(..., min_length=1)
    promotion_code: Optional[str] = Field(None, max_length=64)
    delivery_fee: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    user_id: Optional[int] = None


class OrderUpdate(_Schema):
    customer: Optional[Text] = Field(None, min_length=1, max_length=120)
    address: Optional[Text] = Field(None, min_length=1, max_length=255)
    status: Optional[OrderStatus] = None
    type: Optional[OrderType] = None
    promotion_code: Optional[str] = Field(None, max_length=64)
    delivery_fee: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    version: Optional[int] = None


class OrderItemsAdd(_Schema):
    items: List[OrderItemIn] = Field(..., min_length=1)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ())) or "body"
    return f"{location}: {err.get('msg', 'invalid value')}"


def parse(schema, data):
    """Validate ``data`` against ``schema``; raise ValidationFailure on the first problem."""
    if data is None:
        raise ValidationFailure("Request body must be JSON")
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailure(_first_error(exc)) from None


def parse_items(data) -> List[OrderItemIn]:
    # POST /orders/:id/items accepts a bare list or {"items": [...]}
    if isinstance(data, list):
        data = {"items": data}
    return parse(OrderItemsAdd, data).items


def provided_fields(model: BaseModel) -> dict:
    """Fields the client actually sent, keyed by attribute name."""
    return model.model_dump(exclude_unset=True)
