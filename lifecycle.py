"""
Project: Restaurant Back-Office (RBO)

Description:
Order status state machine. Orders move forward one stage at a time
along the pipeline Pending -> Preparing -> Ready -> Delivered, and may be
cancelled from any stage that is not terminal. Delivered and Cancelled
accept no further moves.
"""

import enum
from typing import List

from errors import InvalidStatusTransition, ValidationFailure


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY = "Ready"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderType(str, enum.Enum):
    DELIVERY = "Delivery"
    PICKUP = "Pickup"
    DINE_IN = "Dine-in"


PIPELINE = [OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.DELIVERED]
TERMINAL = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
INITIAL_STATUS = OrderStatus.PENDING


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationFailure(f"Unknown order status: {value!r}") from None


def is_terminal(status) -> bool:
    return parse_status(status) in TERMINAL


def next_statuses(status) -> List[OrderStatus]:
    """Statuses an order in ``status`` may legally move to, in display order."""
    current = parse_status(status)
    if current in TERMINAL:
        return []
    index = PIPELINE.index(current)
    allowed = []
    if index + 1 < len(PIPELINE):
        allowed.append(PIPELINE[index + 1])
    allowed.append(OrderStatus.CANCELLED)
    return allowed


def can_transition(current, target) -> bool:
    return parse_status(target) in next_statuses(current)


def validate_transition(current, target) -> OrderStatus:
    """Return the target status, or raise if the move is not allowed.

    Requesting the status the order already has is treated as a no-op and
    returned unchanged.
    """
    current = parse_status(current)
    target = parse_status(target)
    if target == current:
        return target
    allowed = next_statuses(current)
    if target not in allowed:
        raise InvalidStatusTransition(current.value, target.value, [s.value for s in allowed])
    return target
