"""
Project: Restaurant Back-Office (RBO)

Description:
Dashboard aggregates. Pure functions over a list of serialized orders
(the dicts produced by ``Order.to_dict`` or received on the orders
channel). Everything is recomputed from the full list on each call;
nothing is cached.
"""

from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from lifecycle import OrderStatus, PIPELINE

TOP_N = 5
UNKNOWN_TYPE = "Unknown"


def _parse_time(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _total(order: dict) -> Decimal:
    value = order.get("total")
    return Decimal("0") if value is None else Decimal(str(value))


def _round(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def percent_change(current, previous) -> float:
    """Relative change in percent; a zero baseline counts as a full 100% increase."""
    if previous == 0:
        return 100.0
    return float((Decimal(str(current)) - Decimal(str(previous))) / Decimal(str(previous)) * 100)


def _previous_month(year: int, month: int):
    return (year - 1, 12) if month == 1 else (year, month - 1)


def orders_in_month(orders: List[dict], year: int, month: int) -> List[dict]:
    result = []
    for order in orders:
        created = _parse_time(order.get("createdAt"))
        if created is not None and created.year == year and created.month == month:
            result.append(order)
    return result


def financial_summary(orders: List[dict], now: Optional[datetime] = None) -> List[Dict]:
    """Revenue, average order value and order count: this month vs. last month."""
    now = _parse_time(now) if now is not None else datetime.now(timezone.utc).replace(tzinfo=None)
    current = orders_in_month(orders, now.year, now.month)
    previous = orders_in_month(orders, *_previous_month(now.year, now.month))

    current_revenue = sum((_total(o) for o in current), Decimal("0"))
    previous_revenue = sum((_total(o) for o in previous), Decimal("0"))
    current_aov = current_revenue / len(current) if current else Decimal("0")
    previous_aov = previous_revenue / len(previous) if previous else Decimal("0")

    return [
        {
            "label": "Total Revenue",
            "value": _round(current_revenue),
            "previousValue": _round(previous_revenue),
            "percentChange": round(percent_change(current_revenue, previous_revenue), 1),
        },
        {
            "label": "Average Order",
            "value": _round(current_aov),
            "previousValue": _round(previous_aov),
            "percentChange": round(percent_change(current_aov, previous_aov), 1),
        },
        {
            "label": "Order Count",
            "value": len(current),
            "previousValue": len(previous),
            "percentChange": round(percent_change(len(current), len(previous)), 1),
        },
    ]


def type_distribution(orders: List[dict]) -> List[Dict]:
    if not orders:
        return []
    counts = Counter(o.get("type") or UNKNOWN_TYPE for o in orders)
    total = len(orders)
    rows = [
        {"type": order_type, "count": count, "percentage": round(count / total * 100, 1)}
        for order_type, count in counts.items()
    ]
    rows.sort(key=lambda row: row["count"], reverse=True)
    return rows


def status_breakdown(orders: List[dict]) -> Dict[str, int]:
    counts = Counter(o.get("status") for o in orders)
    statuses = [s.value for s in PIPELINE] + [OrderStatus.CANCELLED.value]
    return {status: counts.get(status, 0) for status in statuses}


def top_orders(orders: List[dict], limit: int = TOP_N) -> List[dict]:
    return sorted(orders, key=_total, reverse=True)[:limit]


def recent_orders(orders: List[dict], limit: int = TOP_N) -> List[dict]:
    return sorted(orders, key=lambda o: _parse_time(o.get("createdAt")) or datetime.min, reverse=True)[:limit]


def summarize(orders: List[dict], now: Optional[datetime] = None) -> Dict:
    return {
        "financial": financial_summary(orders, now=now),
        "orderTypes": type_distribution(orders),
        "statuses": status_breakdown(orders),
        "topOrders": top_orders(orders),
        "recentOrders": recent_orders(orders),
    }
