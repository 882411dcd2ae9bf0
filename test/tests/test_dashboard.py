from datetime import datetime

import dashboard

NOW = datetime(2025, 3, 15, 12, 0)


def _order(oid, total, created, type="Delivery", status="Pending"):
    return {"id": oid, "total": total, "createdAt": created, "type": type, "status": status}


ORDERS = [
    _order(1, 20.0, "2025-03-01T10:00:00", type="Delivery"),
    _order(2, 40.0, "2025-03-10T09:30:00", type="Pickup", status="Ready"),
    _order(3, 10.0, "2025-02-20T18:00:00", type="Delivery", status="Delivered"),
    _order(4, 5.5, "2025-01-05T08:00:00", type="Dine-in", status="Cancelled"),
    _order(5, 99.99, "2025-03-12T20:15:00+00:00", type=None),
    _order(6, 15.0, "2025-03-14T11:00:00Z", type="Delivery", status="Preparing"),
]


def test_percent_change_zero_baseline_is_100():
    assert dashboard.percent_change(50, 0) == 100.0
    assert dashboard.percent_change(0, 0) == 100.0
    assert dashboard.percent_change(150, 100) == 50.0
    assert dashboard.percent_change(50, 100) == -50.0


def test_financial_summary_month_over_month():
    revenue, average, count = dashboard.financial_summary(ORDERS, now=NOW)
    assert revenue == {"label": "Total Revenue", "value": 174.99, "previousValue": 10.0, "percentChange": 1649.9}
    assert average["value"] == 43.75
    assert average["previousValue"] == 10.0
    assert count == {"label": "Order Count", "value": 4, "previousValue": 1, "percentChange": 300.0}


def test_financial_summary_wraps_january_to_december():
    orders = [_order(1, 30, "2024-12-31T23:00:00"), _order(2, 60, "2025-01-02T00:00:00")]
    revenue, _, count = dashboard.financial_summary(orders, now=datetime(2025, 1, 20))
    assert revenue["value"] == 60.0 and revenue["previousValue"] == 30.0
    assert revenue["percentChange"] == 100.0
    assert count["percentChange"] == 0.0


def test_empty_month_has_zero_average():
    _, average, count = dashboard.financial_summary([], now=NOW)
    assert average["value"] == 0.0
    assert count["value"] == 0


def test_type_distribution_sorted_by_count():
    rows = dashboard.type_distribution(ORDERS)
    assert rows[0] == {"type": "Delivery", "count": 3, "percentage": 50.0}
    assert {r["type"] for r in rows} == {"Delivery", "Pickup", "Dine-in", "Unknown"}
    assert sum(r["count"] for r in rows) == len(ORDERS)
    assert dashboard.type_distribution([]) == []


def test_top_and_recent_orders():
    assert [o["id"] for o in dashboard.top_orders(ORDERS)] == [5, 2, 1, 6, 3]
    assert [o["id"] for o in dashboard.recent_orders(ORDERS)] == [6, 5, 2, 1, 3]
    assert [o["id"] for o in dashboard.top_orders(ORDERS, limit=2)] == [5, 2]


def test_status_breakdown_in_pipeline_order():
    breakdown = dashboard.status_breakdown(ORDERS)
    assert list(breakdown) == ["Pending", "Preparing", "Ready", "Delivered", "Cancelled"]
    assert breakdown == {"Pending": 2, "Preparing": 1, "Ready": 1, "Delivered": 1, "Cancelled": 1}


def test_dashboard_endpoint(client, make_order):
    make_order()
    make_order(type="Pickup")
    body = client.get("/dashboard").get_json()
    assert set(body) == {"financial", "orderTypes", "statuses", "topOrders", "recentOrders"}
    assert body["financial"][2]["value"] == 2
    assert body["statuses"]["Pending"] == 2
    assert [o["total"] for o in body["topOrders"]] == [23.97, 19.98]
