"""
Inventory summary projection tests
"""
from datetime import date

from casket_ledger.domain.models import ItemKind, Order, OrderStatus, SpecialOrder, StockItem
from casket_ledger.domain.summary import summarize

NOW = date(2024, 1, 10)


def test_summary_counts_by_kind_and_urgency():
    items = [
        StockItem(kind=ItemKind.CASKET, name="Monticello", on_hand=0, target_quantity=2),
        StockItem(kind=ItemKind.CASKET, name="Oak", on_hand=2, on_order=1, target_quantity=5),
        StockItem(kind=ItemKind.CASKET, name="Steel", on_hand=1, backordered_quantity=1, target_quantity=1),
        StockItem(kind=ItemKind.URN, name="Pewter", on_hand=4, target_quantity=2),
    ]
    orders = [
        Order(stock_item_id="x", deceased_name="A", order_date=NOW, expected_date=date(2024, 1, 8)),
        Order(stock_item_id="x", deceased_name="B", order_date=NOW, expected_date=date(2024, 1, 12)),
        Order(stock_item_id="x", deceased_name="C", order_date=NOW, status=OrderStatus.ARRIVED),
    ]
    specials = [
        SpecialOrder(item_name="Custom", family_name="Doe", service_date=date(2024, 1, 30), order_date=NOW),
    ]

    summary = summarize(items, orders, specials, supplier_count=2, now=NOW)

    caskets = summary.kinds[ItemKind.CASKET]
    assert caskets.item_count == 3
    assert caskets.total_on_hand == 3
    assert caskets.total_on_order == 1
    assert (caskets.out_of_stock, caskets.low_stock, caskets.backordered) == (1, 1, 1)
    assert summary.kinds[ItemKind.URN].total_on_hand == 4
    assert summary.suppliers == 2
    assert (summary.orders.total, summary.orders.active) == (3, 2)
    assert (summary.orders.late, summary.orders.urgent) == (1, 1)
    assert summary.special_orders.active == 1
    assert summary.special_orders.urgent == 0


def test_empty_summary_lists_every_kind():
    summary = summarize([], [], [], supplier_count=0, now=NOW)
    assert set(summary.kinds) == {ItemKind.CASKET, ItemKind.URN}
    assert summary.orders.total == 0
