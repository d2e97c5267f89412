"""
Inventory summary

A read-only projection built from current rows on every request. It is never
stored, so it cannot drift from the ledger.
"""
from datetime import date, datetime
from typing import Iterable

from pydantic import BaseModel

from casket_ledger.domain.models import ItemKind, Order, SpecialOrder, StockItem, StockStatus
from casket_ledger.domain.triage import (
    ORDER_URGENT_DAYS,
    SPECIAL_ORDER_URGENT_DAYS,
    Urgency,
    triage_order,
    triage_special_order,
)


class KindSummary(BaseModel):
    item_count: int = 0
    total_on_hand: int = 0
    total_on_order: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    backordered: int = 0


class OrderSummary(BaseModel):
    total: int = 0
    active: int = 0
    late: int = 0
    urgent: int = 0


class InventorySummary(BaseModel):
    kinds: dict[ItemKind, KindSummary]
    suppliers: int
    orders: OrderSummary
    special_orders: OrderSummary


def _summarize_kind(items: list[StockItem]) -> KindSummary:
    statuses = [item.status for item in items]
    return KindSummary(
        item_count=len(items),
        total_on_hand=sum(item.on_hand for item in items),
        total_on_order=sum(item.on_order for item in items),
        low_stock=statuses.count(StockStatus.LOW_STOCK),
        out_of_stock=statuses.count(StockStatus.OUT_OF_STOCK),
        backordered=statuses.count(StockStatus.BACKORDERED),
    )


def _summarize_orders(triaged: list) -> OrderSummary:
    urgencies = [t.urgency for t in triaged if t is not None]
    return OrderSummary(
        total=len(triaged),
        active=len(urgencies),
        late=urgencies.count(Urgency.LATE),
        urgent=urgencies.count(Urgency.URGENT),
    )


def summarize(
    items: Iterable[StockItem],
    orders: Iterable[Order],
    special_orders: Iterable[SpecialOrder],
    supplier_count: int,
    now: date | datetime,
    order_urgent_days: int = ORDER_URGENT_DAYS,
    special_order_urgent_days: int = SPECIAL_ORDER_URGENT_DAYS,
) -> InventorySummary:
    items = list(items)
    return InventorySummary(
        kinds={
            kind: _summarize_kind([item for item in items if item.kind == kind])
            for kind in ItemKind
        },
        suppliers=supplier_count,
        orders=_summarize_orders(
            [triage_order(order, now, order_urgent_days) for order in orders]
        ),
        special_orders=_summarize_orders(
            [triage_special_order(order, now, special_order_urgent_days) for order in special_orders]
        ),
    )
