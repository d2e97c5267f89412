"""
Casket Ledger — Pydantic schemas for stock orders and special orders
"""
from datetime import date

from pydantic import BaseModel, Field

from casket_ledger.domain.models import ItemKind, LedgerEntry, Order, OrderStatus, SpecialOrder
from casket_ledger.domain.triage import Triage, Urgency
from casket_ledger.schemas.inventory import HistoryResponse, ItemResponse


class OrderResponse(BaseModel):
    id: str
    stock_item_id: str
    quantity: int
    po_number: str | None
    deceased_name: str
    order_date: date
    expected_date: date | None
    status: OrderStatus
    is_return_replacement: bool
    is_backordered: bool
    actual_arrival_date: date | None
    arrived_marked_by: str | None
    notes: str | None
    version_id: int
    days_remaining: int | None = None
    urgency: Urgency | None = None

    @classmethod
    def from_order(cls, order: Order, triage: Triage | None = None) -> "OrderResponse":
        return cls(
            **order.model_dump(),
            days_remaining=triage.days_remaining if triage else None,
            urgency=triage.urgency if triage else None,
        )


class LedgerResponse(BaseModel):
    """Item, order and audit records written by one ledger operation."""
    item: ItemResponse
    order: OrderResponse | None = None
    history: list[HistoryResponse]

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerResponse":
        return cls(
            item=ItemResponse.from_item(entry.item),
            order=OrderResponse.from_order(entry.order) if entry.order else None,
            history=[HistoryResponse.model_validate(r) for r in entry.records],
        )


class ArriveRequest(BaseModel):
    actor: str | None = Field(None, max_length=255)
    arrival_date: date | None = None


class CancelRequest(BaseModel):
    actor: str | None = Field(None, max_length=255)
    reason: str | None = None


class StatusUpdateRequest(BaseModel):
    """expected_date is applied only when present in the body; null means TBD."""
    status: OrderStatus
    expected_date: date | None = None


# ─── Special orders ───────────────────────────────────────────────────────────

class SpecialOrderCreateRequest(BaseModel):
    kind: ItemKind = ItemKind.CASKET
    item_name: str | None = Field(None, max_length=255)
    model: str | None = Field(None, max_length=255)
    supplier: str | None = Field(None, max_length=255)
    family_name: str | None = Field(None, max_length=255)
    service_date: date | None = None
    expected_delivery: date | None = None
    notes: str | None = Field(None, max_length=1000)
    supplier_order_number: str | None = Field(None, max_length=64)
    special_description: str | None = None


class SpecialOrderStatusRequest(BaseModel):
    status: OrderStatus
    actor: str | None = Field(None, max_length=255)
    arrival_date: date | None = None


class SpecialOrderResponse(BaseModel):
    id: str
    kind: ItemKind
    item_name: str
    model: str | None
    supplier: str | None
    family_name: str
    service_date: date
    order_date: date
    expected_delivery: date | None
    status: OrderStatus
    notes: str | None
    supplier_order_number: str | None
    special_description: str | None
    actual_arrival_date: date | None
    arrived_marked_by: str | None
    version_id: int
    days_remaining: int | None = None
    urgency: Urgency | None = None

    @classmethod
    def from_order(cls, order: SpecialOrder, triage: Triage | None = None) -> "SpecialOrderResponse":
        return cls(
            **order.model_dump(),
            days_remaining=triage.days_remaining if triage else None,
            urgency=triage.urgency if triage else None,
        )
