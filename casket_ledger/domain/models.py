"""
Casket Ledger — Domain models

Immutable snapshots of the ledger's entities. Ledger operations never mutate
these in place; they return new copies via `model_copy(update=...)`.
"""
import uuid
from datetime import date, datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return str(uuid.uuid4())


class ItemKind(str, PyEnum):
    CASKET = "CASKET"
    URN = "URN"


class StockStatus(str, PyEnum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    BACKORDERED = "BACKORDERED"
    LOW_STOCK = "LOW_STOCK"
    WELL_STOCKED = "WELL_STOCKED"


class OrderStatus(str, PyEnum):
    PENDING = "PENDING"
    SHIPPED = "SHIPPED"
    DELAYED = "DELAYED"
    ARRIVED = "ARRIVED"
    CANCELLED = "CANCELLED"


class AdjustmentType(str, PyEnum):
    ADD = "add"
    REMOVE = "remove"
    CORRECTION = "correction"


class ReturnDisposition(str, PyEnum):
    RESTOCK = "RESTOCK"
    DISPOSE = "DISPOSE"


class HistoryAction(str, PyEnum):
    CREATED = "CREATED"
    ORDER_PLACED = "ORDER_PLACED"
    BACKORDER_PLACED = "BACKORDER_PLACED"
    REPLACEMENT_ORDERED = "REPLACEMENT_ORDERED"
    ARRIVED = "ARRIVED"
    RETURN = "RETURN"
    ADJUSTMENT = "ADJUSTMENT"
    BACKORDER_RECORDED = "BACKORDER_RECORDED"
    ORDER_CANCELLED = "ORDER_CANCELLED"


TERMINAL_STATUSES = frozenset({OrderStatus.ARRIVED, OrderStatus.CANCELLED})


class _Snapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class StockItem(_Snapshot):
    """A casket or urn type and its quantity buckets."""

    id: str = Field(default_factory=new_id)
    kind: ItemKind
    name: str
    model: str | None = None
    supplier: str | None = None
    supplier_id: str | None = None
    location: str | None = None
    cost: int = 0   # in cents
    price: int = 0  # in cents
    ordering_instructions: str | None = None

    on_hand: int = 0
    on_order: int = 0
    target_quantity: int = 0
    backordered_quantity: int = 0
    backorder_reason: str | None = None
    backorder_date: date | None = None

    version_id: int = 1

    @property
    def coverage(self) -> int:
        # backordered units are not counted toward target
        return self.on_hand + self.on_order

    @property
    def shortage(self) -> int:
        return max(0, self.target_quantity - self.coverage)

    @property
    def status(self) -> StockStatus:
        if self.on_hand == 0:
            return StockStatus.OUT_OF_STOCK
        if self.backordered_quantity > 0:
            return StockStatus.BACKORDERED
        if self.coverage < self.target_quantity:
            return StockStatus.LOW_STOCK
        return StockStatus.WELL_STOCKED


class Order(_Snapshot):
    """A stock-replacement order against one StockItem."""

    id: str = Field(default_factory=new_id)
    stock_item_id: str
    quantity: int = 1
    po_number: str | None = None
    deceased_name: str
    order_date: date
    expected_date: date | None = None
    status: OrderStatus = OrderStatus.PENDING
    is_return_replacement: bool = False
    is_backordered: bool = False
    actual_arrival_date: date | None = None
    arrived_marked_by: str | None = None
    notes: str | None = None

    version_id: int = 1

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_STATUSES


class SpecialOrder(_Snapshot):
    """A custom, one-off item ordered for a family, due before the service."""

    id: str = Field(default_factory=new_id)
    kind: ItemKind = ItemKind.CASKET
    item_name: str
    model: str | None = None
    supplier: str | None = None
    family_name: str
    service_date: date
    order_date: date
    expected_delivery: date | None = None
    status: OrderStatus = OrderStatus.PENDING
    notes: str | None = None
    supplier_order_number: str | None = None
    special_description: str | None = None
    actual_arrival_date: date | None = None
    arrived_marked_by: str | None = None

    version_id: int = 1

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_STATUSES


class HistoryRecord(_Snapshot):
    """Append-only audit entry. `quantity_change` is the delta applied to on_hand."""

    id: str = Field(default_factory=new_id)
    item_id: str
    action: HistoryAction
    quantity_change: int = 0
    reason: str | None = None
    performed_by: str | None = None
    notes: str | None = None
    order_id: str | None = None
    created_at: datetime


class Supplier(_Snapshot):
    id: str = Field(default_factory=new_id)
    name: str
    contact: str
    phone: str | None = None
    ordering_instructions: str | None = None


class LedgerEntry(_Snapshot):
    """Everything one ledger operation changed, to be committed together."""

    item: StockItem
    order: Order | None = None
    records: tuple[HistoryRecord, ...] = ()
