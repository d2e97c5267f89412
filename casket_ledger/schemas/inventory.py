"""
Casket Ledger — Pydantic schemas for items, suppliers and ledger events
"""
from datetime import date, datetime

from pydantic import BaseModel, Field

from casket_ledger.domain.models import (
    AdjustmentType,
    HistoryAction,
    ItemKind,
    ReturnDisposition,
    StockItem,
    StockStatus,
)


class ItemCreateRequest(BaseModel):
    kind: ItemKind
    name: str = Field(..., max_length=255, examples=["Batesville Monticello"])
    model: str | None = Field(None, max_length=255)
    supplier: str | None = Field(None, max_length=255)
    supplier_id: str | None = None
    location: str | None = Field(None, max_length=255)
    cost: int = Field(0, ge=0, description="in cents")
    price: int = Field(0, ge=0, description="in cents")
    on_hand: int = Field(0, ge=0)
    target_quantity: int = Field(0, ge=0)
    ordering_instructions: str | None = None
    actor: str | None = None


class ItemResponse(BaseModel):
    id: str
    kind: ItemKind
    name: str
    model: str | None
    supplier: str | None
    supplier_id: str | None
    location: str | None
    cost: int
    price: int
    on_hand: int
    on_order: int
    target_quantity: int
    backordered_quantity: int
    backorder_reason: str | None
    backorder_date: date | None
    version_id: int
    coverage: int
    shortage: int
    status: StockStatus

    @classmethod
    def from_item(cls, item: StockItem) -> "ItemResponse":
        return cls(
            **item.model_dump(exclude={"ordering_instructions"}),
            coverage=item.coverage,
            shortage=item.shortage,
            status=item.status,
        )


class HistoryResponse(BaseModel):
    id: str
    item_id: str
    action: HistoryAction
    quantity_change: int
    reason: str | None
    performed_by: str | None
    notes: str | None
    order_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderingInstructionsResponse(BaseModel):
    item_id: str
    supplier_id: str | None
    instructions: str


# ─── Ledger event requests ────────────────────────────────────────────────────

class PlaceOrderRequest(BaseModel):
    deceased_name: str | None = Field(None, max_length=255)
    quantity: int = Field(1, ge=1)
    is_backordered: bool = False
    is_return_replacement: bool = False
    po_number: str | None = Field(None, max_length=64)
    expected_date: date | None = None
    backorder_reason: str | None = None
    actor: str | None = None
    notes: str | None = Field(None, max_length=1000)


class ReturnRequest(BaseModel):
    reason: str | None = None
    notes: str | None = Field(None, max_length=1000)
    quantity: int = Field(1, ge=1)
    disposition: ReturnDisposition = ReturnDisposition.DISPOSE
    expects_replacement: bool = False
    family_name: str | None = Field(None, max_length=255)
    is_backordered: bool = False
    po_number: str | None = Field(None, max_length=64)
    expected_date: date | None = None
    actor: str | None = None


class AdjustRequest(BaseModel):
    type: AdjustmentType
    quantity: int = Field(..., description="signed for corrections")
    reason: str | None = None
    actor: str | None = None
    notes: str | None = Field(None, max_length=1000)


class BackorderRequest(BaseModel):
    quantity: int = Field(..., ge=1)
    reason: str | None = None
    actor: str | None = None


# ─── Suppliers ────────────────────────────────────────────────────────────────

class SupplierCreateRequest(BaseModel):
    name: str = Field(..., max_length=255)
    contact: str = Field(..., max_length=255)
    phone: str | None = Field(None, max_length=64)
    ordering_instructions: str | None = None


class SupplierResponse(BaseModel):
    id: str
    name: str
    contact: str
    phone: str | None
    ordering_instructions: str | None

    model_config = {"from_attributes": True}
