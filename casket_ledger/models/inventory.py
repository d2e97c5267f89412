"""
Casket Ledger — Inventory tables

[CONFIG DATA]        suppliers — supplier contacts and ordering instructions
[TRANSACTIONAL DATA] inventory_items — quantity buckets, guarded by version_id
[AUDIT DATA]         inventory_history — append-only, never updated
"""
import uuid
from datetime import date, datetime
from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from casket_ledger.db.database import Base
from casket_ledger.domain.models import HistoryAction, ItemKind


class Supplier(Base):
    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ordering_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class InventoryItem(Base):
    """
    One casket or urn type. version_id is the optimistic locking column,
    incremented on every quantity update.
    """
    __tablename__ = "inventory_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    kind: Mapped[ItemKind] = mapped_column(Enum(ItemKind, name="item_kind"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)   # in cents
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # in cents
    ordering_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    on_hand: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    on_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    target_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    backordered_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    backorder_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    backorder_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # optimistic lock
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class InventoryHistory(Base):
    """
    [AUDIT DATA] — one row per ledger event; replaying quantity_change
    from zero reproduces the item's on_hand.
    """
    __tablename__ = "inventory_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    item_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    action: Mapped[HistoryAction] = mapped_column(Enum(HistoryAction, name="history_action"), nullable=False)
    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
