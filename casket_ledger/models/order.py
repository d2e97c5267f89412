"""
Casket Ledger — Order tables

[TRANSACTIONAL DATA] stock_orders — replenishment orders, guarded by version_id
[TRANSACTIONAL DATA] special_orders — custom orders keyed by service date, guarded by version_id
"""
import uuid
from datetime import date, datetime
from sqlalchemy import Boolean, Date, DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from casket_ledger.db.database import Base
from casket_ledger.domain.models import ItemKind, OrderStatus


class StockOrder(Base):
    """
    Replacement order against one inventory item. Quantities live on the
    item; this row only records what was ordered and where it stands.
    """
    __tablename__ = "stock_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    stock_item_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    po_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    deceased_name: Mapped[str] = mapped_column(String(255), nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_date: Mapped[date | None] = mapped_column(Date, nullable=True)  # NULL means TBD
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"), default=OrderStatus.PENDING, index=True, nullable=False
    )
    is_return_replacement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_backordered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    actual_arrival_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    arrived_marked_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # optimistic lock
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class SpecialOrderRecord(Base):
    __tablename__ = "special_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    kind: Mapped[ItemKind] = mapped_column(Enum(ItemKind, name="item_kind"), nullable=False)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    family_name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_delivery: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"), default=OrderStatus.PENDING, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    supplier_order_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    special_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    actual_arrival_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    arrived_marked_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # optimistic lock
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
