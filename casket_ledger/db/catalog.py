"""
Casket Ledger — Catalogue reads, suppliers and special orders
"""
import logging
from datetime import date, datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.core.optimistic_lock import StaleDataError, with_optimistic_retry
from casket_ledger.domain import ledger
from casket_ledger.domain.errors import LedgerError, NotFoundError, ValidationError
from casket_ledger.domain.models import (
    HistoryRecord,
    ItemKind,
    Order,
    OrderStatus,
    SpecialOrder,
    StockItem,
    Supplier,
)
from casket_ledger.models.inventory import InventoryHistory, InventoryItem
from casket_ledger.models.inventory import Supplier as SupplierRow
from casket_ledger.models.order import SpecialOrderRecord, StockOrder

logger = logging.getLogger(__name__)


# ─── Items ────────────────────────────────────────────────────────────────────

async def list_items(db: AsyncSession, kind: ItemKind | None = None) -> list[StockItem]:
    query = select(InventoryItem).order_by(InventoryItem.name)
    if kind:
        query = query.where(InventoryItem.kind == kind)
    result = await db.execute(query)
    return [StockItem.model_validate(row) for row in result.scalars().all()]


async def item_history(db: AsyncSession, item_id: str) -> list[HistoryRecord]:
    result = await db.execute(
        select(InventoryHistory)
        .where(InventoryHistory.item_id == item_id)
        .order_by(InventoryHistory.created_at)
    )
    return [HistoryRecord.model_validate(row) for row in result.scalars().all()]


async def find_supplier_for(db: AsyncSession, item: StockItem) -> Supplier | None:
    """The item's linked supplier, falling back to a name match."""
    if item.supplier_id:
        row = await db.get(SupplierRow, item.supplier_id)
        if row is not None:
            return Supplier.model_validate(row)
    if item.supplier:
        result = await db.execute(
            select(SupplierRow).where(SupplierRow.name == item.supplier).limit(1)
        )
        row = result.scalar_one_or_none()
        if row is not None:
            return Supplier.model_validate(row)
    return None


# ─── Orders ───────────────────────────────────────────────────────────────────

async def list_orders(
    db: AsyncSession,
    active: bool | None = None,
    item_id: str | None = None,
) -> list[Order]:
    query = select(StockOrder).order_by(StockOrder.order_date, StockOrder.created_at)
    if item_id:
        query = query.where(StockOrder.stock_item_id == item_id)
    if active is True:
        query = query.where(StockOrder.status.not_in([OrderStatus.ARRIVED, OrderStatus.CANCELLED]))
    elif active is False:
        query = query.where(StockOrder.status.in_([OrderStatus.ARRIVED, OrderStatus.CANCELLED]))
    result = await db.execute(query)
    return [Order.model_validate(row) for row in result.scalars().all()]


# ─── Suppliers ────────────────────────────────────────────────────────────────

async def create_supplier(
    db: AsyncSession,
    *,
    name: str | None,
    contact: str | None,
    phone: str | None = None,
    ordering_instructions: str | None = None,
) -> Supplier:
    if not name or not name.strip() or not contact or not contact.strip():
        raise ValidationError("Name and contact are required.")
    supplier = Supplier(
        name=name.strip(),
        contact=contact.strip(),
        phone=phone.strip() if phone else None,
        ordering_instructions=ordering_instructions.strip() if ordering_instructions else None,
    )
    db.add(SupplierRow(**supplier.model_dump()))
    await db.commit()
    logger.info("Added supplier %s (%s)", supplier.name, supplier.id)
    return supplier


async def list_suppliers(db: AsyncSession) -> list[Supplier]:
    result = await db.execute(select(SupplierRow).order_by(SupplierRow.name))
    return [Supplier.model_validate(row) for row in result.scalars().all()]


async def count_suppliers(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(SupplierRow))
    return result.scalar_one()


async def delete_supplier(db: AsyncSession, supplier_id: str) -> None:
    row = await db.get(SupplierRow, supplier_id)
    if row is None:
        raise NotFoundError(f"Supplier '{supplier_id}' not found.")
    await db.delete(row)
    await db.commit()
    logger.info("Deleted supplier %s", supplier_id)


# ─── Special orders ───────────────────────────────────────────────────────────

async def _load_special_order(db: AsyncSession, order_id: str) -> SpecialOrderRecord:
    row = await db.get(SpecialOrderRecord, order_id, populate_existing=True)
    if row is None:
        raise NotFoundError(f"Special order '{order_id}' not found.")
    return row


async def get_special_order(db: AsyncSession, order_id: str) -> SpecialOrder:
    return SpecialOrder.model_validate(await _load_special_order(db, order_id))


async def create_special_order(db: AsyncSession, *, now: datetime | None = None, **fields) -> SpecialOrder:
    order = ledger.open_special_order(now=now, **fields)
    db.add(SpecialOrderRecord(**order.model_dump()))
    await db.commit()
    logger.info("Special order %s opened for %s, service %s", order.id, order.family_name, order.service_date)
    return order


async def list_special_orders(db: AsyncSession, active: bool | None = None) -> list[SpecialOrder]:
    query = select(SpecialOrderRecord).order_by(SpecialOrderRecord.service_date)
    if active is True:
        query = query.where(SpecialOrderRecord.status.not_in([OrderStatus.ARRIVED, OrderStatus.CANCELLED]))
    elif active is False:
        query = query.where(SpecialOrderRecord.status.in_([OrderStatus.ARRIVED, OrderStatus.CANCELLED]))
    result = await db.execute(query)
    return [SpecialOrder.model_validate(row) for row in result.scalars().all()]


@with_optimistic_retry()
async def change_special_order_status(
    db: AsyncSession,
    order_id: str,
    status: OrderStatus,
    *,
    actor: str | None = None,
    arrival_date: date | None = None,
    now: datetime | None = None,
) -> SpecialOrder:
    """Versioned like stock orders: two clerks marking the same order ARRIVED cannot both win."""
    current = await get_special_order(db, order_id)
    try:
        changed = ledger.change_special_order_status(
            current, status, actor=actor, arrival_date=arrival_date, now=now
        )
    except LedgerError as exc:
        await db.rollback()
        logger.warning("Special order %s status change rejected: %s", order_id, exc.message)
        raise

    next_version = current.version_id + 1
    try:
        result = await db.execute(
            update(SpecialOrderRecord)
            .where(SpecialOrderRecord.id == order_id, SpecialOrderRecord.version_id == current.version_id)
            .values(
                status=changed.status,
                actual_arrival_date=changed.actual_arrival_date,
                arrived_marked_by=changed.arrived_marked_by,
                version_id=next_version,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StaleDataError("Optimistic lock conflict: special order version changed concurrently.")
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Special order %s moved %s -> %s", order_id, current.status.value, changed.status.value)
    return changed.model_copy(update={"version_id": next_version})
