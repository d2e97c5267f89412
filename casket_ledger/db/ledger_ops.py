"""
Casket Ledger — Ledger persistence with optimistic locking

Each operation is one conceptual transaction:
  - READ:   load the item (and order) with their version_id
  - APPLY:  run the pure ledger function from casket_ledger.domain.ledger
  - WRITE:  UPDATE ... WHERE version_id = <read_version> for every row touched,
            INSERT the new order / history rows, then a single COMMIT
  - If another transaction committed first → StaleDataError → retry

Either the item, the order and the history all change, or nothing does.
"""
import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.core.optimistic_lock import StaleDataError, with_optimistic_retry
from casket_ledger.domain import ledger
from casket_ledger.domain.errors import LedgerError, NotFoundError, ValidationError
from casket_ledger.domain.models import (
    AdjustmentType,
    LedgerEntry,
    Order,
    OrderStatus,
    ReturnDisposition,
    StockItem,
)
from casket_ledger.models.inventory import InventoryHistory, InventoryItem, Supplier
from casket_ledger.models.order import StockOrder

logger = logging.getLogger(__name__)

ITEM_QUANTITY_FIELDS = (
    "on_hand",
    "on_order",
    "backordered_quantity",
    "backorder_reason",
    "backorder_date",
)
ORDER_STATE_FIELDS = (
    "status",
    "expected_date",
    "actual_arrival_date",
    "arrived_marked_by",
)


async def load_item(db: AsyncSession, item_id: str) -> StockItem:
    result = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.id == item_id)
        .execution_options(populate_existing=True)
    )
    row: InventoryItem | None = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError(f"Inventory item '{item_id}' not found.")
    return StockItem.model_validate(row)


async def load_order(db: AsyncSession, order_id: str) -> Order:
    result = await db.execute(
        select(StockOrder)
        .where(StockOrder.id == order_id)
        .execution_options(populate_existing=True)
    )
    row: StockOrder | None = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError(f"Order '{order_id}' not found.")
    return Order.model_validate(row)


async def _write_item(db: AsyncSession, before: StockItem, after: StockItem) -> StockItem:
    values: dict[str, Any] = {field: getattr(after, field) for field in ITEM_QUANTITY_FIELDS}
    values["version_id"] = before.version_id + 1
    result = await db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == before.id, InventoryItem.version_id == before.version_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise StaleDataError("Optimistic lock conflict: inventory item version changed concurrently.")
    return after.model_copy(update={"version_id": values["version_id"]})


async def _write_order(db: AsyncSession, before: Order, after: Order) -> Order:
    values: dict[str, Any] = {field: getattr(after, field) for field in ORDER_STATE_FIELDS}
    values["version_id"] = before.version_id + 1
    result = await db.execute(
        update(StockOrder)
        .where(StockOrder.id == before.id, StockOrder.version_id == before.version_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise StaleDataError("Optimistic lock conflict: order version changed concurrently.")
    return after.model_copy(update={"version_id": values["version_id"]})


async def _commit(
    db: AsyncSession,
    before_item: StockItem,
    entry: LedgerEntry,
    before_order: Order | None = None,
) -> LedgerEntry:
    """Write every row of a LedgerEntry in one transaction."""
    try:
        item = await _write_item(db, before_item, entry.item)
        order = entry.order
        if order is not None:
            if before_order is None:
                db.add(StockOrder(**order.model_dump()))
            else:
                order = await _write_order(db, before_order, order)
        for record in entry.records:
            db.add(InventoryHistory(**record.model_dump()))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    for record in entry.records:
        logger.info(
            "Ledger %s on item %s: quantity_change=%+d on_hand=%d on_order=%d backordered=%d",
            record.action.value, item.id, record.quantity_change,
            item.on_hand, item.on_order, item.backordered_quantity,
        )
    return entry.model_copy(update={"item": item, "order": order})


async def _rejected(db: AsyncSession, exc: LedgerError, operation: str, target: str) -> None:
    await db.rollback()
    logger.warning("%s rejected for %s: %s", operation, target, exc.message)


# ─── Catalogue ────────────────────────────────────────────────────────────────

async def create_item(db: AsyncSession, *, now: datetime | None = None, **fields) -> StockItem:
    supplier_id = fields.get("supplier_id")
    if supplier_id and await db.get(Supplier, supplier_id) is None:
        # an unknown supplier is a 422, not an IntegrityError from the foreign key
        raise ValidationError(f"Supplier '{supplier_id}' not found.")
    entry = ledger.open_item(now=now, **fields)
    db.add(InventoryItem(**entry.item.model_dump()))
    for record in entry.records:
        db.add(InventoryHistory(**record.model_dump()))
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Opened %s item %s with on_hand=%d", entry.item.kind.value, entry.item.id, entry.item.on_hand)
    return entry.item


# ─── Ledger operations ────────────────────────────────────────────────────────

@with_optimistic_retry()
async def place_order(db: AsyncSession, item_id: str, **kwargs) -> LedgerEntry:
    item = await load_item(db, item_id)
    try:
        entry = ledger.place_order(item, **kwargs)
    except LedgerError as exc:
        await _rejected(db, exc, "place_order", item_id)
        raise
    return await _commit(db, item, entry)


@with_optimistic_retry()
async def mark_arrived(
    db: AsyncSession,
    order_id: str,
    *,
    actor: str | None,
    arrival_date: date | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    order = await load_order(db, order_id)
    item = await load_item(db, order.stock_item_id)
    try:
        entry = ledger.mark_arrived(order, item, actor=actor, arrival_date=arrival_date, now=now)
    except LedgerError as exc:
        await _rejected(db, exc, "mark_arrived", order_id)
        raise
    return await _commit(db, item, entry, before_order=order)


@with_optimistic_retry()
async def cancel_order(
    db: AsyncSession,
    order_id: str,
    *,
    actor: str | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    order = await load_order(db, order_id)
    item = await load_item(db, order.stock_item_id)
    try:
        entry = ledger.cancel_order(order, item, actor=actor, reason=reason, now=now)
    except LedgerError as exc:
        await _rejected(db, exc, "cancel_order", order_id)
        raise
    return await _commit(db, item, entry, before_order=order)


@with_optimistic_retry()
async def record_return(
    db: AsyncSession,
    item_id: str,
    *,
    disposition: ReturnDisposition = ReturnDisposition.DISPOSE,
    **kwargs,
) -> LedgerEntry:
    item = await load_item(db, item_id)
    try:
        entry = ledger.record_return(item, disposition=disposition, **kwargs)
    except LedgerError as exc:
        await _rejected(db, exc, "record_return", item_id)
        raise
    return await _commit(db, item, entry)


@with_optimistic_retry()
async def adjust_inventory(
    db: AsyncSession,
    item_id: str,
    *,
    adjustment_type: AdjustmentType,
    **kwargs,
) -> LedgerEntry:
    item = await load_item(db, item_id)
    try:
        entry = ledger.adjust_inventory(item, adjustment_type=adjustment_type, **kwargs)
    except LedgerError as exc:
        await _rejected(db, exc, "adjust_inventory", item_id)
        raise
    return await _commit(db, item, entry)


@with_optimistic_retry()
async def record_backorder(db: AsyncSession, item_id: str, **kwargs) -> LedgerEntry:
    item = await load_item(db, item_id)
    try:
        entry = ledger.record_backorder(item, **kwargs)
    except LedgerError as exc:
        await _rejected(db, exc, "record_backorder", item_id)
        raise
    return await _commit(db, item, entry)


@with_optimistic_retry()
async def change_order_status(
    db: AsyncSession,
    order_id: str,
    status: OrderStatus,
    **kwargs,
) -> Order:
    """Status-only transition; the item's quantities are untouched."""
    order = await load_order(db, order_id)
    try:
        changed = ledger.change_order_status(order, status, **kwargs)
    except LedgerError as exc:
        await _rejected(db, exc, "change_order_status", order_id)
        raise
    try:
        changed = await _write_order(db, order, changed)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Order %s moved %s -> %s", order_id, order.status.value, changed.status.value)
    return changed
