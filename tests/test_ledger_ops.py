"""
Ledger persistence tests: version guard, retry on conflict, all-or-nothing commits
"""
from datetime import date

import pytest

from casket_ledger.core.optimistic_lock import StaleDataError
from casket_ledger.db import catalog, ledger_ops
from casket_ledger.domain.errors import InsufficientStockError, InvalidStateError, ValidationError
from casket_ledger.domain.models import AdjustmentType, HistoryAction, ItemKind, OrderStatus


@pytest.mark.asyncio
async def test_write_with_stale_version_is_refused(db):
    item = await ledger_ops.create_item(db, kind=ItemKind.CASKET, name="Oak", on_hand=3)
    stale = await ledger_ops.load_item(db, item.id)
    await ledger_ops.place_order(db, item.id, deceased_name="A")

    with pytest.raises(StaleDataError):
        await ledger_ops._write_item(db, stale, stale.model_copy(update={"on_hand": 0}))
    await db.rollback()

    current = await ledger_ops.load_item(db, item.id)
    assert (current.on_hand, current.on_order, current.version_id) == (2, 1, 2)


@pytest.mark.asyncio
async def test_conflicting_write_is_retried_against_fresh_state(db, monkeypatch):
    item = await ledger_ops.create_item(db, kind=ItemKind.URN, name="Pewter", on_hand=3)
    stale = await ledger_ops.load_item(db, item.id)
    await ledger_ops.adjust_inventory(
        db, item.id, adjustment_type=AdjustmentType.ADD, quantity=1, reason="Count", actor="J.Smith"
    )

    real_load = ledger_ops.load_item
    loads = []

    async def load_stale_first(session, item_id):
        loads.append(item_id)
        if len(loads) == 1:
            return stale
        return await real_load(session, item_id)

    monkeypatch.setattr(ledger_ops, "load_item", load_stale_first)
    entry = await ledger_ops.place_order(db, item.id, deceased_name="A")

    assert len(loads) == 2
    assert entry.item.on_hand == 3
    assert entry.item.version_id == 3
    history = await catalog.item_history(db, item.id)
    assert [h.action for h in history] == [
        HistoryAction.CREATED,
        HistoryAction.ADJUSTMENT,
        HistoryAction.ORDER_PLACED,
    ]


@pytest.mark.asyncio
async def test_rejected_operation_writes_nothing(db):
    item = await ledger_ops.create_item(db, kind=ItemKind.CASKET, name="Steel", on_hand=0)

    with pytest.raises(InsufficientStockError):
        await ledger_ops.place_order(db, item.id, deceased_name="A")

    assert await catalog.list_orders(db) == []
    history = await catalog.item_history(db, item.id)
    assert [h.action for h in history] == [HistoryAction.CREATED]


@pytest.mark.asyncio
async def test_arrival_commits_item_order_and_history_together(db):
    item = await ledger_ops.create_item(db, kind=ItemKind.CASKET, name="Oak", on_hand=1)
    placed = await ledger_ops.place_order(db, item.id, deceased_name="A")

    arrived = await ledger_ops.mark_arrived(db, placed.order.id, actor="J.Smith")

    order = await ledger_ops.load_order(db, placed.order.id)
    stored = await ledger_ops.load_item(db, item.id)
    assert order.status == arrived.order.status
    assert order.version_id == 2
    assert (stored.on_hand, stored.on_order) == (1, 0)
    assert stored.version_id == arrived.item.version_id == 3


def stale_first(monkeypatch, stale):
    real_get = catalog.get_special_order
    loads = []

    async def get_stale_first(session, order_id):
        loads.append(order_id)
        if len(loads) == 1:
            return stale
        return await real_get(session, order_id)

    monkeypatch.setattr(catalog, "get_special_order", get_stale_first)
    return loads


@pytest.mark.asyncio
async def test_special_order_status_is_versioned(db, monkeypatch):
    order = await catalog.create_special_order(
        db, item_name="Custom oak", family_name="Doe", service_date=date(2024, 1, 20)
    )
    stale = await catalog.get_special_order(db, order.id)
    shipped = await catalog.change_special_order_status(db, order.id, OrderStatus.SHIPPED)
    assert shipped.version_id == 2

    loads = stale_first(monkeypatch, stale)
    arrived = await catalog.change_special_order_status(db, order.id, OrderStatus.ARRIVED, actor="J.Smith")

    assert len(loads) == 2
    assert arrived.status == OrderStatus.ARRIVED
    assert arrived.version_id == 3


@pytest.mark.asyncio
async def test_second_clerk_cannot_overwrite_special_order_arrival(db, monkeypatch):
    order = await catalog.create_special_order(
        db, item_name="Custom oak", family_name="Doe", service_date=date(2024, 1, 20)
    )
    stale = await catalog.get_special_order(db, order.id)
    await catalog.change_special_order_status(db, order.id, OrderStatus.ARRIVED, actor="A.Jones")

    stale_first(monkeypatch, stale)
    with pytest.raises(InvalidStateError):
        await catalog.change_special_order_status(db, order.id, OrderStatus.ARRIVED, actor="B.Brown")

    stored = await catalog.get_special_order(db, order.id)
    assert stored.arrived_marked_by == "A.Jones"
    assert stored.version_id == 2


@pytest.mark.asyncio
async def test_item_with_unknown_supplier_is_refused(db):
    with pytest.raises(ValidationError):
        await ledger_ops.create_item(db, kind=ItemKind.CASKET, name="Oak", supplier_id="missing")
    assert await catalog.list_items(db) == []
