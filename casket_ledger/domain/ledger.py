"""
Inventory ledger

Pure transformations of (StockItem, Order?) into a LedgerEntry holding the
new item, the new or updated order, and the audit records to append. Nothing
here touches storage; `casket_ledger.db.ledger_ops` loads the inputs and
commits each LedgerEntry as one unit.

Quantity buckets:
  on_hand               units physically in the building
  on_order              units ordered from a supplier and expected
  backordered_quantity  units the supplier has accepted but cannot ship yet

All three are clamped at zero by every operation.
"""
from datetime import date, datetime, timezone

from casket_ledger.domain.errors import (
    InsufficientStockError,
    InvalidStateError,
    ValidationError,
)
from casket_ledger.domain.lifecycle import ARRIVABLE_STATUSES, validate_transition
from casket_ledger.domain.models import (
    AdjustmentType,
    HistoryAction,
    HistoryRecord,
    ItemKind,
    LedgerEntry,
    Order,
    OrderStatus,
    ReturnDisposition,
    SpecialOrder,
    StockItem,
    Supplier,
)

DEFAULT_BACKORDER_REASON = "Supplier backorder"
NO_INSTRUCTIONS = "No instructions saved for this selection."

_UNSET = object()


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _required(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required.")
    return value.strip()


def _positive(quantity: int, field: str = "quantity") -> int:
    if quantity < 1:
        raise ValidationError(f"{field} must be at least 1.")
    return quantity


def _clamp(value: int) -> int:
    return max(0, value)


def _record(item: StockItem, action: HistoryAction, now: datetime, **fields) -> HistoryRecord:
    return HistoryRecord(item_id=item.id, action=action, created_at=now, **fields)


def _add_backorder(item: StockItem, quantity: int, reason: str | None, today: date) -> dict:
    """Field updates for moving `quantity` into the backordered bucket."""
    update = {"backordered_quantity": item.backordered_quantity + quantity}
    if item.backordered_quantity == 0:
        update["backorder_reason"] = reason or DEFAULT_BACKORDER_REASON
        update["backorder_date"] = today
    return update


def _relieve(item: StockItem, order: Order) -> dict:
    """Field updates releasing `order.quantity` from the bucket the order was filed under."""
    if not order.is_backordered:
        return {"on_order": _clamp(item.on_order - order.quantity)}
    remaining = _clamp(item.backordered_quantity - order.quantity)
    update = {"backordered_quantity": remaining}
    if remaining == 0:
        update["backorder_reason"] = None
        update["backorder_date"] = None
    return update


def _check_order_belongs(order: Order, item: StockItem) -> None:
    if order.stock_item_id != item.id:
        raise ValidationError(
            f"Order {order.id} belongs to item {order.stock_item_id}, not {item.id}."
        )


# ─── Catalogue ────────────────────────────────────────────────────────────────

def open_item(
    *,
    kind: ItemKind,
    name: str,
    on_hand: int = 0,
    target_quantity: int = 0,
    now: datetime | None = None,
    actor: str | None = None,
    **details,
) -> LedgerEntry:
    """Create a StockItem with its opening balance recorded in history."""
    now = _now(now)
    name = _required(name, "name")
    if on_hand < 0 or target_quantity < 0:
        raise ValidationError("Quantities cannot be negative.")
    item = StockItem(
        kind=kind,
        name=name,
        on_hand=on_hand,
        target_quantity=target_quantity,
        **details,
    )
    record = _record(
        item,
        HistoryAction.CREATED,
        now,
        quantity_change=on_hand,
        reason="Opening balance",
        performed_by=actor,
    )
    return LedgerEntry(item=item, records=(record,))


def resolve_ordering_instructions(item: StockItem, supplier: Supplier | None) -> str:
    """Item-level instructions override the supplier's."""
    if item.ordering_instructions:
        return item.ordering_instructions
    if supplier is not None and supplier.ordering_instructions:
        return supplier.ordering_instructions
    return NO_INSTRUCTIONS


# ─── Order lifecycle events ───────────────────────────────────────────────────

def place_order(
    item: StockItem,
    *,
    deceased_name: str | None,
    quantity: int = 1,
    is_backordered: bool = False,
    is_return_replacement: bool = False,
    po_number: str | None = None,
    expected_date: date | None = None,
    backorder_reason: str | None = None,
    actor: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """
    Sell a unit (unless this replaces a return) and order its replacement.

    The replacement lands in `backordered_quantity` when the supplier cannot
    ship yet, otherwise in `on_order`.
    """
    now = _now(now)
    deceased_name = _required(deceased_name, "deceased_name")
    quantity = _positive(quantity)

    update: dict = {}
    if not is_return_replacement:
        if item.on_hand < quantity:
            raise InsufficientStockError(
                f"Cannot order '{item.name}': requested={quantity}, on_hand={item.on_hand}."
            )
        update["on_hand"] = _clamp(item.on_hand - quantity)

    if is_backordered:
        update.update(_add_backorder(item, quantity, backorder_reason, now.date()))
    else:
        update["on_order"] = item.on_order + quantity

    order = Order(
        stock_item_id=item.id,
        quantity=quantity,
        po_number=po_number,
        deceased_name=deceased_name,
        order_date=now.date(),
        expected_date=expected_date,
        is_return_replacement=is_return_replacement,
        is_backordered=is_backordered,
        notes=notes,
    )

    if is_return_replacement:
        action = HistoryAction.REPLACEMENT_ORDERED
    elif is_backordered:
        action = HistoryAction.BACKORDER_PLACED
    else:
        action = HistoryAction.ORDER_PLACED
    record = _record(
        item,
        action,
        now,
        quantity_change=0 if is_return_replacement else -quantity,
        reason=backorder_reason if is_backordered else None,
        performed_by=actor,
        notes=notes,
        order_id=order.id,
    )
    return LedgerEntry(item=item.model_copy(update=update), order=order, records=(record,))


def mark_arrived(
    order: Order,
    item: StockItem,
    *,
    actor: str | None,
    arrival_date: date | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """Receive an order: units go on hand and leave the bucket they were filed under."""
    now = _now(now)
    _check_order_belongs(order, item)
    if order.status not in ARRIVABLE_STATUSES:
        raise InvalidStateError(
            f"Order {order.id} is {order.status.value}; only PENDING or SHIPPED orders can arrive."
        )
    actor = _required(actor, "actor")

    update = {"on_hand": item.on_hand + order.quantity}
    update.update(_relieve(item, order))

    arrived = order.model_copy(update={
        "status": OrderStatus.ARRIVED,
        "actual_arrival_date": arrival_date or now.date(),
        "arrived_marked_by": actor,
    })
    record = _record(
        item,
        HistoryAction.ARRIVED,
        now,
        quantity_change=order.quantity,
        performed_by=actor,
        order_id=order.id,
    )
    return LedgerEntry(item=item.model_copy(update=update), order=arrived, records=(record,))


def record_return(
    item: StockItem,
    *,
    reason: str | None,
    notes: str | None = None,
    quantity: int = 1,
    disposition: ReturnDisposition = ReturnDisposition.DISPOSE,
    expects_replacement: bool = False,
    family_name: str | None = None,
    is_backordered: bool = False,
    po_number: str | None = None,
    expected_date: date | None = None,
    actor: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """
    Log a returned unit. RESTOCK puts it back on hand, DISPOSE does not.
    With `expects_replacement` a return-replacement order is placed too.
    """
    now = _now(now)
    reason = _required(reason, "reason")
    quantity = _positive(quantity)
    if expects_replacement:
        family_name = _required(family_name, "family_name")

    restocked = disposition == ReturnDisposition.RESTOCK
    current = item
    if restocked:
        current = item.model_copy(update={"on_hand": item.on_hand + quantity})

    return_record = _record(
        item,
        HistoryAction.RETURN,
        now,
        quantity_change=quantity if restocked else 0,
        reason=reason,
        performed_by=actor,
        notes=f"[{disposition.value}] {notes}" if notes else f"[{disposition.value}]",
    )
    if not expects_replacement:
        return LedgerEntry(item=current, records=(return_record,))

    replacement = place_order(
        current,
        deceased_name=family_name,
        quantity=quantity,
        is_backordered=is_backordered,
        is_return_replacement=True,
        po_number=po_number,
        expected_date=expected_date,
        backorder_reason=reason if is_backordered else None,
        actor=actor,
        notes=f"Replacement for return: {reason}",
        now=now,
    )
    return LedgerEntry(
        item=replacement.item,
        order=replacement.order,
        records=(return_record, *replacement.records),
    )


def adjust_inventory(
    item: StockItem,
    *,
    adjustment_type: AdjustmentType,
    quantity: int,
    reason: str | None,
    actor: str | None,
    notes: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """Manual on-hand correction. `correction` takes a signed quantity."""
    now = _now(now)
    reason = _required(reason, "reason")
    actor = _required(actor, "actor")

    if adjustment_type == AdjustmentType.CORRECTION:
        if quantity == 0:
            raise ValidationError("A correction must change the quantity.")
        delta = quantity
    else:
        _positive(quantity)
        delta = quantity if adjustment_type == AdjustmentType.ADD else -quantity

    record = _record(
        item,
        HistoryAction.ADJUSTMENT,
        now,
        quantity_change=delta,
        reason=f"{adjustment_type.value}: {reason}",
        performed_by=actor,
        notes=notes,
    )
    adjusted = item.model_copy(update={"on_hand": _clamp(item.on_hand + delta)})
    return LedgerEntry(item=adjusted, records=(record,))


def record_backorder(
    item: StockItem,
    *,
    quantity: int,
    reason: str | None,
    actor: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    now = _now(now)
    reason = _required(reason, "reason")
    quantity = _positive(quantity)

    backordered = item.model_copy(update={
        "backordered_quantity": item.backordered_quantity + quantity,
        "backorder_reason": reason,
        "backorder_date": now.date(),
    })
    record = _record(
        item,
        HistoryAction.BACKORDER_RECORDED,
        now,
        reason=reason,
        performed_by=actor,
        notes=f"{quantity} unit(s) backordered",
    )
    return LedgerEntry(item=backordered, records=(record,))


def cancel_order(
    order: Order,
    item: StockItem,
    *,
    actor: str | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """Withdraw an open order. Sold units stay sold."""
    now = _now(now)
    _check_order_belongs(order, item)
    validate_transition(order.status, OrderStatus.CANCELLED)

    cancelled = order.model_copy(update={"status": OrderStatus.CANCELLED})
    record = _record(
        item,
        HistoryAction.ORDER_CANCELLED,
        now,
        reason=reason,
        performed_by=actor,
        order_id=order.id,
        notes=f"{order.quantity} unit(s) released from {'backorder' if order.is_backordered else 'on order'}",
    )
    return LedgerEntry(item=item.model_copy(update=_relieve(item, order)), order=cancelled, records=(record,))


def change_order_status(order: Order, status: OrderStatus, *, expected_date=_UNSET) -> Order:
    """
    Move an order along its lifecycle without touching quantities.
    Arrival and cancellation have their own operations.
    """
    if status in (OrderStatus.ARRIVED, OrderStatus.CANCELLED):
        raise InvalidStateError(
            f"Use the dedicated operation to mark an order {status.value}."
        )
    validate_transition(order.status, status)
    update: dict = {"status": status}
    if expected_date is not _UNSET:
        update["expected_date"] = expected_date
    return order.model_copy(update=update)


# ─── Special orders ───────────────────────────────────────────────────────────

def open_special_order(
    *,
    item_name: str | None,
    family_name: str | None,
    service_date: date | None,
    now: datetime | None = None,
    **details,
) -> SpecialOrder:
    now = _now(now)
    if service_date is None:
        raise ValidationError("service_date is required.")
    return SpecialOrder(
        item_name=_required(item_name, "item_name"),
        family_name=_required(family_name, "family_name"),
        service_date=service_date,
        order_date=now.date(),
        **details,
    )


def change_special_order_status(
    order: SpecialOrder,
    status: OrderStatus,
    *,
    actor: str | None = None,
    arrival_date: date | None = None,
    now: datetime | None = None,
) -> SpecialOrder:
    now = _now(now)
    validate_transition(order.status, status)
    update: dict = {"status": status}
    if status == OrderStatus.ARRIVED:
        update["actual_arrival_date"] = arrival_date or now.date()
        update["arrived_marked_by"] = _required(actor, "actor")
    return order.model_copy(update=update)


# ─── Audit replay ─────────────────────────────────────────────────────────────

def replay_on_hand(records, start: int = 0) -> int:
    """Fold history records into an on_hand balance, clamping like the ledger does."""
    on_hand = start
    for record in records:
        on_hand = _clamp(on_hand + record.quantity_change)
    return on_hand
