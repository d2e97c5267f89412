"""
Order lifecycle

Single source of truth for order status transitions, shared by stock orders
and special orders.

    PENDING ──► SHIPPED ──► ARRIVED
       │           │
       └──► DELAYED ◄┘   (re-enterable; goes back to PENDING/SHIPPED)

ARRIVED and CANCELLED are terminal.
"""
from casket_ledger.domain.errors import InvalidStateError
from casket_ledger.domain.models import OrderStatus

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.SHIPPED,
        OrderStatus.DELAYED,
        OrderStatus.ARRIVED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.SHIPPED: frozenset({
        OrderStatus.DELAYED,
        OrderStatus.ARRIVED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.DELAYED: frozenset({
        OrderStatus.PENDING,
        OrderStatus.SHIPPED,
        OrderStatus.DELAYED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.ARRIVED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

ARRIVABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.SHIPPED})


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ORDER_TRANSITIONS.get(current, frozenset())


def allowed_transitions(current: OrderStatus) -> list[OrderStatus]:
    return sorted(ORDER_TRANSITIONS.get(current, frozenset()), key=lambda s: s.value)


def validate_transition(current: OrderStatus, new: OrderStatus) -> None:
    """Raise InvalidStateError unless `current -> new` is allowed."""
    if can_transition(current, new):
        return
    allowed = allowed_transitions(current)
    if allowed:
        hint = "Allowed: " + ", ".join(s.value for s in allowed)
    else:
        hint = f"{current.value} is a final status"
    raise InvalidStateError(
        f"Cannot change order status from {current.value} to {new.value}. {hint}."
    )
