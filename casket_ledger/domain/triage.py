"""
Order triage

Classifies any dated obligation into an urgency tier from the number of days
left before its deadline. Stock orders are measured against their expected
delivery date, special orders against the funeral service date.
"""
import math
from datetime import date, datetime, time
from enum import Enum as PyEnum
from typing import Iterable, TypeVar

from pydantic import BaseModel, ConfigDict

from casket_ledger.domain.models import Order, SpecialOrder

ORDER_URGENT_DAYS = 3
SPECIAL_ORDER_URGENT_DAYS = 7

SECONDS_PER_DAY = 86400

T = TypeVar("T")


class Urgency(str, PyEnum):
    LATE = "LATE"
    URGENT = "URGENT"
    UNSCHEDULED = "UNSCHEDULED"
    ON_TIME = "ON_TIME"


# LATE first; orders without a delivery commitment sit above comfortable ones
TIER_RANK: dict[Urgency, int] = {
    Urgency.LATE: 0,
    Urgency.URGENT: 1,
    Urgency.UNSCHEDULED: 2,
    Urgency.ON_TIME: 3,
}
INACTIVE_RANK = len(TIER_RANK)


class Triage(BaseModel):
    model_config = ConfigDict(frozen=True)

    days_remaining: int | None
    urgency: Urgency


def _as_datetime(value: date | datetime, tzinfo=None) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=tzinfo)


def days_remaining(deadline: date | datetime | None, now: date | datetime) -> int | None:
    """ceil((deadline - now) / 1 day); negative means overdue, None means no deadline."""
    if deadline is None:
        return None
    current = _as_datetime(now)
    target = _as_datetime(deadline, current.tzinfo)
    if (target.tzinfo is None) != (current.tzinfo is None):
        target = target.replace(tzinfo=current.tzinfo)
    return math.ceil((target - current).total_seconds() / SECONDS_PER_DAY)


def classify(days: int | None, urgent_days: int) -> Urgency:
    if days is None:
        return Urgency.UNSCHEDULED
    if days < 0:
        return Urgency.LATE
    if days <= urgent_days:
        return Urgency.URGENT
    return Urgency.ON_TIME


def triage(deadline: date | datetime | None, now: date | datetime, urgent_days: int) -> Triage:
    days = days_remaining(deadline, now)
    return Triage(days_remaining=days, urgency=classify(days, urgent_days))


def triage_order(order: Order, now: date | datetime, urgent_days: int = ORDER_URGENT_DAYS) -> Triage | None:
    """Triage for an active stock order; closed orders have none."""
    if not order.is_active:
        return None
    return triage(order.expected_date, now, urgent_days)


def triage_special_order(
    order: SpecialOrder,
    now: date | datetime,
    urgent_days: int = SPECIAL_ORDER_URGENT_DAYS,
) -> Triage | None:
    if not order.is_active:
        return None
    return triage(order.service_date, now, urgent_days)


def sort_key(result: Triage | None) -> tuple[int, int]:
    if result is None:
        return (INACTIVE_RANK, 0)
    days = result.days_remaining if result.days_remaining is not None else 0
    return (TIER_RANK[result.urgency], days)


def sort_triaged(pairs: Iterable[tuple[T, Triage | None]]) -> list[tuple[T, Triage | None]]:
    """Most pressing first: by tier, then most overdue / soonest due. Stable."""
    return sorted(pairs, key=lambda pair: sort_key(pair[1]))
