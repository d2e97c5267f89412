"""
Order triage tests
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from casket_ledger.domain.models import Order, OrderStatus, SpecialOrder
from casket_ledger.domain.triage import (
    Urgency,
    classify,
    days_remaining,
    sort_triaged,
    triage_order,
    triage_special_order,
)

NOW = date(2024, 1, 10)


def order(expected: date | None, status: OrderStatus = OrderStatus.PENDING) -> Order:
    return Order(
        stock_item_id="item-1",
        deceased_name="Jane Doe",
        order_date=date(2024, 1, 1),
        expected_date=expected,
        status=status,
    )


def test_triage_scenario_sorts_late_urgent_on_time():
    a = order(date(2024, 1, 8))
    b = order(date(2024, 1, 12))
    c = order(date(2024, 1, 20))

    ta, tb, tc = (triage_order(o, NOW) for o in (a, b, c))
    assert (ta.urgency, ta.days_remaining) == (Urgency.LATE, -2)
    assert (tb.urgency, tb.days_remaining) == (Urgency.URGENT, 2)
    assert tc.urgency == Urgency.ON_TIME

    ranked = sort_triaged([(c, tc), (b, tb), (a, ta)])
    assert [o.id for o, _ in ranked] == [a.id, b.id, c.id]


@pytest.mark.parametrize("days,expected", [
    (-1, Urgency.LATE),
    (0, Urgency.URGENT),
    (3, Urgency.URGENT),
    (4, Urgency.ON_TIME),
    (None, Urgency.UNSCHEDULED),
])
def test_stock_order_thresholds(days, expected):
    assert classify(days, urgent_days=3) == expected


def test_special_orders_use_a_week_threshold():
    special = SpecialOrder(
        item_name="Custom oak",
        family_name="Doe",
        service_date=date(2024, 1, 16),
        order_date=date(2024, 1, 2),
    )
    result = triage_special_order(special, NOW)
    assert result.days_remaining == 6
    assert result.urgency == Urgency.URGENT


def test_days_remaining_rounds_partial_days_up():
    now = datetime(2024, 1, 10, 18, 0, tzinfo=timezone.utc)
    assert days_remaining(date(2024, 1, 12), now) == 2
    assert days_remaining(date(2024, 1, 10), now) == 0
    assert days_remaining(date(2024, 1, 9), now) == -1


def test_days_remaining_without_deadline():
    assert days_remaining(None, NOW) is None


def test_unscheduled_orders_sort_between_urgent_and_on_time():
    urgent = order(NOW + timedelta(days=1))
    tbd = order(None)
    relaxed = order(NOW + timedelta(days=30))
    pairs = [(o, triage_order(o, NOW)) for o in (relaxed, tbd, urgent)]
    assert [o.id for o, _ in sort_triaged(pairs)] == [urgent.id, tbd.id, relaxed.id]


def test_closed_orders_have_no_triage_and_sort_last():
    arrived = order(date(2024, 1, 1), status=OrderStatus.ARRIVED)
    late = order(date(2024, 1, 5))
    assert triage_order(arrived, NOW) is None
    pairs = [(o, triage_order(o, NOW)) for o in (arrived, late)]
    assert [o.id for o, _ in sort_triaged(pairs)] == [late.id, arrived.id]
