"""
Order lifecycle transition table tests
"""
import pytest

from casket_ledger.domain.errors import InvalidStateError
from casket_ledger.domain.lifecycle import allowed_transitions, can_transition, validate_transition
from casket_ledger.domain.models import OrderStatus as S


@pytest.mark.parametrize("current,new", [
    (S.PENDING, S.SHIPPED),
    (S.PENDING, S.ARRIVED),
    (S.SHIPPED, S.DELAYED),
    (S.DELAYED, S.DELAYED),
    (S.DELAYED, S.PENDING),
    (S.DELAYED, S.CANCELLED),
])
def test_allowed(current, new):
    assert can_transition(current, new)
    validate_transition(current, new)


@pytest.mark.parametrize("current,new", [
    (S.DELAYED, S.ARRIVED),
    (S.SHIPPED, S.PENDING),
    (S.ARRIVED, S.PENDING),
    (S.CANCELLED, S.PENDING),
    (S.ARRIVED, S.ARRIVED),
])
def test_rejected(current, new):
    assert not can_transition(current, new)
    with pytest.raises(InvalidStateError):
        validate_transition(current, new)


def test_terminal_statuses_have_no_exits():
    assert allowed_transitions(S.ARRIVED) == []
    assert allowed_transitions(S.CANCELLED) == []


def test_rejection_message_lists_allowed_targets():
    with pytest.raises(InvalidStateError) as exc:
        validate_transition(S.SHIPPED, S.PENDING)
    assert "ARRIVED, CANCELLED, DELAYED" in exc.value.message
