"""
Optimistic lock retry tests
"""
import pytest

from casket_ledger.core.optimistic_lock import StaleDataError, backoff_delay, with_optimistic_retry
from casket_ledger.domain.errors import ConcurrencyConflictError


@pytest.mark.asyncio
async def test_retries_until_write_succeeds():
    calls = []

    @with_optimistic_retry(max_retries=3)
    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("version changed")
        return "committed"

    assert await flaky() == "committed"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_surface_as_conflict():
    calls = []

    @with_optimistic_retry(max_retries=2)
    async def always_stale():
        calls.append(1)
        raise StaleDataError("version changed")

    with pytest.raises(ConcurrencyConflictError) as exc:
        await always_stale()
    assert len(calls) == 2
    assert isinstance(exc.value.__cause__, StaleDataError)
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    calls = []

    @with_optimistic_retry(max_retries=5)
    async def broken():
        calls.append(1)
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await broken()
    assert len(calls) == 1


def test_backoff_is_capped():
    # conftest pins base=1ms, cap=2ms, jitter=0
    assert backoff_delay(1) == pytest.approx(0.002)
    assert backoff_delay(10) == pytest.approx(0.002)
