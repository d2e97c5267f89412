"""
Casket Ledger — Retry policy for versioned ledger writes

Every ledger write is `UPDATE ... WHERE version_id = <read_version>`. When a
concurrent request committed first, the update matches no row and the
persistence layer raises StaleDataError. The whole read-apply-write cycle is
then run again on fresh state, after an exponentially growing pause.
"""
import asyncio
import functools
import logging
import random

from casket_ledger.core.config import get_settings
from casket_ledger.domain.errors import ConcurrencyConflictError

settings = get_settings()
logger = logging.getLogger(__name__)


class StaleDataError(Exception):
    """The row's version_id moved between our read and our update."""


def backoff_delay(attempt: int) -> float:
    """Seconds to sleep after failed attempt number `attempt` (1-based)."""
    capped = min(
        settings.OPT_LOCK_BASE_DELAY_MS * (2 ** attempt),
        settings.OPT_LOCK_MAX_DELAY_MS,
    )
    jitter = random.uniform(0, settings.OPT_LOCK_JITTER_MS)
    return (capped + jitter) / 1000.0


def with_optimistic_retry(max_retries: int | None = None):
    """
    Re-run a ledger operation while it keeps losing the version race.

    The wrapped coroutine must be safe to call again from scratch, i.e. it
    reloads what it reads. After `max_retries` lost races the caller gets a
    ConcurrencyConflictError (HTTP 409) instead of the internal StaleDataError.
    """
    attempts = max_retries or settings.OPT_LOCK_MAX_RETRIES

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except StaleDataError as exc:
                    if attempt >= attempts:
                        logger.error("%s lost the version race %d times, giving up", func.__name__, attempts)
                        raise ConcurrencyConflictError(
                            "The record was changed by another request. Please retry."
                        ) from exc
                    delay = backoff_delay(attempt)
                    logger.warning(
                        "%s hit a stale version (attempt %d/%d), retrying in %.3fs",
                        func.__name__, attempt, attempts, delay,
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
        return wrapper
    return decorator
