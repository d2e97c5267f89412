"""
Casket Ledger — Shared Redis connection

Only the idempotency cache and the health probe use Redis; the ledger
itself lives entirely in the database.
"""
import redis.asyncio as aioredis

from casket_ledger.core.config import get_settings

settings = get_settings()

_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    """Lazily connect on first use so the app starts even when Redis is down."""
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
            socket_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
