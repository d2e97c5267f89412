"""
Casket Ledger — Idempotency-Key middleware

A retried "place order" must not sell a second casket. Clients attach an
Idempotency-Key header to ledger POSTs; the first response for a key is kept
in Redis and any repeat of the same request gets that response back verbatim
instead of running the ledger operation again.
"""
import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from casket_ledger.core.config import get_settings
from casket_ledger.core.redis_client import get_redis
from casket_ledger.domain.errors import ConcurrencyConflictError

settings = get_settings()
logger = logging.getLogger(__name__)

KEY_HEADER = "Idempotency-Key"
REPLAY_HEADER = "X-Idempotency-Replay"
CACHE_PREFIX = "idempotent:"
GUARDED_METHODS = {"POST", "PUT", "PATCH"}
GUARDED_PATHS = ("/items/", "/orders/", "/special-orders")
# errors that ask the client to try again must not be pinned to the key
RETRYABLE_ERRORS = {ConcurrencyConflictError.code}


def cache_key(request: Request, idem_key: str) -> str:
    # same key on another endpoint or item is a different request
    return f"{CACHE_PREFIX}{request.method}:{request.url.path}:{idem_key}"


async def _drain(response: Response) -> bytes:
    chunks = [chunk async for chunk in response.body_iterator]
    return b"".join(chunks)


def _decode(body: bytes):
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


def _is_final(status_code: int, body) -> bool:
    """Rejections (4xx) are final, except lost version races; server errors never are."""
    if status_code >= 500:
        return False
    return not (isinstance(body, dict) and body.get("error") in RETRYABLE_ERRORS)


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Replays the stored response for a repeated (method, path, Idempotency-Key)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        idem_key = request.headers.get(KEY_HEADER)
        guarded = request.method in GUARDED_METHODS and request.url.path.startswith(GUARDED_PATHS)
        if not idem_key or not guarded:
            return await call_next(request)

        redis = get_redis()
        key = cache_key(request, idem_key)

        stored = await redis.get(key)
        if stored:
            snapshot = json.loads(stored)
            logger.info("Replaying %s %s for %s=%s", request.method, request.url.path, KEY_HEADER, idem_key)
            return JSONResponse(
                content=snapshot["body"],
                status_code=snapshot["status_code"],
                headers={REPLAY_HEADER: "true"},
            )

        response = await call_next(request)
        body = await _drain(response)

        decoded = _decode(body)
        if _is_final(response.status_code, decoded):
            await redis.setex(
                key,
                settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                json.dumps({"body": decoded, "status_code": response.status_code}),
            )
        else:
            logger.info("Not storing %d response for %s=%s", response.status_code, KEY_HEADER, idem_key)

        return Response(
            content=body,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
