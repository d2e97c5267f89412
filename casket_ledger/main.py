"""
Casket Ledger — FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from casket_ledger.core.config import get_settings
from casket_ledger.core.redis_client import close_redis
from casket_ledger.db.database import engine, Base
from casket_ledger.domain.errors import LedgerError
from casket_ledger.middleware.idempotency import IdempotencyMiddleware
from casket_ledger.models import inventory, order  # noqa: F401  registers tables on Base
from casket_ledger.api import health, items, orders, special_orders, summary, suppliers

settings = get_settings()
logging.getLogger("casket_ledger").setLevel(settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Casket Ledger",
    description="Casket and urn inventory ledger with optimistic locking and order triage.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])

if settings.IDEMPOTENCY_ENABLED:
    app.add_middleware(IdempotencyMiddleware)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


app.include_router(items.router)
app.include_router(orders.router)
app.include_router(special_orders.router)
app.include_router(suppliers.router)
app.include_router(summary.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
