"""
Casket Ledger test fixtures

Settings are read once at import, so the environment is pinned here before
anything from casket_ledger is imported: an in-memory SQLite database, no
idempotency middleware or metrics on the shared app, and near-zero backoff.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["IDEMPOTENCY_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "false"
os.environ["OPT_LOCK_BASE_DELAY_MS"] = "1"
os.environ["OPT_LOCK_MAX_DELAY_MS"] = "2"
os.environ["OPT_LOCK_JITTER_MS"] = "0"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from casket_ledger.db.database import Base, get_db
from casket_ledger.main import app


class FakeRedis:
    """In-memory stand-in for the redis.asyncio calls the service makes."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def ping(self):
        return True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_item(client):
    """POST /items with sensible defaults; returns the created item body."""
    async def _make(**overrides) -> dict:
        body = {"kind": "CASKET", "name": "Monticello", "on_hand": 5, "target_quantity": 5}
        body.update(overrides)
        r = await client.post("/items", json=body)
        assert r.status_code == 201, f"Item create failed: {r.text}"
        return r.json()
    return _make
