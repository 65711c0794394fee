"""Service test fixtures — async SQLite store, MemoResource and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - The resource uses a stepping clock: each reading is one second after the last
    - The client's get_memo_resource / get_db_manager dependencies point at the test DB

Design Decisions:
    - SQLite in-memory: fast, no external dependency, enough for store/route tests
      (FOR UPDATE is a no-op there; concurrent writers are covered on a file DB)
    - StaticPool: every session shares the one in-memory connection
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from memo_api.api.dependencies import get_db_manager, get_memo_resource
from memo_api.core.memo import PageLimits
from memo_api.infrastructure.database import DatabaseSessionManager, create_schema
from memo_api.infrastructure.memo_store import SqlAlchemyMemoStore
from memo_api.main import app
from memo_api.services.memo_resource import MemoResource


class SteppingClock:
    """Deterministic clock: starts at `start`, advances `step` per call."""

    def __init__(
        self,
        start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_manager(test_engine):
    manager = DatabaseSessionManager.from_engine(test_engine)
    await create_schema(manager)
    return manager


@pytest.fixture
def store(db_manager):
    return SqlAlchemyMemoStore(db_manager)


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def resource(store, clock):
    return MemoResource(store, PageLimits(default=10, maximum=100), clock=clock)


@pytest.fixture
async def client(resource, db_manager):
    """FastAPI test client wired to the test resource."""
    app.dependency_overrides[get_memo_resource] = lambda: resource
    app.dependency_overrides[get_db_manager] = lambda: db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def make_payload():
    """Build a valid create payload, overriding any field."""
    def _make(**overrides):
        payload = {
            "title": "Pay rent",
            "due_at": "2025-01-01T00:00:00Z",
        }
        payload.update(overrides)
        return payload
    return _make
