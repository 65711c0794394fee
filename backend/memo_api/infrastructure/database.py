"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - All SQLAlchemy exceptions mapped to StoreError (core/errors.py); driver text only logged
    - On SQLite every transaction starts with BEGIN IMMEDIATE: one writer at a time,
      so row-level read-modify-write is atomic without FOR UPDATE

Design Decisions:
    - Manager built in the FastAPI lifespan and kept on app.state (no module singleton,
      no global import side effects)
    - expire_on_commit=False: returned rows stay readable after commit in async context
    - Pool sizing only for server databases: SQLite pools reject size arguments
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import event, text

from memo_api.core.errors import StoreError

logger = logging.getLogger(__name__)


def _engine_options(
    database_url: str, pool_size: int, max_overflow: int, connect_timeout: int,
) -> dict:
    if database_url.startswith("sqlite"):
        return {}
    options = {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }
    if database_url.startswith("postgresql+asyncpg"):
        options["connect_args"] = {"timeout": connect_timeout}
    return options


def _begin_immediate_on_sqlite(engine: AsyncEngine) -> None:
    """Take SQLite's write lock at BEGIN so read-modify-write calls serialize.

    The driver otherwise defers BEGIN until the first write, letting two
    transactions read the same row before either updates it.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _driver_autocommit(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 10,
        connect_timeout: int = 30,
    ):
        engine = create_async_engine(
            database_url,
            **_engine_options(database_url, pool_size, max_overflow, connect_timeout),
        )
        self._bind(engine)

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "DatabaseSessionManager":
        """Wrap an existing engine (tests, scripts)."""
        manager = cls.__new__(cls)
        manager._bind(engine)
        return manager

    def _bind(self, engine: AsyncEngine) -> None:
        self.engine = engine
        if engine.dialect.name == "sqlite":
            _begin_immediate_on_sqlite(engine)
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self, operation: str = "query") -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}", extra={"operation": operation})
            raise StoreError("Integrity constraint violated", operation) from None
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}", extra={"operation": operation})
            raise StoreError("Connection or operational error", operation) from None
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}", extra={"operation": operation})
            raise StoreError("Database driver error", operation) from None
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}", extra={"operation": operation})
            raise StoreError("Database operation failed", operation) from None
        except OSError as e:
            # Connection refused / timeouts raised by the driver before SQLAlchemy wraps them
            await session.rollback()
            logger.error(f"DB connection error: {e}", extra={"operation": operation})
            raise StoreError("Database unreachable", operation) from None
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session("health_check") as db:
                await db.execute(text("SELECT 1"))
            return True
        except StoreError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


async def create_schema(manager: DatabaseSessionManager) -> None:
    """Create all tables directly (development with SQLite; production uses Alembic)."""
    from memo_api.db.base import Base
    import memo_api.models  # noqa: F401

    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
