"""Memo API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MemoError → structured JSON responses
    - CORS, rate limit and body size limit configured from settings (not hardcoded)
    - Settings, database, store and MemoResource built ONCE in the lifespan and kept
      on app.state; nothing reads ambient global state per request

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Four error handler layers: MemoError (domain), RequestValidationError
      (Pydantic), HTTPException (routing, body size), Exception (catch-all);
      all share one envelope and never leak internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from memo_api.api.error_handlers import register_error_handlers
from memo_api.api.middleware import (
    BodySizeLimitMiddleware, RateLimitMiddleware, SecurityHeadersMiddleware,
)
from memo_api.api.routes import health, memos
from memo_api.config import get_settings
from memo_api.infrastructure.database import DatabaseSessionManager, create_schema
from memo_api.infrastructure.memo_store import SqlAlchemyMemoStore
from memo_api.infrastructure.observability import setup_logging
from memo_api.infrastructure.rate_limiter import SlidingWindowRateLimiter
from memo_api.services.memo_resource import MemoResource

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        connect_timeout=settings.database_connect_timeout,
    )
    if settings.database_create_schema:
        await create_schema(db_manager)
    app.state.db_manager = db_manager
    app.state.memo_resource = MemoResource(
        SqlAlchemyMemoStore(db_manager), settings.page_limits(),
    )
    logger.info("Memo API started")
    yield
    logger.info("Memo API shutting down")
    await db_manager.dispose()


app = FastAPI(
    title="Memo API", version=get_settings().app_version, lifespan=lifespan,
)

# Middleware — last added runs first: headers, CORS, quota, body size, then routes
settings = get_settings()
app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.max_request_size)
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        limiter=SlidingWindowRateLimiter(settings.rate_limit_per_minute, window=60.0),
    )
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(memos.router)

register_error_handlers(app)
