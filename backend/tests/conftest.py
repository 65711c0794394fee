"""Root conftest — shared test configuration."""

import os

# Tests never touch a real database server
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("LOG_FORMAT", "text")
# Shared app stays unthrottled; rate-limit tests mount the middleware with their own quota
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
