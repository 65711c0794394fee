"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Wildcard CORS is refused when APP_ENV=production
    - memo_default_page_limit lies within 1..memo_max_page_limit
    - max_request_size and rate_limit_per_minute are positive

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - page_limits() hands the facade a plain struct instead of the whole Settings object
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from memo_api.core.memo import PageLimits


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_version: str = "1.0.0"

    # Database
    database_url: str = (
        "postgresql+asyncpg://memo:memo@db:5432/memos"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 10
    database_max_overflow: int = 10
    database_connect_timeout: int = 30
    # Create tables on startup (local SQLite runs); production runs Alembic instead
    database_create_schema: bool = False

    # API
    cors_origins: list[str] = ["*"]
    max_request_size: int = 262144
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 100

    # Memo listing
    memo_default_page_limit: int = 10
    memo_max_page_limit: int = 100

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @model_validator(mode="after")
    def check_consistency(self):
        if self.app_env == "production" and "*" in self.cors_origins:
            raise ValueError("CORS wildcard (*) is not allowed in production")
        if self.database_pool_size <= 0:
            raise ValueError("database_pool_size must be greater than 0")
        if self.max_request_size <= 0:
            raise ValueError("max_request_size must be greater than 0")
        if self.rate_limit_per_minute < 1:
            raise ValueError("rate_limit_per_minute must be at least 1")
        if self.memo_max_page_limit < 1:
            raise ValueError("memo_max_page_limit must be at least 1")
        if not 1 <= self.memo_default_page_limit <= self.memo_max_page_limit:
            raise ValueError(
                "memo_default_page_limit must be between 1 and memo_max_page_limit",
            )
        return self

    def page_limits(self) -> PageLimits:
        return PageLimits(
            default=self.memo_default_page_limit,
            maximum=self.memo_max_page_limit,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
