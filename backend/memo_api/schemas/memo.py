"""Memo Schemas — Pydantic models with field-level validation for the memo boundary.

Invariants:
    - MemoCreate/MemoReplace.title: trimmed, 1-200 chars
    - description: <= 1000 chars as sent, then sanitized HTML
    - due_at: ISO-8601 string or datetime WITH offset, normalized to UTC
    - MemoPatchPayload: every field optional; model_fields_set tells absent from null
    - MemoListParams: out-of-domain values fail, never clamp

Design Decisions:
    - Literal types for sort_by/order: Pydantic reports the allowed values natively
    - field_validator for side-effect-free transforms (strip, sanitize, UTC) — keeps models pure
    - Patch validators reject null only for non-clearable fields; they run only for keys
      the client actually sent (Pydantic skips validators on defaults)
    - max page limit arrives through validation context, not a module global
"""

from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from pydantic import (
    BaseModel, ConfigDict, Field, ValidationInfo, field_validator,
)

from memo_api.core.domain_types import (
    TITLE_MIN_LENGTH, TITLE_MAX_LENGTH, DESCRIPTION_MAX_LENGTH,
)
from memo_api.core.memo import Memo
from memo_api.core.sanitize import sanitize_html


# --- Shared field rules -------------------------------------------------------

def _clean_title(v: str) -> str:
    v = v.strip()
    if len(v) < TITLE_MIN_LENGTH:
        raise ValueError("title cannot be empty or whitespace")
    if len(v) > TITLE_MAX_LENGTH:
        raise ValueError(
            f"title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters",
        )
    return v


def _clean_description(v: str) -> str:
    # Bound applies to what the client sent; escaping may lengthen the stored markup
    if len(v) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(
            f"description must not exceed {DESCRIPTION_MAX_LENGTH} characters",
        )
    return sanitize_html(v)


def _require_timestamp_input(v: object) -> object:
    # Numeric epochs would be coerced silently; only text or datetimes are accepted
    if v is not None and not isinstance(v, (str, datetime)):
        raise ValueError("due_at must be an ISO-8601 timestamp with offset")
    return v


def _to_utc(v: datetime) -> datetime:
    if v.tzinfo is None or v.utcoffset() is None:
        raise ValueError("due_at must include a timezone offset")
    return v.astimezone(timezone.utc)


# --- Write payloads -----------------------------------------------------------

class MemoCreate(BaseModel):
    """Create payload — completed is not accepted; new memos start open."""
    title: str
    description: str | None = None
    due_at: datetime

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def sanitize_description(cls, v: str | None) -> str | None:
        return None if v is None else _clean_description(v)

    @field_validator("due_at", mode="before")
    @classmethod
    def due_at_is_text(cls, v: object) -> object:
        return _require_timestamp_input(v)

    @field_validator("due_at")
    @classmethod
    def due_at_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)


class MemoReplace(MemoCreate):
    """Full replace — an omitted completed means False, not 'unchanged'."""
    completed: bool = False


class MemoPatchPayload(BaseModel):
    """Partial update — only keys present in the payload are merged."""
    title: str | None = None
    description: str | None = None
    due_at: datetime | None = None
    completed: bool | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("title cannot be null")
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def sanitize_description(cls, v: str | None) -> str | None:
        return None if v is None else _clean_description(v)

    @field_validator("due_at", mode="before")
    @classmethod
    def due_at_is_text(cls, v: object) -> object:
        if v is None:
            raise ValueError("due_at cannot be null")
        return _require_timestamp_input(v)

    @field_validator("due_at")
    @classmethod
    def due_at_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)

    @field_validator("completed", mode="before")
    @classmethod
    def completed_not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("completed cannot be null")
        return v


# --- Query parameters ---------------------------------------------------------

class MemoListParams(BaseModel):
    """List query — limit is checked against the configured maximum via context."""
    model_config = ConfigDict(extra="ignore")

    limit: int | None = Field(None, ge=1)
    offset: int = Field(0, ge=0)
    completed: bool | None = None
    sort_by: Literal["created_at", "updated_at", "due_at", "title"] = "created_at"
    order: Literal["asc", "desc"] = "desc"

    @field_validator("limit")
    @classmethod
    def limit_within_maximum(cls, v: int | None, info: ValidationInfo) -> int | None:
        maximum = (info.context or {}).get("max_limit")
        if v is not None and maximum is not None and v > maximum:
            raise ValueError(f"limit must be between 1 and {maximum}")
        return v


# --- Responses ----------------------------------------------------------------

class MemoResponse(BaseModel):
    """Wire shape of a memo. description null and "" are distinct."""
    id: UUID
    title: str
    description: str | None
    due_at: datetime
    completed: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_memo(cls, memo: Memo) -> "MemoResponse":
        return cls(
            id=memo.id,
            title=memo.title,
            description=memo.description,
            due_at=memo.due_at,
            completed=memo.completed,
            created_at=memo.created_at,
            updated_at=memo.updated_at,
        )


class MemoListResponse(BaseModel):
    data: list[MemoResponse]
    total: int
    limit: int
    offset: int
