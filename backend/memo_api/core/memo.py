"""Memo Entity — the domain shape of a memo and the values that flow around it.

Invariants:
    - Memo is immutable; every mutation produces a new instance
    - All timestamps are timezone-aware UTC
    - check_invariants() is the single definition of a well-formed memo
    - The description bound counts visible characters: stored markup escapes (&amp;) count once
    - MemoPatch fields are tagged variants (UNSET by default), never bare Optionals

Design Decisions:
    - Domain dataclass separate from the ORM row: core never imports SQLAlchemy
    - MemoDraft shared by create and replace: replace is a full overwrite of the same fields
"""

from dataclasses import dataclass
from datetime import datetime

from memo_api.core.domain_types import (
    MemoId, FieldUpdate, SortField, SortOrder, UNSET,
    TITLE_MIN_LENGTH, TITLE_MAX_LENGTH, DESCRIPTION_MAX_LENGTH,
)
from memo_api.core.errors import FieldViolation
from memo_api.core.sanitize import visible_length


@dataclass(frozen=True)
class Memo:
    """A persisted memo record."""
    id: MemoId
    title: str
    description: str | None
    due_at: datetime
    completed: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MemoDraft:
    """Validated input for create and full replace."""
    title: str
    description: str | None
    due_at: datetime
    completed: bool = False


@dataclass(frozen=True)
class MemoPatch:
    """Validated partial update. Each field is UNSET, CLEAR or SetValue."""
    title: FieldUpdate[str] = UNSET
    description: FieldUpdate[str] = UNSET
    due_at: FieldUpdate[datetime] = UNSET
    completed: FieldUpdate[bool] = UNSET


@dataclass(frozen=True)
class PageLimits:
    """Pagination bounds, built once from settings and handed to the facade."""
    default: int = 10
    maximum: int = 100


@dataclass(frozen=True)
class ListQuery:
    """Validated list parameters."""
    limit: int
    offset: int = 0
    completed: bool | None = None
    sort_by: SortField = SortField.CREATED_AT
    order: SortOrder = SortOrder.DESC


@dataclass(frozen=True)
class MemoPage:
    """One page of a filtered, ordered memo listing."""
    items: list[Memo]
    total: int
    limit: int
    offset: int


def check_invariants(memo: Memo) -> list[FieldViolation]:
    """Return every entity invariant the memo violates (empty when well-formed)."""
    violations: list[FieldViolation] = []
    if not isinstance(memo.title, str) or not memo.title.strip():
        violations.append(FieldViolation("title", "title cannot be empty"))
    elif not TITLE_MIN_LENGTH <= len(memo.title) <= TITLE_MAX_LENGTH:
        violations.append(FieldViolation(
            "title",
            f"title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters",
        ))
    if (
        memo.description is not None
        and visible_length(memo.description) > DESCRIPTION_MAX_LENGTH
    ):
        violations.append(FieldViolation(
            "description",
            f"description must not exceed {DESCRIPTION_MAX_LENGTH} characters",
        ))
    if memo.due_at is None or memo.due_at.tzinfo is None:
        violations.append(FieldViolation("due_at", "due_at must carry a timezone offset"))
    if not isinstance(memo.completed, bool):
        violations.append(FieldViolation("completed", "completed must be a boolean"))
    if memo.updated_at < memo.created_at:
        violations.append(FieldViolation(
            "updated_at", "updated_at cannot precede created_at",
        ))
    return violations
