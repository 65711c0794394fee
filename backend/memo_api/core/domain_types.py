"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - MemoId wraps UUID — never use bare UUID in domain logic
    - TITLE_MAX_LENGTH / DESCRIPTION_MAX_LENGTH are the single source of truth for bounds
    - SortField is the complete allow-list of sortable columns
    - A patch field is exactly one of Unset, Clear, SetValue — never a bare Optional

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: query-string values map 1:1 to members, serialize without custom encoders
    - Unset/Clear as singleton instances: identity checks (`is UNSET`) read clearly
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, NewType, TypeVar, Union
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

MemoId = NewType("MemoId", UUID)


# ─── Bounds ──────────────────────────────────────────────────────

TITLE_MIN_LENGTH: int = 1
TITLE_MAX_LENGTH: int = 200
DESCRIPTION_MAX_LENGTH: int = 1000


# ─── Enums ───────────────────────────────────────────────────────

class SortField(str, Enum):
    """Columns a memo list may be ordered by."""
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DUE_AT = "due_at"
    TITLE = "title"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ─── Patch field variants ────────────────────────────────────────

T = TypeVar("T")


class Unset:
    """Field absent from the payload: leave the stored value alone."""
    _instance: "Unset | None" = None

    def __new__(cls) -> "Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"


class Clear:
    """Field explicitly null: clear the stored value."""
    _instance: "Clear | None" = None

    def __new__(cls) -> "Clear":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEAR"


@dataclass(frozen=True)
class SetValue(Generic[T]):
    """Field present with a value: replace the stored value."""
    value: T


UNSET = Unset()
CLEAR = Clear()

FieldUpdate = Union[Unset, Clear, SetValue[T]]
