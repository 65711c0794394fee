"""Memo Mutations — pure record transitions for create, replace, patch and toggle.

Invariants:
    - Every function is PURE: takes the current record and a clock reading, returns a new record
    - id and created_at are never changed after new_memo()
    - updated_at strictly increases on every transition (next_updated_at)
    - apply_patch validates the merged record; a violation raises before anything is written

Design Decisions:
    - Pure transitions passed as callbacks to MemoStore.update_if_exists: the store owns
      atomicity, the core owns the rules (functional core, imperative shell)
    - Strict increase enforced with a 1µs bump: two mutations inside one clock tick
      must still be ordered
"""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta

from memo_api.core.domain_types import MemoId, Clear, SetValue, Unset
from memo_api.core.errors import FieldViolation, MemoValidationError
from memo_api.core.memo import Memo, MemoDraft, MemoPatch, check_invariants

_TICK = timedelta(microseconds=1)


def next_updated_at(previous: datetime, now: datetime) -> datetime:
    """Timestamp for a mutation: `now`, or just after `previous` if the clock lags."""
    return now if now > previous else previous + _TICK


def new_memo(draft: MemoDraft, now: datetime) -> Memo:
    """Build a fresh active record from a validated draft."""
    return Memo(
        id=MemoId(uuid.uuid4()),
        title=draft.title,
        description=draft.description,
        due_at=draft.due_at,
        completed=False,
        created_at=now,
        updated_at=now,
    )


def apply_replace(current: Memo, draft: MemoDraft, now: datetime) -> Memo:
    """Full overwrite: every mutable field takes the draft's value."""
    return replace(
        current,
        title=draft.title,
        description=draft.description,
        due_at=draft.due_at,
        completed=draft.completed,
        updated_at=next_updated_at(current.updated_at, now),
    )


def apply_patch(current: Memo, patch: MemoPatch, now: datetime) -> Memo:
    """Merge only the fields present in the patch. Raises MemoValidationError."""
    changes: dict = {}
    violations: list[FieldViolation] = []
    for name in ("title", "description", "due_at", "completed"):
        update = getattr(patch, name)
        if isinstance(update, Unset):
            continue
        if isinstance(update, Clear):
            if name != "description":
                violations.append(FieldViolation(name, f"{name} cannot be cleared"))
                continue
            changes[name] = None
        elif isinstance(update, SetValue):
            changes[name] = update.value
    if violations:
        raise MemoValidationError(violations)

    merged = replace(
        current, **changes,
        updated_at=next_updated_at(current.updated_at, now),
    )
    problems = check_invariants(merged)
    if problems:
        raise MemoValidationError(problems)
    return merged


def apply_toggle(current: Memo, now: datetime) -> Memo:
    """Flip completion unconditionally."""
    return replace(
        current,
        completed=not current.completed,
        updated_at=next_updated_at(current.updated_at, now),
    )
