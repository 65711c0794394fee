"""Mutation Engine — create, replace, patch, toggle and delete against the store.

Invariants:
    - Every mutation is ONE atomic store call (insert, update_if_exists, delete_if_exists)
    - Missing ids raise MemoNotFoundError for replace, patch, toggle and delete alike
    - No record is held between calls; each operation re-reads through the store
    - A patch whose merged record breaks an invariant raises before commit (row unchanged)

Design Decisions:
    - Rules live in core/mutations.py as pure functions; the engine binds them to the
      clock and hands them to the store as the read-modify-write callback
    - Injectable clock: tests drive updated_at deterministically
"""

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Callable

from memo_api.core.domain_types import MemoId
from memo_api.core.errors import MemoNotFoundError, ErrorContext
from memo_api.core.memo import Memo, MemoDraft, MemoPatch
from memo_api.core.mutations import (
    new_memo, apply_replace, apply_patch, apply_toggle,
)
from memo_api.core.repository_protocols import MemoStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoMutationEngine:
    """Applies memo transitions through a MemoStore."""

    def __init__(self, store: MemoStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    async def create(self, draft: MemoDraft) -> Memo:
        memo = await self._store.insert(new_memo(draft, self._clock()))
        logger.info(
            "Memo created", extra={"memo_id": str(memo.id), "operation": "create"},
        )
        return memo

    async def replace(self, memo_id: MemoId, draft: MemoDraft) -> Memo:
        return await self._update(
            memo_id, "replace", partial(apply_replace, draft=draft, now=self._clock()),
        )

    async def patch(self, memo_id: MemoId, patch: MemoPatch) -> Memo:
        return await self._update(
            memo_id, "patch", partial(apply_patch, patch=patch, now=self._clock()),
        )

    async def toggle_complete(self, memo_id: MemoId) -> Memo:
        return await self._update(
            memo_id, "toggle_complete", partial(apply_toggle, now=self._clock()),
        )

    async def delete(self, memo_id: MemoId) -> None:
        if not await self._store.delete_if_exists(memo_id):
            raise _not_found(memo_id, "delete")
        logger.info(
            "Memo deleted", extra={"memo_id": str(memo_id), "operation": "delete"},
        )

    async def _update(
        self, memo_id: MemoId, operation: str, fn: Callable[[Memo], Memo],
    ) -> Memo:
        memo = await self._store.update_if_exists(memo_id, fn)
        if memo is None:
            raise _not_found(memo_id, operation)
        logger.info(
            f"Memo {operation} applied",
            extra={"memo_id": str(memo_id), "operation": operation},
        )
        return memo


def _not_found(memo_id: MemoId, operation: str) -> MemoNotFoundError:
    return MemoNotFoundError(str(memo_id), ErrorContext(operation=operation))
