"""Boundary Protocols — contract between the memo core and its store.

Invariants:
    - Core NEVER imports from the shell — dependency arrows point inward only
    - update_if_exists applies `fn` inside one atomic read-modify-write
    - delete_if_exists is a single conditional delete; returns whether a row went away
    - Every method raises StoreError (never a driver exception) on persistence failure

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO, but the callbacks passed to
      update_if_exists are pure core functions
"""

from typing import Callable, Protocol

from memo_api.core.domain_types import MemoId
from memo_api.core.memo import Memo
from memo_api.core.query_plan import MemoFilter, OrderTerm


class MemoStore(Protocol):
    """Contract for memo persistence — implemented by the shell."""
    async def insert(self, memo: Memo) -> Memo: ...
    async def find_by_id(self, memo_id: MemoId) -> Memo | None: ...
    async def update_if_exists(
        self, memo_id: MemoId, fn: Callable[[Memo], Memo],
    ) -> Memo | None: ...
    async def delete_if_exists(self, memo_id: MemoId) -> bool: ...
    async def query(
        self,
        filter: MemoFilter,
        ordering: tuple[OrderTerm, ...],
        limit: int,
        offset: int,
    ) -> tuple[list[Memo], int]: ...
