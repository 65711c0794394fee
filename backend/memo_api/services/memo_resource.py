"""Memo Resource — the single entry point for handlers and page renderers.

Invariants:
    - Seven operations: list, get, create, replace, patch, delete, toggle_complete
    - Order per call: validate → delegate → map failures; validation never touches the store
    - Every call ends in success or exactly one MemoError kind (validation, not_found,
      store, internal); any other exception is wrapped as InternalError
    - Records leaving the facade are re-checked against entity invariants

Design Decisions:
    - PageLimits passed in at construction (built once from Settings in the lifespan);
      the facade never reads configuration on its own
    - _guard as an async context manager: one place for taxonomy mapping and logging,
      so each operation body reads as validate + delegate
"""

import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import UUID

from memo_api.core.errors import (
    ErrorContext, ErrorKind, InternalError, MemoError, MemoNotFoundError,
)
from memo_api.core.memo import Memo, MemoPage, PageLimits, check_invariants
from memo_api.core.repository_protocols import MemoStore
from memo_api.services.mutation_engine import Clock, MemoMutationEngine, utc_now
from memo_api.services.query_builder import MemoQueryBuilder
from memo_api.services.validation import (
    validate_create, validate_list_query, validate_memo_id,
    validate_patch, validate_replace,
)

logger = logging.getLogger(__name__)


class MemoResource:
    """Facade over validation, the query builder and the mutation engine."""

    def __init__(
        self,
        store: MemoStore,
        limits: PageLimits | None = None,
        clock: Clock = utc_now,
    ):
        self._limits = limits or PageLimits()
        self._queries = MemoQueryBuilder(store)
        self._mutations = MemoMutationEngine(store, clock)
        self._store = store

    async def list(self, params: Mapping[str, Any] | None = None) -> MemoPage:
        async with _guard("list"):
            query = validate_list_query(params, self._limits)
            page = await self._queries.list(query)
            for memo in page.items:
                _verify(memo, "list")
            return page

    async def get(self, memo_id: str | UUID) -> Memo:
        async with _guard("get", memo_id):
            mid = validate_memo_id(memo_id)
            memo = await self._store.find_by_id(mid)
            if memo is None:
                raise MemoNotFoundError(str(mid), ErrorContext(operation="get"))
            return _verify(memo, "get")

    async def create(self, payload: Any) -> Memo:
        async with _guard("create"):
            draft = validate_create(payload)
            return _verify(await self._mutations.create(draft), "create")

    async def replace(self, memo_id: str | UUID, payload: Any) -> Memo:
        async with _guard("replace", memo_id):
            mid = validate_memo_id(memo_id)
            draft = validate_replace(payload)
            return _verify(await self._mutations.replace(mid, draft), "replace")

    async def patch(self, memo_id: str | UUID, payload: Any) -> Memo:
        async with _guard("patch", memo_id):
            mid = validate_memo_id(memo_id)
            patch = validate_patch(payload)
            return _verify(await self._mutations.patch(mid, patch), "patch")

    async def delete(self, memo_id: str | UUID) -> None:
        async with _guard("delete", memo_id):
            await self._mutations.delete(validate_memo_id(memo_id))

    async def toggle_complete(self, memo_id: str | UUID) -> Memo:
        async with _guard("toggle_complete", memo_id):
            mid = validate_memo_id(memo_id)
            return _verify(
                await self._mutations.toggle_complete(mid), "toggle_complete",
            )


def _verify(memo: Memo, operation: str) -> Memo:
    problems = check_invariants(memo)
    if problems:
        fields = ", ".join(p.field for p in problems)
        raise InternalError(
            f"Stored memo violates invariants ({fields})",
            ErrorContext(memo_id=str(memo.id), operation=operation),
        )
    return memo


@asynccontextmanager
async def _guard(
    operation: str, memo_id: str | UUID | None = None,
) -> AsyncGenerator[None, None]:
    """Map every failure of one facade call onto the error taxonomy."""
    extra = {"operation": operation}
    if memo_id is not None:
        extra["memo_id"] = str(memo_id)
    try:
        yield
    except MemoError as e:
        e.context.operation = e.context.operation or operation
        extra["error_code"] = e.code
        if e.kind is ErrorKind.VALIDATION:
            logger.info(f"Rejected {operation}: {e.message}", extra=extra)
        elif e.kind is ErrorKind.NOT_FOUND:
            logger.warning(f"{operation} on missing memo", extra=extra)
        elif e.kind is ErrorKind.STORE:
            logger.error(f"{operation} store failure: {e.message}", extra=extra)
        else:
            logger.error(f"{operation} internal error: {e.message}", extra=extra)
        raise
    except Exception as e:
        extra["error_code"] = "INTERNAL_ERROR"
        logger.error(f"Unexpected error in {operation}: {e}", extra=extra, exc_info=True)
        raise InternalError(
            f"Unexpected error during {operation}",
            ErrorContext(
                memo_id=str(memo_id) if memo_id is not None else None,
                operation=operation,
            ),
        ) from e
