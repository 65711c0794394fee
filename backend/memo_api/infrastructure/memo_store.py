"""SQL Memo Store — SQLAlchemy implementation of the MemoStore protocol.

Invariants:
    - One session (one transaction) per store call; nothing cached between calls
    - update_if_exists holds the row lock for the whole read-modify-write
      (SELECT ... FOR UPDATE on PostgreSQL, BEGIN IMMEDIATE on SQLite)
    - delete_if_exists is one DELETE statement; rowcount decides the outcome
    - query counts the FILTERED rows and orders by the plan, id tiebreak included
    - Rows read back are normalized to aware UTC datetimes (SQLite drops tzinfo)

Design Decisions:
    - Ordering compiled from QueryPlan terms through an explicit column map:
      only allow-listed columns can ever reach ORDER BY
    - Callback exceptions (e.g. MemoValidationError from a patch) propagate untouched;
      the session closes without commit, so the stored row is unchanged
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import delete, func, select

from memo_api.core.domain_types import MemoId, SortOrder
from memo_api.core.memo import Memo
from memo_api.core.query_plan import MemoFilter, OrderTerm
from memo_api.infrastructure.database import DatabaseSessionManager
from memo_api.models.memo import MemoRow

logger = logging.getLogger(__name__)

_ORDERABLE_COLUMNS = {
    "id": MemoRow.id,
    "title": MemoRow.title,
    "due_at": MemoRow.due_at,
    "created_at": MemoRow.created_at,
    "updated_at": MemoRow.updated_at,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def row_to_memo(row: MemoRow) -> Memo:
    return Memo(
        id=MemoId(row.id),
        title=row.title,
        description=row.description,
        due_at=_as_utc(row.due_at),
        completed=row.completed,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _copy_onto(row: MemoRow, memo: Memo) -> None:
    row.title = memo.title
    row.description = memo.description
    row.due_at = memo.due_at
    row.completed = memo.completed
    row.updated_at = memo.updated_at


def _filtered(stmt, filter: MemoFilter):
    if filter.completed is not None:
        stmt = stmt.where(MemoRow.completed == filter.completed)
    return stmt


def _order_by(ordering: tuple[OrderTerm, ...]) -> list:
    columns = []
    for term in ordering:
        column = _ORDERABLE_COLUMNS.get(term.field)
        if column is None:
            raise ValueError(f"Column '{term.field}' is not orderable")
        columns.append(column.asc() if term.order == SortOrder.ASC else column.desc())
    return columns


class SqlAlchemyMemoStore:
    """MemoStore backed by the `memos` table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def insert(self, memo: Memo) -> Memo:
        async with self._db.session("insert") as session:
            row = MemoRow(
                id=memo.id,
                title=memo.title,
                description=memo.description,
                due_at=memo.due_at,
                completed=memo.completed,
                created_at=memo.created_at,
                updated_at=memo.updated_at,
            )
            session.add(row)
            await session.commit()
            return row_to_memo(row)

    async def find_by_id(self, memo_id: MemoId) -> Memo | None:
        async with self._db.session("find_by_id") as session:
            row = await session.get(MemoRow, memo_id)
            return row_to_memo(row) if row else None

    async def update_if_exists(
        self, memo_id: MemoId, fn: Callable[[Memo], Memo],
    ) -> Memo | None:
        async with self._db.session("update") as session:
            result = await session.execute(
                select(MemoRow).where(MemoRow.id == memo_id).with_for_update(),
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            updated = fn(row_to_memo(row))
            _copy_onto(row, updated)
            await session.commit()
            return row_to_memo(row)

    async def delete_if_exists(self, memo_id: MemoId) -> bool:
        async with self._db.session("delete") as session:
            result = await session.execute(
                delete(MemoRow).where(MemoRow.id == memo_id),
            )
            await session.commit()
            return result.rowcount > 0

    async def query(
        self,
        filter: MemoFilter,
        ordering: tuple[OrderTerm, ...],
        limit: int,
        offset: int,
    ) -> tuple[list[Memo], int]:
        async with self._db.session("query") as session:
            total = await session.scalar(
                _filtered(select(func.count()).select_from(MemoRow), filter),
            )
            result = await session.execute(
                _filtered(select(MemoRow), filter)
                .order_by(*_order_by(ordering))
                .limit(limit)
                .offset(offset),
            )
            rows = result.scalars().all()
        logger.debug(
            f"Memo query returned {len(rows)} of {total}",
            extra={"count": len(rows), "total": total},
        )
        return [row_to_memo(r) for r in rows], int(total or 0)
