"""Query Builder — deterministic, bounded memo listings over the store.

Invariants:
    - total is the FILTERED count, never the collection size
    - offset >= total returns an empty page with the same total (not an error)
    - Store failures propagate as StoreError unchanged

Design Decisions:
    - Plan built by core/query_plan.py (pure); this class only runs it against the store
"""

import logging

from memo_api.core.memo import ListQuery, MemoPage
from memo_api.core.query_plan import plan_list
from memo_api.core.repository_protocols import MemoStore

logger = logging.getLogger(__name__)


class MemoQueryBuilder:
    """Runs list queries against a MemoStore."""

    def __init__(self, store: MemoStore):
        self._store = store

    async def list(self, query: ListQuery) -> MemoPage:
        plan = plan_list(query)
        items, total = await self._store.query(
            plan.filter, plan.ordering, plan.limit, plan.offset,
        )
        logger.info(
            f"Listed {len(items)} memo(s) of {total}",
            extra={"count": len(items), "total": total, "operation": "list"},
        )
        return MemoPage(
            items=items, total=total, limit=plan.limit, offset=plan.offset,
        )
