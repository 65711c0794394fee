"""Query Plan — turns validated list parameters into a deterministic fetch description.

Invariants:
    - plan_list() is PURE and deterministic
    - Ordering always ends with ("id", ASC): ties on the primary key never reorder pages
    - The completed filter is part of the plan, so the store counts the filtered view

Design Decisions:
    - Plan is store-agnostic data: the SQL store compiles it, tests assert on it directly
    - id tiebreak is ascending regardless of the requested order (stable page boundaries)
"""

from dataclasses import dataclass

from memo_api.core.domain_types import SortOrder
from memo_api.core.memo import ListQuery

TIEBREAK_FIELD: str = "id"


@dataclass(frozen=True)
class MemoFilter:
    completed: bool | None = None


@dataclass(frozen=True)
class OrderTerm:
    field: str
    order: SortOrder


@dataclass(frozen=True)
class QueryPlan:
    filter: MemoFilter
    ordering: tuple[OrderTerm, ...]
    limit: int
    offset: int


def plan_list(query: ListQuery) -> QueryPlan:
    """Build the plan for one list call."""
    return QueryPlan(
        filter=MemoFilter(completed=query.completed),
        ordering=(
            OrderTerm(query.sort_by.value, query.order),
            OrderTerm(TIEBREAK_FIELD, SortOrder.ASC),
        ),
        limit=query.limit,
        offset=query.offset,
    )
