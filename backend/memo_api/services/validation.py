"""Validation Layer — untrusted payloads and query maps in, typed core values out.

Invariants:
    - Pure: no IO, no store access, nothing partially applied
    - Every violated field is reported in one MemoValidationError (Pydantic collects all)
    - Patch keys absent from the payload become UNSET; explicit null becomes CLEAR
    - Malformed memo ids fail here, before any store call

Design Decisions:
    - Pydantic schemas own per-field rules; this module owns the mapping to core types
      and to the closed error taxonomy (API boundary vs domain boundary)
    - model_fields_set is the presence signal: it is the only Pydantic surface that
      distinguishes "sent as null" from "not sent"
"""

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ValidationError as PydanticValidationError

from memo_api.core.domain_types import (
    MemoId, SortField, SortOrder, CLEAR, UNSET, FieldUpdate, SetValue,
)
from memo_api.core.errors import FieldViolation, MemoValidationError
from memo_api.core.memo import ListQuery, MemoDraft, MemoPatch, PageLimits
from memo_api.schemas.memo import (
    MemoCreate, MemoReplace, MemoPatchPayload, MemoListParams,
)


def _violations(exc: PydanticValidationError) -> list[FieldViolation]:
    violations = []
    for e in exc.errors():
        field = ".".join(str(loc) for loc in e["loc"]) or "body"
        reason = e["msg"].removeprefix("Value error, ")
        violations.append(FieldViolation(field, reason))
    return violations


def _parse(model: type[BaseModel], data: Any, **kwargs) -> Any:
    try:
        return model.model_validate(data, **kwargs)
    except PydanticValidationError as e:
        raise MemoValidationError(_violations(e)) from None


def validate_memo_id(raw: str | UUID) -> MemoId:
    if isinstance(raw, UUID):
        return MemoId(raw)
    try:
        return MemoId(UUID(str(raw)))
    except ValueError:
        raise MemoValidationError.single("id", "id must be a valid UUID") from None


def validate_create(payload: Any) -> MemoDraft:
    body = _parse(MemoCreate, payload)
    return MemoDraft(
        title=body.title, description=body.description, due_at=body.due_at,
    )


def validate_replace(payload: Any) -> MemoDraft:
    body = _parse(MemoReplace, payload)
    return MemoDraft(
        title=body.title,
        description=body.description,
        due_at=body.due_at,
        completed=body.completed,
    )


def _field_update(body: MemoPatchPayload, name: str) -> FieldUpdate:
    if name not in body.model_fields_set:
        return UNSET
    value = getattr(body, name)
    return CLEAR if value is None else SetValue(value)


def validate_patch(payload: Any) -> MemoPatch:
    body = _parse(MemoPatchPayload, payload)
    return MemoPatch(
        title=_field_update(body, "title"),
        description=_field_update(body, "description"),
        due_at=_field_update(body, "due_at"),
        completed=_field_update(body, "completed"),
    )


def validate_list_query(
    params: Mapping[str, Any] | None, limits: PageLimits,
) -> ListQuery:
    """Validate a raw query-string map. Unknown keys are ignored."""
    body = _parse(
        MemoListParams, dict(params or {}),
        context={"max_limit": limits.maximum},
    )
    return ListQuery(
        limit=body.limit if body.limit is not None else limits.default,
        offset=body.offset,
        completed=body.completed,
        sort_by=SortField(body.sort_by),
        order=SortOrder(body.order),
    )
