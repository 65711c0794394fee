"""Memo Routes — REST adapter over the MemoResource facade.

Invariants:
    - Handlers only translate HTTP ⇄ facade calls; validation happens in the facade
    - Bodies arrive as raw JSON objects so every field violation is reported at once
    - Path ids arrive as strings; malformed ids are a 400 from the facade, not a 422
    - DELETE returns 204; POST returns 201; everything else 200

Design Decisions:
    - Raw query_params passed through: unknown keys ignored, out-of-domain values rejected
      by the facade instead of FastAPI's own Query() coercion
    - Toggle is PATCH /{id}/complete with no body: it never accepts a target value
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response, status

from memo_api.api.dependencies import get_memo_resource
from memo_api.schemas.memo import MemoListResponse, MemoResponse
from memo_api.services.memo_resource import MemoResource

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/memos", tags=["memos"])


@router.get("", response_model=MemoListResponse)
async def list_memos(
    request: Request, resource: MemoResource = Depends(get_memo_resource),
):
    """List memos with pagination, completion filter and sorting."""
    page = await resource.list(dict(request.query_params))
    return MemoListResponse(
        data=[MemoResponse.from_memo(m) for m in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{memo_id}", response_model=MemoResponse)
async def get_memo(
    memo_id: str, resource: MemoResource = Depends(get_memo_resource),
):
    """Get one memo."""
    return MemoResponse.from_memo(await resource.get(memo_id))


@router.post(
    "", response_model=MemoResponse, status_code=status.HTTP_201_CREATED,
)
async def create_memo(
    payload: Any = Body(...),
    resource: MemoResource = Depends(get_memo_resource),
):
    """Create a memo. New memos always start not completed."""
    return MemoResponse.from_memo(await resource.create(payload))


@router.put("/{memo_id}", response_model=MemoResponse)
async def replace_memo(
    memo_id: str,
    payload: Any = Body(...),
    resource: MemoResource = Depends(get_memo_resource),
):
    """Replace every mutable field. An omitted completed resets to false."""
    return MemoResponse.from_memo(await resource.replace(memo_id, payload))


@router.patch("/{memo_id}", response_model=MemoResponse)
async def patch_memo(
    memo_id: str,
    payload: Any = Body(...),
    resource: MemoResource = Depends(get_memo_resource),
):
    """Merge only the fields present in the body."""
    return MemoResponse.from_memo(await resource.patch(memo_id, payload))


@router.patch("/{memo_id}/complete", response_model=MemoResponse)
async def toggle_complete(
    memo_id: str, resource: MemoResource = Depends(get_memo_resource),
):
    """Flip the completion flag."""
    return MemoResponse.from_memo(await resource.toggle_complete(memo_id))


@router.delete("/{memo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_memo(
    memo_id: str, resource: MemoResource = Depends(get_memo_resource),
):
    """Delete a memo permanently."""
    await resource.delete(memo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
