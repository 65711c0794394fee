"""Concurrent Mutations — read-modify-write calls on one id never lose updates.

Invariants:
    - N concurrent toggles flip completed exactly N times
    - Concurrent patches on different fields all land in the final record
    - updated_at stays strictly increasing across interleaved writers

Design Decisions:
    - File-backed SQLite through the production DatabaseSessionManager constructor:
      each session gets its own pooled connection, so writers really contend
"""

import asyncio

import pytest

from memo_api.infrastructure.database import DatabaseSessionManager, create_schema
from memo_api.infrastructure.memo_store import SqlAlchemyMemoStore
from memo_api.services.memo_resource import MemoResource


@pytest.fixture
async def file_resource(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'memos.db'}")
    await create_schema(manager)
    yield MemoResource(SqlAlchemyMemoStore(manager))
    await manager.dispose()


async def test_concurrent_toggles_all_apply(file_resource, make_payload):
    memo = await file_resource.create(make_payload())

    results = await asyncio.gather(
        *(file_resource.toggle_complete(memo.id) for _ in range(6)),
    )

    final = await file_resource.get(memo.id)
    assert final.completed is False
    assert sorted(r.completed for r in results) == [False] * 3 + [True] * 3
    assert len({r.updated_at for r in results}) == 6


async def test_odd_number_of_concurrent_toggles(file_resource, make_payload):
    memo = await file_resource.create(make_payload())
    await asyncio.gather(*(file_resource.toggle_complete(memo.id) for _ in range(5)))
    assert (await file_resource.get(memo.id)).completed is True


async def test_concurrent_patches_on_different_fields_merge(file_resource, make_payload):
    memo = await file_resource.create(make_payload())

    await asyncio.gather(
        file_resource.patch(memo.id, {"title": "Pay rent late"}),
        file_resource.patch(memo.id, {"description": "Call landlord"}),
        file_resource.patch(memo.id, {"completed": True}),
        file_resource.patch(memo.id, {"due_at": "2025-01-05T00:00:00Z"}),
    )

    final = await file_resource.get(memo.id)
    assert final.title == "Pay rent late"
    assert final.description == "Call landlord"
    assert final.completed is True
    assert final.due_at.day == 5
    assert final.updated_at > memo.updated_at
