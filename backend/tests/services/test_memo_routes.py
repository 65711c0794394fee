"""Memo Routes — HTTP status mapping and wire shapes of /api/v1/memos.

Invariants:
    - 201 on create, 200 on read/update/toggle/list, 204 on delete
    - Validation → 400 with every violated field in details
    - Unknown or already-deleted id → 404; malformed id → 400
    - description null and "" survive the wire unchanged
"""

import logging
from uuid import uuid4

from httpx import ASGITransport, AsyncClient

from memo_api.api.dependencies import get_memo_resource
from memo_api.core.errors import StoreError
from memo_api.main import app

BASE = "/api/v1/memos"


async def _create(client, **payload):
    body = {"title": "Pay rent", "due_at": "2025-01-01T00:00:00Z", **payload}
    res = await client.post(BASE, json=body)
    assert res.status_code == 201
    return res.json()


async def test_create_returns_201_with_memo(client):
    res = await client.post(BASE, json={"title": "Pay rent", "due_at": "2025-01-01T00:00:00Z"})
    assert res.status_code == 201
    body = res.json()
    assert body["title"] == "Pay rent"
    assert body["description"] is None
    assert body["completed"] is False
    assert body["created_at"] == body["updated_at"]


async def test_create_ignores_completed_in_body(client):
    body = await _create(client, completed=True)
    assert body["completed"] is False


async def test_create_reports_every_violated_field(client):
    res = await client.post(BASE, json={"title": "", "description": "x" * 1001})
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["category"] == "validation"
    fields = {d["field"] for d in error["details"]}
    assert fields == {"title", "description", "due_at"}


async def test_create_rejects_non_object_body(client):
    res = await client.post(BASE, json=["not", "an", "object"])
    assert res.status_code == 400


async def test_get_returns_memo(client):
    created = await _create(client, description="")
    res = await client.get(f"{BASE}/{created['id']}")
    assert res.status_code == 200
    assert res.json() == created
    assert res.json()["description"] == ""


async def test_get_unknown_id_returns_404(client):
    res = await client.get(f"{BASE}/{uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "MEMO_NOT_FOUND"


async def test_malformed_id_returns_400(client):
    res = await client.get(f"{BASE}/not-a-uuid")
    assert res.status_code == 400
    assert res.json()["error"]["details"][0]["field"] == "id"


async def test_put_replaces_memo(client):
    created = await _create(client, description="Landlord")
    res = await client.put(
        f"{BASE}/{created['id']}",
        json={"title": "Pay rent late", "due_at": "2025-01-02T00:00:00Z"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "Pay rent late"
    assert body["description"] is None
    assert body["completed"] is False


async def test_patch_merges_present_fields(client):
    created = await _create(client, description="Landlord")
    res = await client.patch(f"{BASE}/{created['id']}", json={"completed": True})
    assert res.status_code == 200
    body = res.json()
    assert body["completed"] is True
    assert body["description"] == "Landlord"
    assert body["updated_at"] > created["updated_at"]


async def test_patch_null_description_clears(client):
    created = await _create(client, description="Landlord")
    res = await client.patch(f"{BASE}/{created['id']}", json={"description": None})
    assert res.json()["description"] is None


async def test_patch_null_title_is_400(client):
    created = await _create(client)
    res = await client.patch(f"{BASE}/{created['id']}", json={"title": None})
    assert res.status_code == 400


async def test_toggle_flips_completed(client):
    created = await _create(client)
    first = await client.patch(f"{BASE}/{created['id']}/complete")
    second = await client.patch(f"{BASE}/{created['id']}/complete")
    assert first.status_code == 200
    assert first.json()["completed"] is True
    assert second.json()["completed"] is False


async def test_delete_returns_204_then_404(client):
    created = await _create(client)
    res = await client.delete(f"{BASE}/{created['id']}")
    assert res.status_code == 204
    assert res.content == b""
    again = await client.delete(f"{BASE}/{created['id']}")
    assert again.status_code == 404


async def test_list_returns_page_metadata(client):
    for day in ("2025-01-03", "2025-01-01", "2025-01-02"):
        await _create(client, title=day, due_at=f"{day}T00:00:00Z")

    res = await client.get(
        BASE, params={"limit": 2, "offset": 0, "sort_by": "due_at", "order": "asc"},
    )
    assert res.status_code == 200
    body = res.json()
    assert [m["title"] for m in body["data"]] == ["2025-01-01", "2025-01-02"]
    assert body["total"] == 3
    assert body["limit"] == 2
    assert body["offset"] == 0


async def test_list_default_limit(client):
    body = (await client.get(BASE)).json()
    assert body["limit"] == 10
    assert body["data"] == []
    assert body["total"] == 0


async def test_list_rejects_out_of_range_params(client):
    res = await client.get(BASE, params={"limit": 101, "offset": -1, "sort_by": "color"})
    assert res.status_code == 400
    fields = {d["field"] for d in res.json()["error"]["details"]}
    assert fields == {"limit", "offset", "sort_by"}


async def test_list_ignores_unknown_params(client):
    res = await client.get(BASE, params={"page": 3})
    assert res.status_code == 200


async def test_store_failure_maps_to_503(client, resource, monkeypatch):
    async def unavailable(*args, **kwargs):
        raise StoreError("Database unreachable", "find_by_id")

    monkeypatch.setattr(resource._store, "find_by_id", unavailable)
    res = await client.get(f"{BASE}/{uuid4()}")
    assert res.status_code == 503
    assert res.json()["error"]["category"] == "store"


async def test_security_headers_present(client):
    res = await client.get(BASE)
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    assert res.headers["X-Frame-Options"] == "DENY"


# ─── error envelope on every path ────────────────────────────────

async def test_wrong_method_uses_error_envelope(client):
    res = await client.put(BASE, json={})
    assert res.status_code == 405
    error = res.json()["error"]
    assert error["code"] == "METHOD_NOT_ALLOWED"
    assert error["category"] == "request"


async def test_missing_body_is_400_with_details(client):
    res = await client.post(BASE)
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "body"


async def test_unexpected_exception_is_500_without_internals(client):
    def broken_resource():
        raise RuntimeError("connection string postgres://secret")

    app.dependency_overrides[get_memo_resource] = broken_resource
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        res = await c.get(BASE)
    assert res.status_code == 500
    error = res.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert error["category"] == "internal"
    assert "secret" not in res.text


async def test_error_log_carries_request_extras(client, caplog):
    caplog.set_level(logging.INFO, logger="memo_api.api.error_handlers")
    await client.get(f"{BASE}/{uuid4()}")
    record = next(r for r in caplog.records if r.name == "memo_api.api.error_handlers")
    assert record.error_code == "MEMO_NOT_FOUND"
    assert record.method == "GET"
    assert record.status_code == 404
    assert record.path.startswith(BASE)
