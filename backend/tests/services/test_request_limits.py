"""Request Limits — per-IP rate limiting (429) and request body size (413).

Invariants:
    - Past the quota every request gets 429 with Retry-After and the error envelope
    - Health checks never consume quota; each client IP has its own quota
    - Bodies over MAX_REQUEST_SIZE get 413, declared (Content-Length) or streamed
    - A body exactly at the limit is accepted

Design Decisions:
    - Rate limit exercised on a small app with its own limiter and fake clock:
      the shared test app runs unthrottled (RATE_LIMIT_ENABLED=false)
"""

import json

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from memo_api.api.error_handlers import register_error_handlers
from memo_api.api.middleware import BodySizeLimitMiddleware, RateLimitMiddleware
from memo_api.config import get_settings
from memo_api.infrastructure.rate_limiter import SlidingWindowRateLimiter
from memo_api.main import app as memo_app

BASE = "/api/v1/memos"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _throttled_app(limiter: SlidingWindowRateLimiter) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    register_error_handlers(app)

    @app.get(BASE)
    async def list_memos():
        return {"data": []}

    @app.get("/api/v1/health/")
    async def health():
        return {"status": "healthy"}

    return app


def _client(app: FastAPI, ip: str = "10.0.0.1") -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app, client=(ip, 4321)), base_url="http://test",
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def throttled(fake_clock):
    return _throttled_app(SlidingWindowRateLimiter(3, window=60, clock=fake_clock))


# ─── rate limit ──────────────────────────────────────────────────

async def test_requests_past_quota_get_429(throttled):
    async with _client(throttled) as c:
        ok = [await c.get(BASE) for _ in range(3)]
        limited = await c.get(BASE)

    assert [r.status_code for r in ok] == [200, 200, 200]
    assert [r.headers["X-RateLimit-Remaining"] for r in ok] == ["2", "1", "0"]
    assert limited.status_code == 429
    assert limited.headers["Retry-After"] == "60"
    assert limited.headers["X-RateLimit-Limit"] == "3"
    error = limited.json()["error"]
    assert error["code"] == "RATE_LIMITED"
    assert error["category"] == "request"


async def test_quota_returns_after_window(throttled, fake_clock):
    async with _client(throttled) as c:
        for _ in range(3):
            await c.get(BASE)
        assert (await c.get(BASE)).status_code == 429
        fake_clock.now += 61
        assert (await c.get(BASE)).status_code == 200


async def test_health_checks_not_counted(throttled):
    async with _client(throttled) as c:
        for _ in range(10):
            assert (await c.get("/api/v1/health/")).status_code == 200
        assert (await c.get(BASE)).status_code == 200


async def test_quota_is_per_client_ip(throttled):
    async with _client(throttled, "10.0.0.1") as first:
        for _ in range(3):
            await first.get(BASE)
        assert (await first.get(BASE)).status_code == 429
    async with _client(throttled, "10.0.0.2") as second:
        assert (await second.get(BASE)).status_code == 200


def test_shared_app_mounts_body_limit():
    mounted = {m.cls for m in memo_app.user_middleware}
    assert BodySizeLimitMiddleware in mounted
    assert RateLimitMiddleware not in mounted


# ─── body size ───────────────────────────────────────────────────

def _padded_body(size: int) -> bytes:
    body = json.dumps({"title": "Pay rent", "due_at": "2025-01-01T00:00:00Z"}).encode()
    return body + b" " * (size - len(body))


async def test_declared_oversized_body_gets_413(client):
    limit = get_settings().max_request_size
    res = await client.post(
        BASE, content=_padded_body(limit + 1),
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 413
    error = res.json()["error"]
    assert error["code"] == "PAYLOAD_TOO_LARGE"
    assert error["category"] == "request"


async def test_streamed_oversized_body_gets_413(client):
    limit = get_settings().max_request_size
    body = _padded_body(limit + 1)

    async def chunks():
        for start in range(0, len(body), 65536):
            yield body[start:start + 65536]

    res = await client.post(
        BASE, content=chunks(), headers={"content-type": "application/json"},
    )
    assert res.status_code == 413
    assert res.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


async def test_body_at_limit_accepted(client):
    limit = get_settings().max_request_size
    res = await client.post(
        BASE, content=_padded_body(limit),
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 201
