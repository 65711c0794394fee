"""HTTP Middleware — security headers, per-IP rate limiting and request body size limit.

Invariants:
    - Security headers set on every response, including error responses; route-set
      values are not overwritten
    - Rate limit keyed by the peer address; health probes are never counted
    - Rejected requests (429, 413) carry the error_envelope body, never reach a route
    - A body over max_body_size is refused whether or not Content-Length is declared

Design Decisions:
    - BaseHTTPMiddleware for header/quota logic: one small class each, registered in main.py
    - Body limit as plain ASGI middleware: it must wrap `receive`, which
      BaseHTTPMiddleware does not expose
    - X-Forwarded-For is not trusted: a client could pick its own quota key
"""

import logging

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from memo_api.core.errors import REQUEST_CATEGORY, ErrorSeverity, error_envelope
from memo_api.infrastructure.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client request quota; 429 with Retry-After once it is used up."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: SlidingWindowRateLimiter,
        exempt_prefixes: tuple[str, ...] = ("/api/v1/health",),
    ):
        super().__init__(app)
        self.limiter = limiter
        self.exempt_prefixes = exempt_prefixes

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.exempt_prefixes):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        decision = self.limiter.hit(client_ip)
        if decision.allowed:
            response = await call_next(request)
        else:
            logger.warning(
                f"Rate limit exceeded for {client_ip}",
                extra={
                    "error_code": "RATE_LIMITED",
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": status.HTTP_429_TOO_MANY_REQUESTS,
                },
            )
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_envelope(
                    "RATE_LIMITED",
                    f"Rate limit exceeded. Try again in {decision.retry_after} seconds",
                    REQUEST_CATEGORY, ErrorSeverity.WARNING,
                ),
                headers={"Retry-After": str(decision.retry_after)},
            )
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response


def _too_large_message(max_body_size: int) -> str:
    return f"Request body exceeds {max_body_size} bytes"


class BodySizeLimitMiddleware:
    """Refuse request bodies larger than max_body_size bytes with 413."""

    def __init__(self, app: ASGIApp, max_body_size: int):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_size:
            logger.info(
                _too_large_message(self.max_body_size),
                extra={
                    "error_code": "PAYLOAD_TOO_LARGE",
                    "path": scope["path"],
                    "method": scope["method"],
                    "status_code": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                },
            )
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content=error_envelope(
                    "PAYLOAD_TOO_LARGE", _too_large_message(self.max_body_size),
                    REQUEST_CATEGORY, ErrorSeverity.WARNING,
                ),
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    # Raised while the route reads its body; error_handlers renders it
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=_too_large_message(self.max_body_size),
                    )
            return message

        await self.app(scope, limited_receive, send)
