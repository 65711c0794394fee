"""HTTP Error Responses — every failure leaves the API in the error_envelope shape.

Invariants:
    - MemoError → its own http_status and to_response() body
    - RequestValidationError (missing or undecodable body) → 400 VALIDATION_ERROR with field details
    - Starlette HTTPException (unknown route, wrong method, oversized streamed body)
      → its own status, category "request", headers preserved
    - Any other exception → 500 INTERNAL_ERROR; the body never carries exception text

Design Decisions:
    - Bodies built by core.errors.error_envelope: the shape is defined once
    - Log level follows who is at fault: client errors at info, server errors at error
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from memo_api.core.errors import (
    REQUEST_CATEGORY, ErrorKind, ErrorSeverity, FieldViolation, MemoError,
    error_envelope,
)

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES: dict[int, str] = {
    status.HTTP_404_NOT_FOUND: "ROUTE_NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: "PAYLOAD_TOO_LARGE",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(MemoError, _memo_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unexpected_error)


def _log(request: Request, code: str, status_code: int, message: str) -> None:
    extra = {
        "error_code": code,
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
    }
    if status_code >= 500:
        logger.error(message, extra=extra)
    else:
        logger.info(message, extra=extra)


async def _memo_error(request: Request, exc: MemoError) -> JSONResponse:
    _log(request, exc.code, exc.http_status, f"MemoError: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _request_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    violations = [
        FieldViolation(".".join(str(loc) for loc in e["loc"]), e["msg"])
        for e in exc.errors()
    ]
    _log(
        request, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST,
        f"Request rejected: {', '.join(v.field for v in violations)}",
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorKind.VALIDATION.value, ErrorSeverity.ERROR,
            details=[v.to_dict() for v in violations],
        ),
    )


async def _http_error(
    request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    _log(request, code, exc.status_code, f"HTTP {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(
            code, str(exc.detail), REQUEST_CATEGORY, ErrorSeverity.WARNING,
        ),
        headers=exc.headers,
    )


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={
            "error_code": "INTERNAL_ERROR",
            "path": request.url.path,
            "method": request.method,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorKind.INTERNAL.value, ErrorSeverity.CRITICAL,
        ),
    )
