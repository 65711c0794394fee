"""Error Taxonomy — the closed set of failures every memo operation can produce.

Invariants:
    - Exactly four kinds (ErrorKind): validation, not_found, store, internal
    - Every error has a code (str), kind (ErrorKind), severity (ErrorSeverity), http_status
    - MemoValidationError always carries >= 1 FieldViolation (all fields, not the first)
    - StoreError messages are operation-level; raw driver/SQL text never leaves the store

Design Decisions:
    - Single hierarchy with MemoError base: FastAPI global handler catches all (uniform error shape)
    - ErrorKind discriminant on every instance: callers match exhaustively on exc.kind
      instead of isinstance chains
    - ErrorContext as dataclass: observability context without coupling to logging
    - error_envelope shared with the HTTP handlers and middleware: one response shape
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorKind(str, Enum):
    """The closed set of outcomes other than success."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORE = "store"
    INTERNAL = "internal"


@dataclass(frozen=True)
class FieldViolation:
    """One violated field in a payload or query."""
    field: str
    reason: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.reason}


@dataclass
class ErrorContext:
    """Context attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    memo_id: str | None = None
    operation: str | None = None


# Rejections made by the HTTP boundary itself (rate limit, body size, unknown route)
REQUEST_CATEGORY = "request"


def error_envelope(
    code: str,
    message: str,
    category: str,
    severity: ErrorSeverity,
    context: ErrorContext | None = None,
    details: list[dict] | None = None,
) -> dict:
    """Build the one JSON shape every error response takes."""
    ctx = context or ErrorContext()
    body = {
        "code": code,
        "message": message,
        "category": category,
        "severity": severity.value,
        "timestamp": ctx.timestamp.isoformat(),
        "context": {"memo_id": ctx.memo_id, "operation": ctx.operation},
    }
    if details is not None:
        body["details"] = details
    return {"error": body}


class MemoError(Exception):
    """Base exception for all memo engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        kind: ErrorKind,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.kind = kind
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def details(self) -> list[dict] | None:
        return None

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return error_envelope(
            self.code, self.message, self.kind.value, self.severity,
            self.context, self.details(),
        )


# ─── Client Errors (400-level) ──────────────────────────────────

class MemoValidationError(MemoError):
    """One or more fields of a payload or query were rejected."""
    def __init__(
        self,
        violations: list[FieldViolation],
        context: ErrorContext | None = None,
    ):
        if not violations:
            raise ValueError("MemoValidationError requires at least one violation")
        fields = ", ".join(v.field for v in violations)
        super().__init__(
            f"Invalid fields: {fields}",
            "VALIDATION_ERROR", ErrorKind.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.violations = list(violations)

    @classmethod
    def single(
        cls, field_name: str, reason: str, context: ErrorContext | None = None,
    ) -> "MemoValidationError":
        return cls([FieldViolation(field_name, reason)], context)

    def details(self) -> list[dict]:
        return [v.to_dict() for v in self.violations]


class MemoNotFoundError(MemoError):
    """Operation targeted an id with no active memo."""
    def __init__(self, memo_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.memo_id = memo_id
        super().__init__(
            f"Memo '{memo_id}' not found",
            "MEMO_NOT_FOUND", ErrorKind.NOT_FOUND,
            ErrorSeverity.WARNING, ctx, 404,
        )
        self.memo_id = memo_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreError(MemoError):
    """Persistence layer failed (connectivity, timeout, unmodeled constraint)."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_ERROR", ErrorKind.STORE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation


class InternalError(MemoError):
    """Programmer error or invariant violation detected after the fact."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INTERNAL_ERROR", ErrorKind.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
