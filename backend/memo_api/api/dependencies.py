"""Request Dependencies — hand routes the objects built once in the lifespan.

Invariants:
    - Nothing here constructs services; it only reads app.state
    - Missing state (lifespan not run) is a programmer error → InternalError

Design Decisions:
    - app.state over module singletons: tests swap the resource with dependency_overrides
"""

from fastapi import Request

from memo_api.core.errors import InternalError
from memo_api.infrastructure.database import DatabaseSessionManager
from memo_api.services.memo_resource import MemoResource


def get_memo_resource(request: Request) -> MemoResource:
    resource = getattr(request.app.state, "memo_resource", None)
    if resource is None:
        raise InternalError("Memo resource not initialized")
    return resource


def get_db_manager(request: Request) -> DatabaseSessionManager | None:
    return getattr(request.app.state, "db_manager", None)
