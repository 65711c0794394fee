"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if database is unreachable (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from memo_api.api.dependencies import get_db_manager
from memo_api.config import get_settings
from memo_api.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "memo-api",
        "version": get_settings().app_version,
    }


@router.get("/ready")
async def readiness_check(
    db_manager: DatabaseSessionManager | None = Depends(get_db_manager),
):
    """Readiness probe — includes database connectivity."""
    db_ok = await db_manager.health_check() if db_manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
