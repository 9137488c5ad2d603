"""Health Probes — liveness and MongoDB readiness for the container orchestrator.

Invariants:
    - GET /api/v1/health/ answers 200 whenever the process serves requests
    - GET /api/v1/health/ready answers 503 until the connection cache can ping MongoDB
    - Readiness goes through the connection cache: the first probe may open the connection
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import app.infrastructure.database as db_module

SERVICE_NAME = "devevent-api"
SERVICE_VERSION = "1.0.0"

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness():
    return {"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@router.get("/ready")
async def readiness():
    """503 with a reason when MongoDB is not reachable (or not configured yet)."""
    cache = db_module.connection_cache
    if cache is None or not await cache.ping():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "connected": cache.is_connected,
    }
