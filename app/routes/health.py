"""
Liveness and database health endpoints.
"""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.db.pool import db_health_check

router = APIRouter(tags=["health"])

SERVICE_NAME = "discord-oauth-backend"


@router.get("/health")
async def health():
    """Basic health check - always returns 200 if the app is running."""
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health/db")
async def database_health():
    """Database connectivity plus pool statistics; 503 when unreachable."""
    t0 = time.time()
    try:
        db_health = await db_health_check()
    except Exception as e:
        db_health = {"healthy": False, "error": str(e), "error_type": type(e).__name__}

    body = {
        "status": "healthy" if db_health.get("healthy") else "unhealthy",
        "service": SERVICE_NAME,
        "database": db_health,
        "latency_ms": round((time.time() - t0) * 1000, 1),
    }
    if not db_health.get("healthy"):
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
