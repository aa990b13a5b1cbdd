"""
Health check endpoints
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from stkpay.infrastructure.database import Database, get_database

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Basic health check"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(database: Database = Depends(get_database)):
    """
    Readiness check - verifies DB connectivity

    Returns:
    - 200 if the database answers
    - 503 otherwise
    """
    checks = {
        "status": "ok",
        "database": "connected",
    }

    if not database.ping():
        checks["database"] = "disconnected"
        checks["status"] = "not_ready"

    status_code = 200 if checks["status"] == "ok" else 503
    return JSONResponse(status_code=status_code, content=checks)
