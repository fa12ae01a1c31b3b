from fastapi import APIRouter
from sqlalchemy import text

from inventory_api.database import engine
from inventory_api.utils.cache import cache_service

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the database (and Redis, when caching is on) are ready."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Returns status of:
    - Database connection
    - Redis connection (reported as skipped when caching is disabled)
    """
    checks = {
        "database": False,
        "redis": False
    }

    # Check database
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    # Check Redis
    if cache_service.enabled:
        checks["redis"] = cache_service.ping()
        redis_ok = checks["redis"]
    else:
        checks["redis"] = "disabled"
        redis_ok = True

    all_healthy = checks["database"] and redis_ok

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks
    }
