"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Request
from sqlalchemy import text

from dulpton.config import get_settings
from dulpton.database import get_session
from dulpton.redis_client import redis_status

router = APIRouter()


async def _store_status(request: Request) -> str:
    if getattr(request.app.state, "memory_store", None) is not None:
        return "memory"
    try:
        async for db in get_session():
            await db.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, object]:
    """Readiness probe.

    The ledger needs its store; Redis only backs rate limiting, so a Redis
    outage reports ``degraded`` rather than failing the probe.
    """
    checks = {
        "database": await _store_status(request),
        "redis": await redis_status(),
    }
    store_ok = checks["database"] in ("ok", "memory")
    if not store_ok:
        status = "unavailable"
    elif checks["redis"] != "ok":
        status = "degraded"
    else:
        status = "ready"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
