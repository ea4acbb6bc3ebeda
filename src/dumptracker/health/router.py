"""Health, readiness, and version endpoints."""

from fastapi import APIRouter

from dumptracker.backend.connection import get_backend
from dumptracker.backend.errors import BackendError
from dumptracker.config import get_settings
from dumptracker.redis_client import get_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness() -> dict[str, object]:
    """Readiness probe: the managed backend must answer, Redis only if configured."""
    checks: dict[str, object] = {}

    try:
        await get_backend().request("GET", "/auth/v1/health")
        checks["backend"] = "ok"
    except (BackendError, RuntimeError) as exc:
        checks["backend"] = f"error: {exc}"

    if get_settings().redis_url:
        try:
            await get_redis().ping()
            checks["redis"] = "ok"
        except Exception as exc:  # noqa: BLE001
            checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return the app version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
