"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_suite.config import get_settings
from challenge_suite.database import get_session
from challenge_suite.redis_client import ping_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: 200 while the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> JSONResponse:
    """Readiness check: database and Redis must both answer, otherwise 503."""
    checks: dict[str, str] = {}

    try:
        await db.scalar(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc}"

    try:
        await ping_redis()
        checks["redis"] = "ok"
    except (RuntimeError, RedisError) as exc:
        checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ready" if all_ok else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
