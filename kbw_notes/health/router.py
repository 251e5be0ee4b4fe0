"""Health check endpoints."""

from fastapi import APIRouter, Request

from kbw_notes.config import get_settings
from kbw_notes.core.database import AsyncCassandraConnection


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - reports which backing services are wired up."""
    settings = get_settings()
    return {
        "status": "ready",
        "environment": settings.environment,
        "database": AsyncCassandraConnection.is_connected(),
        "moderation": settings.moderation_configured,
        "rate_limit_backend": getattr(
            request.app.state, "rate_limit_backend", settings.rate_limit_backend
        ),
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
