from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.config import settings
from api.dependencies import get_fire_service
from api.fires.service import FireService

internal_router = APIRouter(tags=["internal"])

ENDPOINTS = {
    "fires": "/fires?days=3&source=VIIRS_SNPP_NRT&region=bolivia",
    "stats": "/fires/stats?days=7&region=bolivia",
    "sources": "/fires/sources",
    "regions": "/fires/regions",
    "validate_key": "/fires/validate-key",
    "health": "/health",
}


@internal_router.get("/")
async def index() -> dict:
    """Service banner listing the main endpoints."""
    return {
        "status": "online",
        "name": settings.app_name,
        "version": settings.version,
        "endpoints": ENDPOINTS,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@internal_router.get("/health")
async def healthcheck(service: FireService = Depends(get_fire_service)) -> dict:
    """Health endpoint used for local dev and readiness checks."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "map_key_configured": service.settings.has_map_key,
        "cache": service.cache.stats_summary(),
    }


@internal_router.get("/version")
async def version() -> dict:
    """Return the current app version and deployment metadata."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "git_commit": settings.git_commit,
        "environment": settings.environment,
    }
