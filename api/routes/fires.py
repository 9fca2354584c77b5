from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_fire_service
from api.errors import InvalidQueryError
from api.fires.service import FireService, resolve_query
from ingest.firms_client import FIRMSClientError
from ingest.rules import CONFIDENCE_TIERS, REGIONS, SOURCES

fires_router = APIRouter(tags=["fires"])

SUPPORTED_KINDS = ["fires"]
SOURCE_DESCRIPTION = 'FIRMS source identifier, or "ALL" for every known source.'
BBOX_DESCRIPTION = "Bounding box 'minLon,minLat,maxLon,maxLat'; ignored when region is a known preset."


@fires_router.get("/fires")
async def get_fires(
    source: Optional[str] = Query(None, description=SOURCE_DESCRIPTION),
    days: Optional[str] = Query(None, description="Days back from today; capped at the configured maximum."),
    bbox: Optional[str] = Query(None, description=BBOX_DESCRIPTION),
    region: Optional[str] = Query(None, description="Named region preset (see /fires/regions)."),
    service: FireService = Depends(get_fire_service),
):
    """
    Return deduplicated fire detections, most recent first.

    When no source produced detections, the response is
    `{"data": [], "message": ..., "errors": [...]}` instead of a list.
    """
    query = resolve_query(service.settings, source=source, days=days, bbox=bbox, region=region)
    result = await service.get_detections(query)
    return result.to_response()


@fires_router.get("/events")
async def get_events(
    kind: Optional[str] = Query(None, description="Event kind; only 'fires' is supported."),
    source: Optional[str] = Query(None, description=SOURCE_DESCRIPTION),
    days: Optional[str] = Query(None),
    bbox: Optional[str] = Query(None, description=BBOX_DESCRIPTION),
    region: Optional[str] = Query(None),
    service: FireService = Depends(get_fire_service),
):
    """Generic event endpoint kept for older clients."""
    if kind not in SUPPORTED_KINDS:
        raise InvalidQueryError("Unsupported event kind", {"supported_kinds": SUPPORTED_KINDS})
    return await get_fires(source=source, days=days, bbox=bbox, region=region, service=service)


@fires_router.get("/fires/stats")
async def get_fire_stats(
    source: Optional[str] = Query(None, description=SOURCE_DESCRIPTION),
    days: Optional[str] = Query(None),
    bbox: Optional[str] = Query(None, description=BBOX_DESCRIPTION),
    region: Optional[str] = Query(None),
    service: FireService = Depends(get_fire_service),
):
    """Summary statistics over the same detection set `/fires` would return."""
    query = resolve_query(service.settings, source=source, days=days, bbox=bbox, region=region)
    snapshot = await service.get_statistics(query)
    return snapshot.to_dict()


@fires_router.get("/fires/sources")
async def list_sources() -> dict:
    return {
        "sources": {key: src.label for key, src in SOURCES.items()},
        "descriptions": {key: src.description for key, src in SOURCES.items()},
        "confidence_tiers": {tier.key: tier.to_dict() for tier in CONFIDENCE_TIERS},
    }


@fires_router.get("/fires/regions")
async def list_regions() -> dict:
    return {
        "regions": list(REGIONS),
        "bboxes": {key: region.bbox for key, region in REGIONS.items()},
        "descriptions": {key: region.description for key, region in REGIONS.items()},
    }


@fires_router.get("/fires/validate-key")
async def validate_key(service: FireService = Depends(get_fire_service)):
    """Probe FIRMS with the configured key."""
    try:
        valid = await service.validate_key()
    except FIRMSClientError as exc:
        return JSONResponse(status_code=502, content={"valid": False, "error": str(exc)})
    if not valid:
        return {"valid": False, "error": "Invalid MAP_KEY"}
    return {"valid": True, "message": "API key is valid"}


@fires_router.post("/fires/cache/clear")
async def clear_cache(service: FireService = Depends(get_fire_service)) -> dict:
    removed = service.cache.clear()
    return {"message": "Cache cleared", "keys_removed": removed}
