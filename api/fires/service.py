"""Query resolution and the cached FIRMS detection/statistics pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

import httpx

from api.errors import InvalidQueryError, MissingMapKeyError
from api.fires.cache import ResultCache
from ingest.config import FirmsSettings
from ingest.firms_client import validate_map_key
from ingest.firms_pipeline import DetectionResult, run_detection_pipeline
from ingest.logging_utils import log_event
from ingest.normalize import Clock, utc_now
from ingest.rules import ALL_SOURCES, REGIONS, SOURCES
from ingest.stats import StatisticsSnapshot, compute_statistics

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FireQuery:
    """A resolved query: concrete sources, clamped day window and bbox string."""

    source: str
    sources: Tuple[str, ...]
    days: int
    bbox: str
    area_label: str

    @property
    def detections_key(self) -> Tuple[str, int, str]:
        return (self.source, self.days, self.bbox)

    @property
    def stats_key(self) -> Tuple[str, int, str]:
        return (self.source, self.days, self.area_label)


def clamp_days(days: Optional[str | int], max_days: int) -> int:
    """Integer-parse the day window; junk or values below 1 become 1, then cap."""
    try:
        value = int(days) if days is not None else 1
    except (TypeError, ValueError):
        value = 1
    return min(max(value, 1), max_days)


def parse_bbox(bbox: str) -> str:
    """Validate a "minLon,minLat,maxLon,maxLat" string and return it trimmed."""
    parts = [p.strip() for p in bbox.split(",")]
    if len(parts) != 4:
        raise InvalidQueryError("bbox must be 'minLon,minLat,maxLon,maxLat'", {"bbox": bbox})
    try:
        min_lon, min_lat, max_lon, max_lat = (float(p) for p in parts)
    except ValueError as exc:
        raise InvalidQueryError("bbox values must be numeric", {"bbox": bbox}) from exc
    if not (-180 <= min_lon <= 180 and -180 <= max_lon <= 180 and -90 <= min_lat <= 90 and -90 <= max_lat <= 90):
        raise InvalidQueryError("bbox is outside valid coordinate ranges", {"bbox": bbox})
    return ",".join(parts)


def resolve_query(
    settings: FirmsSettings,
    *,
    source: Optional[str] = None,
    days: Optional[str | int] = None,
    bbox: Optional[str] = None,
    region: Optional[str] = None,
) -> FireQuery:
    """Apply defaults, the "ALL" expansion, day-window capping and region presets."""
    selected = (source or "").strip() or settings.default_source
    sources = tuple(SOURCES) if selected == ALL_SOURCES else (selected,)

    if region and region in REGIONS:
        resolved_bbox = REGIONS[region].bbox
        area_label = region
    elif bbox:
        resolved_bbox = parse_bbox(bbox)
        area_label = resolved_bbox
    else:
        resolved_bbox = REGIONS[settings.default_region].bbox
        area_label = settings.default_region

    return FireQuery(
        source=selected,
        sources=sources,
        days=clamp_days(days, settings.max_days),
        bbox=resolved_bbox,
        area_label=area_label,
    )


class FireService:
    """Cache-fronted access to FIRMS detections and their statistics."""

    def __init__(
        self,
        settings: FirmsSettings,
        cache: ResultCache,
        *,
        clock: Clock = utc_now,
        transport_factory: Callable[[], Optional[httpx.AsyncBaseTransport]] = lambda: None,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.clock = clock
        self._transport_factory = transport_factory

    def _require_map_key(self) -> str:
        if not self.settings.map_key:
            raise MissingMapKeyError("FIRMS_MAP_KEY is not configured")
        return self.settings.map_key

    async def get_detections(self, query: FireQuery) -> DetectionResult:
        cached = self.cache.detections.get(query.detections_key)
        if cached is not None:
            log_event(LOGGER, "firms.cache", "Detections cache hit", key=query.detections_key)
            return DetectionResult(detections=list(cached))

        map_key = self._require_map_key()
        log_event(LOGGER, "firms.cache", "Detections cache miss", key=query.detections_key, sources=query.sources)
        result = await run_detection_pipeline(
            map_key,
            query.sources,
            query.bbox,
            query.days,
            request_timeout_seconds=self.settings.request_timeout_seconds,
            overall_timeout_seconds=self.settings.overall_timeout_seconds,
            offset_hours=self.settings.local_utc_offset_hours,
            clock=self.clock,
            transport=self._transport_factory(),
        )
        # Empty results are not cached so a recovering source is retried next call.
        if not result.is_empty:
            self.cache.detections.set(query.detections_key, tuple(result.detections))
        return result

    async def get_statistics(self, query: FireQuery) -> StatisticsSnapshot:
        cached = self.cache.stats.get(query.stats_key)
        if cached is not None:
            log_event(LOGGER, "firms.cache", "Statistics cache hit", key=query.stats_key)
            return cached

        result = await self.get_detections(query)
        snapshot = compute_statistics(
            result.detections,
            self.clock(),
            offset_hours=self.settings.local_utc_offset_hours,
        )
        if result.errors:
            snapshot = replace(snapshot, errors=tuple(e.to_dict() for e in result.errors))
        log_event(LOGGER, "firms.stats", "Computed statistics", key=query.stats_key, total=snapshot.total)
        # Empty snapshots are not cached, same as empty detection sets.
        if not result.is_empty:
            self.cache.stats.set(query.stats_key, snapshot)
        return snapshot

    async def validate_key(self) -> bool:
        return await validate_map_key(
            self._require_map_key(),
            self.settings.validate_timeout_seconds,
            transport=self._transport_factory(),
        )