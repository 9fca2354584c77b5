"""Uncached FIRMS pipeline: fetch -> parse -> normalize -> merge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import httpx

from ingest.firms_client import SourceError, SourceFetchResult, fetch_sources
from ingest.firms_csv import parse_csv
from ingest.logging_utils import log_event
from ingest.merge import merge_detections
from ingest.models import FireDetection
from ingest.normalize import DEFAULT_UTC_OFFSET_HOURS, Clock, normalize_rows, utc_now
from ingest.rules import source_label

LOGGER = logging.getLogger(__name__)
NO_DETECTIONS_MESSAGE = "No active fires found for the selected area and period"


@dataclass
class DetectionResult:
    """Merged detections plus the per-source errors collected along the way."""

    detections: List[FireDetection] = field(default_factory=list)
    errors: List[SourceError] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.detections

    def to_response(self) -> List[Dict[str, Any]] | Dict[str, Any]:
        """Detection list, or the `{data, message, errors?}` shape when nothing was found."""
        if self.detections:
            return [d.to_dict() for d in self.detections]
        payload: Dict[str, Any] = {"data": [], "message": NO_DETECTIONS_MESSAGE}
        if self.errors:
            payload["errors"] = [e.to_dict() for e in self.errors]
        return payload


def detections_from_results(
    results: Sequence[SourceFetchResult],
    *,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
    clock: Clock = utc_now,
) -> DetectionResult:
    """Parse and normalize each successful source body, then merge across sources."""
    batches: List[List[FireDetection]] = []
    errors: List[SourceError] = []
    for result in results:
        if result.error is not None:
            errors.append(result.error)
            continue
        if not result.has_data:
            continue
        records, summary = parse_csv(result.text or "")
        batch = normalize_rows(records, source_label(result.source), offset_hours=offset_hours, clock=clock)
        log_event(
            LOGGER,
            "firms.query",
            "Normalized source",
            source=result.source,
            lines=summary.total_lines,
            detections=len(batch),
        )
        batches.append(batch)

    merged = merge_detections(batches)
    log_event(
        LOGGER,
        "firms.query",
        "Merged detections",
        unique=len(merged),
        total=sum(len(b) for b in batches),
        errors=len(errors),
    )
    return DetectionResult(detections=merged, errors=errors)


async def run_detection_pipeline(
    map_key: str,
    sources: Sequence[str],
    bbox: str,
    day_range: int,
    *,
    request_timeout_seconds: float,
    overall_timeout_seconds: float,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
    clock: Clock = utc_now,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DetectionResult:
    results = await fetch_sources(
        map_key,
        sources,
        bbox,
        day_range,
        request_timeout_seconds=request_timeout_seconds,
        overall_timeout_seconds=overall_timeout_seconds,
        transport=transport,
    )
    return detections_from_results(results, offset_hours=offset_hours, clock=clock)
