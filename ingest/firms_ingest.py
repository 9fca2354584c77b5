"""CLI entrypoint: run the FIRMS detection pipeline once and print a JSON summary."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from ingest.config import FirmsSettings, settings as firms_settings
from ingest.firms_pipeline import run_detection_pipeline
from ingest.logging_utils import configure_logging
from ingest.normalize import utc_now
from ingest.rules import ALL_SOURCES, REGIONS, SOURCES
from ingest.stats import compute_statistics

LOGGER = logging.getLogger("firms_ingest")


def run_firms_ingest(
    day_range: Optional[int],
    area: Optional[str],
    sources: Optional[str],
    *,
    include_stats: bool = False,
    config: FirmsSettings = firms_settings,
) -> tuple[int, Dict[str, Any]]:
    """Run the uncached pipeline. Returns `(exit_code, summary)`."""
    if not config.map_key:
        LOGGER.error("FIRMS_MAP_KEY is not configured")
        return 1, {"error": "FIRMS_MAP_KEY is not configured"}

    bbox = _resolve_area(area) if area else REGIONS[config.default_region].bbox
    effective_day_range = min(max(day_range or 1, 1), config.max_days)
    source_list = _resolve_sources(sources) or [config.default_source]

    LOGGER.info(
        "Starting FIRMS pipeline run",
        extra={"day_range": effective_day_range, "area": bbox, "sources": source_list},
    )
    result = asyncio.run(
        run_detection_pipeline(
            config.map_key,
            source_list,
            bbox,
            effective_day_range,
            request_timeout_seconds=config.request_timeout_seconds,
            overall_timeout_seconds=config.overall_timeout_seconds,
            offset_hours=config.local_utc_offset_hours,
        )
    )

    summary: Dict[str, Any] = {
        "sources": source_list,
        "bbox": bbox,
        "day_range": effective_day_range,
        "detections": len(result.detections),
        "errors": [e.to_dict() for e in result.errors],
    }
    if include_stats:
        snapshot = compute_statistics(result.detections, utc_now(), offset_hours=config.local_utc_offset_hours)
        summary["stats"] = snapshot.to_dict()

    all_failed = result.is_empty and len(result.errors) == len(source_list)
    return (1 if all_failed else 0), summary


def _resolve_area(value: str) -> str:
    cleaned = value.strip()
    if cleaned in REGIONS:
        return REGIONS[cleaned].bbox
    if cleaned.lower() == "world":
        return "-180,-90,180,90"
    return cleaned


def _resolve_sources(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    if value.strip() == ALL_SOURCES:
        return list(SOURCES)
    return [segment.strip() for segment in value.split(",") if segment.strip()]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NASA FIRMS active fire pipeline.")
    parser.add_argument(
        "--day-range",
        type=int,
        default=None,
        help="Number of past days (capped at FIRMS_MAX_DAYS).",
    )
    parser.add_argument(
        "--area",
        type=str,
        default=None,
        help='Region preset, bounding box "w,s,e,n", or "world".',
    )
    parser.add_argument(
        "--sources",
        type=str,
        default=None,
        help='Comma-separated FIRMS sources or "ALL" (defaults to FIRMS_DEFAULT_SOURCE).',
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Include the statistics snapshot in the summary.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    configure_logging()
    args = parse_args(argv)
    exit_code, summary = run_firms_ingest(args.day_range, args.area, args.sources, include_stats=args.stats)
    print(json.dumps(summary, indent=2, default=str))
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main(sys.argv[1:])
