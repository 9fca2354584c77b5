"""Combine per-source detections into one deduplicated, newest-first sequence."""

from __future__ import annotations

from typing import Iterable, List, Set

from ingest.models import DedupeKey, FireDetection


def merge_detections(batches: Iterable[Iterable[FireDetection]]) -> List[FireDetection]:
    """Flatten `batches` in order, keep the first detection per dedupe key, sort newest first.

    The sort is stable, so detections sharing a timestamp keep their input order.
    """
    seen: Set[DedupeKey] = set()
    unique: List[FireDetection] = []
    for batch in batches:
        for detection in batch:
            key = detection.dedupe_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(detection)
    unique.sort(key=lambda d: d.timestamp_ms, reverse=True)
    return unique
