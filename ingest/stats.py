"""Summary statistics over a deduplicated detection set."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ingest.models import FireDetection
from ingest.normalize import DEFAULT_UTC_OFFSET_HOURS, epoch_millis
from ingest.rules import CONFIDENCE_TIERS, SEVERITY_LEVELS

TOP_N = 10
DAY_MS = 24 * 60 * 60 * 1000
EMPTY_MESSAGE = "No data available"


@dataclass(frozen=True, slots=True)
class Trend:
    last_24h: int
    previous_24h: int
    change_pct: float
    direction: str


@dataclass(frozen=True, slots=True)
class StatisticsSnapshot:
    """Aggregate view of one detection set.

    `trend` is None without a previous-day baseline. `errors` carries the
    per-source failures of the fetch that produced the set.
    """

    total: int
    by_confidence: Mapping[str, int] = field(default_factory=dict)
    by_satellite: Mapping[str, int] = field(default_factory=dict)
    by_hour: Mapping[int, int] = field(default_factory=dict)
    by_day: Mapping[str, int] = field(default_factory=dict)
    by_severity: Mapping[str, int] = field(default_factory=dict)
    mean_confidence: float = 0.0
    mean_frp: float = 0.0
    max_frp: float = 0.0
    total_pixel_area: float = 0.0
    most_recent: Sequence[Mapping[str, Any]] = ()
    highest_confidence: Sequence[Mapping[str, Any]] = ()
    trend: Optional[Trend] = None
    errors: Sequence[Mapping[str, str]] = ()

    def to_dict(self) -> Dict[str, Any]:
        if self.total == 0:
            empty: Dict[str, Any] = {"total": 0, "message": EMPTY_MESSAGE}
            if self.errors:
                empty["errors"] = [dict(e) for e in self.errors]
            return empty
        payload: Dict[str, Any] = {
            "total": self.total,
            "by_confidence": dict(self.by_confidence),
            "by_satellite": dict(self.by_satellite),
            "by_hour": dict(self.by_hour),
            "by_day": dict(self.by_day),
            "by_severity": dict(self.by_severity),
            "mean_confidence": self.mean_confidence,
            "mean_frp": self.mean_frp,
            "max_frp": self.max_frp,
            "total_pixel_area": self.total_pixel_area,
            "most_recent": [dict(item) for item in self.most_recent],
            "highest_confidence": [dict(item) for item in self.highest_confidence],
        }
        if self.trend is not None:
            payload["trend"] = {
                "last_24h": self.trend.last_24h,
                "previous_24h": self.trend.previous_24h,
                "change_pct": self.trend.change_pct,
                "direction": self.trend.direction,
            }
        if self.errors:
            payload["errors"] = [dict(e) for e in self.errors]
        return payload


def _local_now_ms(now: datetime, offset_hours: int) -> int:
    """`now` expressed on the same shifted clock as `FireDetection.timestamp_ms`."""
    naive_utc = now.astimezone(timezone.utc).replace(tzinfo=None)
    return epoch_millis(naive_utc + timedelta(hours=offset_hours))


def _hour_of(detection: FireDetection) -> int:
    return datetime.fromtimestamp(detection.timestamp_ms / 1000, tz=timezone.utc).hour


def compute_trend(
    detections: Sequence[FireDetection],
    now: datetime,
    *,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> Optional[Trend]:
    """Compare the last 24h with the 24h before; None when the earlier window is empty.

    `direction` follows the rounded `change_pct`, so the two never disagree.
    """
    now_ms = _local_now_ms(now, offset_hours)
    last_24h = 0
    previous_24h = 0
    for detection in detections:
        age = now_ms - detection.timestamp_ms
        if age < DAY_MS:
            last_24h += 1
        elif age < 2 * DAY_MS:
            previous_24h += 1

    if previous_24h == 0:
        return None

    change = round((last_24h - previous_24h) / previous_24h * 100, 1)
    if change > 0:
        direction = "increasing"
    elif change < 0:
        direction = "decreasing"
    else:
        direction = "stable"
    return Trend(last_24h=last_24h, previous_24h=previous_24h, change_pct=change, direction=direction)


def _recent_entry(detection: FireDetection) -> Dict[str, Any]:
    return {
        "lat": detection.lat,
        "lng": detection.lng,
        "time": detection.local_label,
        "confidence": detection.confidence,
        "category": detection.category,
        "frp": detection.frp,
    }


def _confidence_entry(detection: FireDetection) -> Dict[str, Any]:
    return {
        "lat": detection.lat,
        "lng": detection.lng,
        "confidence": detection.confidence,
        "category": detection.category,
        "frp": detection.frp,
    }


def compute_statistics(
    detections: Sequence[FireDetection],
    now: datetime,
    *,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> StatisticsSnapshot:
    """Aggregate a detection set into a `StatisticsSnapshot`.

    Pure function of its inputs; `now` anchors the trend windows. An empty
    set yields a snapshot with `total == 0`.
    """
    if not detections:
        return StatisticsSnapshot(total=0)

    by_confidence: Dict[str, int] = {tier.key: 0 for tier in CONFIDENCE_TIERS}
    by_severity: Dict[str, int] = {level: 0 for level in SEVERITY_LEVELS}
    by_hour: Dict[int, int] = {hour: 0 for hour in range(24)}
    by_satellite: Counter[str] = Counter()
    by_day: Counter[str] = Counter()

    confidence_sum = 0
    frp_sum = 0.0
    area_sum = 0.0
    max_frp = 0.0
    for detection in detections:
        by_confidence[detection.confidence_tier] = by_confidence.get(detection.confidence_tier, 0) + 1
        by_severity[detection.severity] = by_severity.get(detection.severity, 0) + 1
        by_hour[_hour_of(detection)] += 1
        by_satellite[detection.satellite] += 1
        by_day[detection.local_date] += 1

        confidence_sum += detection.confidence
        frp_sum += detection.frp
        area_sum += detection.pixel_area
        max_frp = max(max_frp, detection.frp)

    total = len(detections)
    most_recent: List[FireDetection] = sorted(detections, key=lambda d: d.timestamp_ms, reverse=True)[:TOP_N]
    most_confident: List[FireDetection] = sorted(detections, key=lambda d: d.confidence, reverse=True)[:TOP_N]

    return StatisticsSnapshot(
        total=total,
        by_confidence=by_confidence,
        by_satellite=dict(by_satellite),
        by_hour=by_hour,
        by_day=dict(by_day),
        by_severity=by_severity,
        mean_confidence=round(confidence_sum / total, 1),
        mean_frp=round(frp_sum / total, 1),
        max_frp=round(max_frp, 1),
        total_pixel_area=round(area_sum, 2),
        most_recent=tuple(_recent_entry(d) for d in most_recent),
        highest_confidence=tuple(_confidence_entry(d) for d in most_confident),
        trend=compute_trend(detections, now, offset_hours=offset_hours),
    )
