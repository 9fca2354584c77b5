"""Map parsed FIRMS records onto `FireDetection`s with derived classification fields."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Mapping, Optional, Tuple

from ingest.firms_csv import parse_float
from ingest.logging_utils import log_event
from ingest.models import FireDetection, RawRecord
from ingest.rules import (
    CONFIDENCE_TIERS,
    DEFAULT_CATEGORY,
    DEFAULT_CONFIDENCE_TIER,
    DEFAULT_SEVERITY,
    EXTENSIVE_AREA_SUFFIX,
    EXTENSIVE_AREA_THRESHOLD,
    KELVIN_OFFSET,
    RISK_BONUSES,
    RISK_RANGE,
    SEVERITY_RULES,
)

LOGGER = logging.getLogger(__name__)
Clock = Callable[[], datetime]
DEFAULT_UTC_OFFSET_HOURS = -4
UNKNOWN = "unknown"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _number(value: Optional[str]) -> float:
    parsed = parse_float(value)
    return 0.0 if parsed is None else parsed


def parse_confidence(value: Optional[str]) -> int:
    """Integer confidence clamped to 0..100; anything unparseable is 0."""
    parsed = parse_float(value)
    if parsed is None:
        return 0
    return max(0, min(100, int(parsed)))


def _clock_part(text: str, upper: int) -> int:
    """Two-digit hour/minute field; missing or out of range reads as 0."""
    value = int(text) if text.isdigit() else 0
    return value if value < upper else 0


def _shifted_now(clock: Clock, shift: timedelta) -> datetime:
    return clock().astimezone(timezone.utc).replace(tzinfo=None) + shift


def to_local_time(
    acq_date: Optional[str],
    acq_time: Optional[str],
    *,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
    clock: Clock = utc_now,
) -> datetime:
    """Shift a FIRMS acquisition date/time (UTC) by a fixed offset.

    The result is a naive datetime holding local wall-clock time. Missing or
    invalid input falls back to the current time shifted the same way.

    `acq_time` is HHMM. FIRMS drops leading zeros ("530" is 05:30), so an
    all-digit value is left-padded to four digits before the hour and minute
    are read; any other value is read as-is and bad parts become 0.
    """
    shift = timedelta(hours=offset_hours)
    if not acq_date or not acq_time:
        log_event(LOGGER, "firms.normalize", "Missing acquisition date or time", level="debug")
        return _shifted_now(clock, shift)

    padded = _pad_time(acq_time)
    hour = _clock_part(padded[0:2], 24)
    minute = _clock_part(padded[2:4], 60)
    try:
        year, month, day = (int(part) for part in acq_date.split("-"))
        return datetime(year, month, day, hour, minute) + shift
    except (TypeError, ValueError, OverflowError) as exc:
        log_event(
            LOGGER,
            "firms.normalize",
            "Invalid acquisition date; using current time",
            level="debug",
            acq_date=acq_date,
            acq_time=acq_time,
            error=str(exc),
        )
        return _shifted_now(clock, shift)


def epoch_millis(naive: datetime) -> int:
    """Milliseconds since the epoch, reading `naive` as if it were UTC."""
    return int(naive.replace(tzinfo=timezone.utc).timestamp() * 1000)


def compute_risk_level(confidence: int, brightness_ti4: float, brightness_ti5: float, frp: float) -> int:
    """Confidence plus additive heat bonuses, clamped only at the end."""
    values = {"brightness_ti4": brightness_ti4, "brightness_ti5": brightness_ti5, "frp": frp}
    risk = confidence
    for rule in RISK_BONUSES:
        if values[rule.field] > rule.threshold:
            risk += rule.bonus
    low, high = RISK_RANGE
    return min(high, max(low, risk))


def categorize(frp: float, scan: float, track: float) -> Tuple[str, str]:
    """Return `(category, severity)` from FRP and pixel footprint."""
    category, severity = DEFAULT_CATEGORY, DEFAULT_SEVERITY
    for rule in SEVERITY_RULES:
        if frp > rule.frp_above:
            category, severity = rule.category, rule.severity
            break
    if scan * track > EXTENSIVE_AREA_THRESHOLD:
        category += EXTENSIVE_AREA_SUFFIX
    return category, severity


def classify_confidence(confidence: int) -> str:
    """Scan tiers in ascending `min` order; the first `[min, max)` hit wins."""
    last = CONFIDENCE_TIERS[-1]
    for tier in CONFIDENCE_TIERS:
        if tier.min <= confidence < tier.max:
            return tier.key
        if tier is last and confidence == tier.max:
            return tier.key
    return DEFAULT_CONFIDENCE_TIER


def _pad_time(acq_time: str) -> str:
    cleaned = acq_time.strip()
    return cleaned.zfill(4) if cleaned.isdigit() else cleaned


def _time_label(acq_time: str) -> str:
    padded = _pad_time(acq_time)
    return f"{padded[0:2]}:{padded[2:4] or '00'}"


def _text(record: Mapping[str, str], key: str, default: str) -> str:
    return record.get(key) or default


def normalize_record(
    record: RawRecord,
    source_label: str,
    *,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
    clock: Clock = utc_now,
) -> Optional[FireDetection]:
    """Build a `FireDetection` from a raw record, or None if coordinates are unusable."""
    lat = parse_float(record.get("latitude"))
    lng = parse_float(record.get("longitude"))
    if lat is None or lng is None:
        return None

    confidence = parse_confidence(record.get("confidence"))
    acq_date = record.get("acq_date", "")
    acq_time = record.get("acq_time", "")
    local = to_local_time(acq_date, acq_time, offset_hours=offset_hours, clock=clock)

    brightness_ti4 = _number(record.get("bright_ti4"))
    brightness_ti5 = _number(record.get("bright_ti5"))
    frp = _number(record.get("frp"))
    scan = _number(record.get("scan"))
    track = _number(record.get("track"))
    category, severity = categorize(frp, scan, track)
    instrument = _text(record, "instrument", UNKNOWN)

    return FireDetection(
        lat=lat,
        lng=lng,
        acq_date_utc=acq_date,
        acq_time_utc=acq_time,
        acq_time_label=_time_label(acq_time),
        local_date=local.strftime("%Y-%m-%d"),
        local_time=local.strftime("%H:%M"),
        timestamp_ms=epoch_millis(local),
        confidence=confidence,
        confidence_tier=classify_confidence(confidence),
        risk_level=compute_risk_level(confidence, brightness_ti4, brightness_ti5, frp),
        category=category,
        severity=severity,
        description=f"{category} - {record.get('instrument') or 'FIRMS'}",
        satellite=_text(record, "satellite", UNKNOWN),
        instrument=instrument,
        day_night=_text(record, "daynight", "D"),
        sensor_version=_text(record, "version", ""),
        brightness_ti4=brightness_ti4,
        brightness_ti5=brightness_ti5,
        frp=frp,
        scan=scan,
        track=track,
        pixel_area=scan * track,
        estimated_temperature_c=round(brightness_ti4 - KELVIN_OFFSET, 1) if brightness_ti4 else None,
        source_label=source_label,
    )


def normalize_rows(
    records: Iterable[RawRecord],
    source_label: str,
    *,
    offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
    clock: Clock = utc_now,
) -> List[FireDetection]:
    detections: List[FireDetection] = []
    for record in records:
        detection = normalize_record(record, source_label, offset_hours=offset_hours, clock=clock)
        if detection is not None:
            detections.append(detection)
    return detections
