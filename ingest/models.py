"""Common data structures for the detection pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

# Header name (lower-cased, non [a-z0-9_] replaced by "_") -> raw string value.
RawRecord = Dict[str, str]
DedupeKey = Tuple[float, float, int]


def compute_dedupe_key(lat: float, lng: float, timestamp_ms: int) -> DedupeKey:
    """Coordinate-and-time fingerprint used to collapse cross-source duplicates."""
    return (round(lat, 4), round(lng, 4), timestamp_ms)


@dataclass(frozen=True, slots=True)
class FireDetection:
    """Normalized detection with derived classification fields."""

    lat: float
    lng: float
    acq_date_utc: str
    acq_time_utc: str
    acq_time_label: str
    local_date: str
    local_time: str
    timestamp_ms: int
    confidence: int
    confidence_tier: str
    risk_level: int
    category: str
    severity: str
    description: str
    satellite: str
    instrument: str
    day_night: str
    sensor_version: str
    brightness_ti4: float
    brightness_ti5: float
    frp: float
    scan: float
    track: float
    pixel_area: float
    estimated_temperature_c: Optional[float]
    source_label: str

    @property
    def dedupe_key(self) -> DedupeKey:
        return compute_dedupe_key(self.lat, self.lng, self.timestamp_ms)

    @property
    def local_label(self) -> str:
        return f"{self.local_date} {self.local_time}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
