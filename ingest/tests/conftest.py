"""Shared fixtures for pipeline tests."""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

workspace_root = Path(__file__).parent.parent.parent
if str(workspace_root) not in sys.path:
    sys.path.insert(0, str(workspace_root))

from ingest.models import FireDetection  # noqa: E402

HEADER = (
    "latitude,longitude,acq_date,acq_time,confidence,bright_ti4,bright_ti5,"
    "frp,scan,track,satellite,instrument,daynight,version"
)
SCENARIO_ROW = "-16.5,-63.2,2024-08-15,1430,72,335,325,120,1.2,1.1,N20,VIIRS,D,2.0"


@pytest.fixture
def scenario_csv() -> str:
    return f"{HEADER}\n{SCENARIO_ROW}\n"


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 8, 16, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_detection():
    """Factory for `FireDetection`s with overridable fields."""

    def _make(**overrides) -> FireDetection:
        fields = dict(
            lat=-16.5,
            lng=-63.2,
            acq_date_utc="2024-08-15",
            acq_time_utc="1430",
            acq_time_label="14:30",
            local_date="2024-08-15",
            local_time="10:30",
            timestamp_ms=int(datetime(2024, 8, 15, 10, 30, tzinfo=timezone.utc).timestamp() * 1000),
            confidence=72,
            confidence_tier="high",
            risk_level=100,
            category="large active fire",
            severity="very_high",
            description="large active fire - VIIRS",
            satellite="N20",
            instrument="VIIRS",
            day_night="D",
            sensor_version="2.0",
            brightness_ti4=335.0,
            brightness_ti5=325.0,
            frp=120.0,
            scan=1.2,
            track=1.1,
            pixel_area=1.2 * 1.1,
            estimated_temperature_c=61.9,
            source_label="VIIRS NOAA-20",
        )
        fields.update(overrides)
        return FireDetection(**fields)

    return _make
