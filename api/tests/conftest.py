"""Pytest configuration for api tests.

This configuration file:
1. Adds the workspace root to sys.path so api tests can import `ingest`
2. Provides a fake FIRMS upstream and a factory for wired-up fire services
"""
import sys
from pathlib import Path

import httpx
import pytest

workspace_root = Path(__file__).parent.parent.parent
if str(workspace_root) not in sys.path:
    sys.path.insert(0, str(workspace_root))

from api.fires.cache import ResultCache  # noqa: E402
from api.fires.service import FireService  # noqa: E402
from ingest.config import FirmsSettings  # noqa: E402

HEADER = (
    "latitude,longitude,acq_date,acq_time,confidence,bright_ti4,bright_ti5,"
    "frp,scan,track,satellite,instrument,daynight,version"
)
SCENARIO_ROW = "-16.5,-63.2,2024-08-15,1430,72,335,325,120,1.2,1.1,N20,VIIRS,D,2.0"


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFirms:
    """In-memory FIRMS area API; bodies are keyed by source id."""

    def __init__(self) -> None:
        self.bodies = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # /api/area/csv/{key}/{source}/{bbox}/{days}
        body = self.bodies.get(request.url.path.split("/")[5], "")
        if isinstance(body, Exception):
            raise body
        return httpx.Response(200, text=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def days_requested(self):
        return [int(r.url.path.split("/")[-1]) for r in self.requests]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def firms() -> FakeFirms:
    upstream = FakeFirms()
    upstream.bodies["VIIRS_SNPP_NRT"] = f"{HEADER}\n{SCENARIO_ROW}\n"
    return upstream


@pytest.fixture
def firms_settings() -> FirmsSettings:
    return FirmsSettings(
        FIRMS_MAP_KEY="test-key",
        FIRMS_DEFAULT_SOURCE="VIIRS_SNPP_NRT",
        FIRMS_DEFAULT_REGION="bolivia",
        FIRMS_MAX_DAYS=10,
    )


@pytest.fixture
def make_service(firms, firms_settings, fake_clock):
    """Build a `FireService` that talks to the fake upstream."""

    def _make(settings: FirmsSettings = None) -> FireService:
        resolved = settings or firms_settings
        cache = ResultCache(
            detections_ttl_seconds=resolved.detections_ttl_seconds,
            stats_ttl_seconds=resolved.stats_ttl_seconds,
            clock=fake_clock,
        )
        return FireService(resolved, cache, transport_factory=firms.transport)

    return _make
