"""Helpers for downloading NASA FIRMS CSV feeds, one request per source."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import httpx

from ingest.logging_utils import log_event
from ingest.rules import HEADER_MARKER, INVALID_KEY_SENTINEL, VALIDATION_BBOX

LOGGER = logging.getLogger(__name__)
FIRMS_BASE_URL = "https://firms.modaps.eosdis.nasa.gov/api/area/csv"
USER_AGENT = "firms-monitor/fetch"

AUTH_ERROR = "auth"
TRANSPORT_ERROR = "transport"
TIMEOUT_ERROR = "timeout"


class FIRMSClientError(RuntimeError):
    """Raised when a FIRMS request fails outright."""


@dataclass(frozen=True, slots=True)
class SourceError:
    """Failure recorded for one source; other sources are unaffected."""

    source: str
    error: str
    kind: str = TRANSPORT_ERROR

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "error": self.error, "kind": self.kind}


@dataclass(frozen=True, slots=True)
class SourceFetchResult:
    source: str
    text: Optional[str] = None
    error: Optional[SourceError] = None

    @property
    def has_data(self) -> bool:
        return self.text is not None


def build_firms_url(map_key: str, source: str, bbox: str, day_range: int, date: str | None = None) -> str:
    """Construct the FIRMS API URL for a given source and spatial window."""
    base = f"{FIRMS_BASE_URL}/{map_key}/{source}/{bbox}/{day_range}"
    return f"{base}/{date}" if date else base


def _redact(text: str, map_key: str) -> str:
    return text.replace(map_key, "***") if map_key else text


def classify_body(source: str, text: str) -> SourceFetchResult:
    """Interpret a FIRMS response body: invalid-key sentinel, no data, or CSV."""
    if text.strip() == INVALID_KEY_SENTINEL:
        log_event(LOGGER, "firms.fetch", "Provider rejected the map key", level="error", source=source)
        return SourceFetchResult(source, error=SourceError(source, "Invalid API key", AUTH_ERROR))
    if HEADER_MARKER not in text:
        log_event(LOGGER, "firms.fetch", "No data for source", level="warning", source=source)
        return SourceFetchResult(source)
    return SourceFetchResult(source, text=text)


async def fetch_source(
    client: httpx.AsyncClient,
    map_key: str,
    source: str,
    bbox: str,
    day_range: int,
    timeout_seconds: float,
) -> SourceFetchResult:
    """Download one source's CSV; transport failures come back as a `SourceError`."""
    url = build_firms_url(map_key, source, bbox, day_range)
    log_event(LOGGER, "firms.fetch", "Requesting FIRMS CSV", source=source, url=_redact(url, map_key))
    try:
        response = await client.get(url, timeout=timeout_seconds, headers={"User-Agent": USER_AGENT})
    except httpx.TimeoutException as exc:
        log_event(LOGGER, "firms.fetch", "FIRMS request timed out", level="error", source=source)
        message = _redact(str(exc), map_key) or f"Timed out after {timeout_seconds}s"
        return SourceFetchResult(source, error=SourceError(source, message, TIMEOUT_ERROR))
    except httpx.HTTPError as exc:
        message = _redact(str(exc), map_key) or exc.__class__.__name__
        log_event(LOGGER, "firms.fetch", "FIRMS request failed", level="error", source=source, error=message)
        return SourceFetchResult(source, error=SourceError(source, message, TRANSPORT_ERROR))

    text = response.text
    if text.strip() != INVALID_KEY_SENTINEL and response.is_error:
        message = f"HTTP {response.status_code} from FIRMS"
        log_event(LOGGER, "firms.fetch", "FIRMS returned an error status", level="error", source=source, error=message)
        return SourceFetchResult(source, error=SourceError(source, message, TRANSPORT_ERROR))
    return classify_body(source, text)


async def fetch_sources(
    map_key: str,
    sources: Sequence[str],
    bbox: str,
    day_range: int,
    *,
    request_timeout_seconds: float,
    overall_timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> List[SourceFetchResult]:
    """Fetch every source concurrently under a shared deadline.

    Results keep the order of `sources`. Sources still in flight when the
    deadline passes are cancelled and reported as timeouts.
    """
    if not sources:
        return []

    async with httpx.AsyncClient(
        timeout=request_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    ) as client:
        tasks = [
            asyncio.create_task(
                fetch_source(client, map_key, source, bbox, day_range, request_timeout_seconds)
            )
            for source in sources
        ]
        _, pending = await asyncio.wait(tasks, timeout=overall_timeout_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    results: List[SourceFetchResult] = []
    for source, task in zip(sources, tasks):
        if task in pending:
            log_event(LOGGER, "firms.fetch", "Source missed the overall deadline", level="error", source=source)
            error = SourceError(source, f"Timed out after {overall_timeout_seconds}s", TIMEOUT_ERROR)
            results.append(SourceFetchResult(source, error=error))
        else:
            results.append(task.result())
    return results


async def validate_map_key(
    map_key: str,
    timeout_seconds: float,
    *,
    source: str = "VIIRS_SNPP_NRT",
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Probe FIRMS with a tiny box and report whether the key is accepted."""
    url = build_firms_url(map_key, source, VALIDATION_BBOX, 1)
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
            response = await client.get(url, headers={"User-Agent": USER_AGENT})
    except httpx.HTTPError as exc:
        raise FIRMSClientError(f"Failed to validate FIRMS key: {_redact(str(exc), map_key)}") from exc
    return "Invalid MAP_KEY" not in response.text
