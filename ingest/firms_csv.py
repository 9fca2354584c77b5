"""Parsing of raw FIRMS CSV payloads into field-keyed records."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ingest.logging_utils import log_event
from ingest.models import RawRecord
from ingest.rules import REQUIRED_FIELDS

LOGGER = logging.getLogger(__name__)
_HEADER_SANITIZE = re.compile(r"[^a-z0-9_]")
SEPARATOR = ","
QUOTE = '"'


@dataclass
class ParseSummary:
    """Capture row parsing results for logging."""

    total_lines: int = 0
    parsed_rows: int = 0
    skipped_invalid_coord: int = 0
    skipped_malformed: int = 0
    missing_fields: List[str] = field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return bool(self.missing_fields)


@dataclass(frozen=True, slots=True)
class RowOutcome:
    """Per-line result: either a record or the reason it was dropped."""

    record: Optional[RawRecord] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def normalize_header(token: str) -> str:
    return _HEADER_SANITIZE.sub("_", token.strip().lower())


def split_line(line: str) -> List[str]:
    """Split a CSV line, treating separators inside double quotes as literal.

    Quote characters only toggle the quoted mode and are not kept. Values are
    stripped of surrounding whitespace.
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if char == QUOTE:
            in_quotes = not in_quotes
        elif char == SEPARATOR and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    values.append("".join(current).strip())
    return values


def parse_float(value: Optional[str]) -> Optional[float]:
    """Return the float value of `value`, or None when it is empty, non-numeric or not finite."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_row(headers: Sequence[str], line: str) -> RowOutcome:
    """Zip one data line with the header and check its coordinates."""
    values = split_line(line)
    record: RawRecord = {
        name: (values[idx] if idx < len(values) else "") for idx, name in enumerate(headers)
    }
    if parse_float(record.get("latitude")) is None or parse_float(record.get("longitude")) is None:
        return RowOutcome(reason="invalid_coordinates")
    return RowOutcome(record=record)


def parse_csv(text: str) -> tuple[List[RawRecord], ParseSummary]:
    """Parse a FIRMS CSV body into `RawRecord`s plus a validation summary.

    A header missing any of the required fields rejects the whole payload.
    Bad data lines are dropped individually.
    """
    summary = ParseSummary()
    lines = text.strip().splitlines()
    if len(lines) < 2:
        log_event(LOGGER, "firms.parse", "CSV is empty or has no data rows", level="warning")
        return [], summary

    headers = [normalize_header(token) for token in lines[0].split(SEPARATOR)]
    summary.missing_fields = [name for name in REQUIRED_FIELDS if name not in headers]
    if summary.rejected:
        log_event(
            LOGGER,
            "firms.parse",
            "CSV header is missing required fields",
            level="error",
            missing=summary.missing_fields,
            headers=headers,
        )
        return [], summary

    records: List[RawRecord] = []
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        summary.total_lines += 1
        try:
            outcome = parse_row(headers, line)
        except Exception as exc:  # one broken line never aborts the batch
            summary.skipped_malformed += 1
            log_event(
                LOGGER,
                "firms.parse",
                "Skipping malformed line",
                level="warning",
                line=line_number,
                error=str(exc),
            )
            continue
        if not outcome.ok:
            summary.skipped_invalid_coord += 1
            continue
        records.append(outcome.record)

    summary.parsed_rows = len(records)
    if summary.skipped_invalid_coord or summary.skipped_malformed:
        log_event(
            LOGGER,
            "firms.parse",
            "Dropped rows while parsing",
            level="warning",
            total=summary.total_lines,
            parsed=summary.parsed_rows,
            invalid_coord=summary.skipped_invalid_coord,
            malformed=summary.skipped_malformed,
        )
    return records, summary
