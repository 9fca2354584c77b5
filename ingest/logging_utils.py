"""Shared helpers for structured/consistent pipeline logging."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys() | {"message", "asctime"}
)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install the root handler used by the CLI and the API process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _encode_context(context: Mapping[str, Any]) -> str:
    """Convert a context mapping to a JSON-ish string for log messages."""
    try:
        return json.dumps(context, default=str, sort_keys=True)
    except TypeError:
        safe_ctx = {k: str(v) for k, v in context.items()}
        return json.dumps(safe_ctx, sort_keys=True)


def log_event(
    logger: logging.Logger,
    event: str,
    message: str,
    *,
    level: str = "info",
    **fields: Any,
) -> None:
    """Emit a log message tagged with an event name and structured context.

    Example:
        log_event(LOGGER, "firms.fetch", "No data for source", source="MODIS_NRT")
    """

    context = {k: v for k, v in fields.items() if v is not None}
    payload = f"[{event}] {message}"
    if context:
        payload = f"{payload} | {_encode_context(context)}"

    log_fn = getattr(logger, level, logger.info)
    # "message" and friends are reserved LogRecord attributes.
    extra = {f"ctx_{k}" if k in _RESERVED_ATTRS else k: v for k, v in context.items()}
    log_fn(payload, extra={"event": event, **extra})

