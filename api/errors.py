"""Standardized error responses."""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.config import settings

LOGGER = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    code: str
    message: str
    details: Optional[Any] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "configuration_error",
                "message": "FIRMS_MAP_KEY is not configured",
                "details": {"hint": "Set FIRMS_MAP_KEY in the .env file"},
            }
        }
    }


class MissingMapKeyError(RuntimeError):
    """No FIRMS credential is configured; raised before any fetch is attempted."""


class InvalidQueryError(ValueError):
    """Query parameters that cannot be resolved (bad bbox, unsupported kind)."""

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.details = details


def _error(status_code: int, code: str, message: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(code=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _missing_map_key(request: Request, exc: MissingMapKeyError) -> JSONResponse:
    LOGGER.error("Rejected %s: %s", request.url.path, exc)
    return _error(500, "configuration_error", str(exc), {"hint": "Set FIRMS_MAP_KEY in the .env file"})


async def _invalid_query(request: Request, exc: InvalidQueryError) -> JSONResponse:
    return _error(400, "invalid_query", str(exc), exc.details)


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s", request.url.path)
    message = str(exc) if settings.environment == "dev" else "An unexpected error occurred"
    return _error(500, "internal_error", message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MissingMapKeyError, _missing_map_key)
    app.add_exception_handler(InvalidQueryError, _invalid_query)
    app.add_exception_handler(Exception, _unhandled)
