"""Request-scoped access to the process-wide fire service."""

from __future__ import annotations

from fastapi import Request

from api.fires.service import FireService


def get_fire_service(request: Request) -> FireService:
    return request.app.state.fire_service
