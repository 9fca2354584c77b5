import asyncio
import contextlib
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI

from api.config import settings
from api.errors import register_error_handlers
from api.fires.cache import ResultCache
from api.fires.service import FireService
from api.routes import fires_router, internal_router
from ingest.config import settings as firms_settings
from ingest.logging_utils import configure_logging, log_event

LOGGER = logging.getLogger(__name__)


async def _sweep_periodically(cache: ResultCache, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        cache.sweep()


def build_fire_service() -> FireService:
    cache = ResultCache(
        detections_ttl_seconds=firms_settings.detections_ttl_seconds,
        stats_ttl_seconds=firms_settings.stats_ttl_seconds,
    )
    return FireService(firms_settings, cache)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    service: FireService = app.state.fire_service
    if not service.settings.has_map_key:
        log_event(LOGGER, "firms.config", "FIRMS_MAP_KEY is not configured; fire queries will fail", level="warning")
    sweeper = asyncio.create_task(_sweep_periodically(service.cache, service.settings.cache_sweep_seconds))
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


def create_app(service: Optional[FireService] = None) -> FastAPI:
    application = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    application.state.fire_service = service or build_fire_service()
    register_error_handlers(application)
    application.include_router(internal_router)
    application.include_router(fires_router)
    return application


configure_logging(settings.log_level)
app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
