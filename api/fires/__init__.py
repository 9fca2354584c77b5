"""Fire detection service layer (query resolution, caching, statistics)."""

from ingest.stats import StatisticsSnapshot, compute_statistics

from .cache import ResultCache, TTLStore
from .service import FireQuery, FireService, resolve_query

__all__ = [
    "FireQuery",
    "FireService",
    "ResultCache",
    "StatisticsSnapshot",
    "TTLStore",
    "compute_statistics",
    "resolve_query",
]
