"""In-process TTL caches for detection sets and statistics snapshots."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from ingest.logging_utils import log_event

LOGGER = logging.getLogger(__name__)
V = TypeVar("V")
MonotonicClock = Callable[[], float]


@dataclass
class CacheStats:
    keys: int = 0
    hits: int = 0
    misses: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"keys": self.keys, "hits": self.hits, "misses": self.misses}


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[V]):
    value: V
    stored_at: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return (now - self.stored_at) < self.ttl_seconds


class TTLStore(Generic[V]):
    """Strict TTL key/value store.

    Expired entries read as misses but stay in place until `sweep()` or
    `clear()`. All access goes through one lock.
    """

    def __init__(self, name: str, ttl_seconds: float, clock: MonotonicClock = time.monotonic) -> None:
        self.name = name
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[V]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_fresh(self._clock()):
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl_seconds=self.ttl_seconds)

    def sweep(self) -> int:
        """Drop expired entries and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(keys=len(self._entries), hits=self._hits, misses=self._misses)


class ResultCache:
    """The two cache namespaces used by the fire service."""

    def __init__(
        self,
        detections_ttl_seconds: float,
        stats_ttl_seconds: float,
        clock: MonotonicClock = time.monotonic,
    ) -> None:
        self.detections: TTLStore = TTLStore("detections", detections_ttl_seconds, clock)
        self.stats: TTLStore = TTLStore("stats", stats_ttl_seconds, clock)

    def sweep(self) -> int:
        removed = self.detections.sweep() + self.stats.sweep()
        if removed:
            log_event(LOGGER, "firms.cache", "Swept expired entries", removed=removed)
        return removed

    def clear(self) -> int:
        """Evict both namespaces; returns the number of detection keys removed."""
        removed = self.detections.clear()
        self.stats.clear()
        log_event(LOGGER, "firms.cache", "Cache cleared", removed=removed)
        return removed

    def stats_summary(self) -> Dict[str, Dict[str, int]]:
        return {
            self.detections.name: self.detections.stats().to_dict(),
            self.stats.name: self.stats.stats().to_dict(),
        }
