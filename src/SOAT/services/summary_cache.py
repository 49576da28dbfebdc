"""
Read-through cache of per-schedule assessment summaries.

One instance is owned by the application (``app.state.summary_cache``) and
handed to the services that need it. Entries are keyed by schedule id and
dropped by ``invalidate(schedule_id)`` whenever a submission for that schedule
commits.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from SOAT.app_logger import get_logger
from SOAT.engine.aggregation import Completeness


@dataclass
class CacheConfig:
    """Configuration for the summary cache."""

    max_size: int = 256
    ttl_seconds: int = 300  # 0 disables expiry


@dataclass
class CacheEntry:
    summary: Completeness
    created_at: float
    access_count: int = 0

    def is_expired(self, ttl_seconds: int, now: float) -> bool:
        return ttl_seconds > 0 and now - self.created_at > ttl_seconds


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    invalidations: int = 0
    expired_evictions: int = 0
    size_evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class AssessmentSummaryCache:
    """
    LRU + TTL cache of Completeness values.

    A load that races with an invalidation of the same key is not stored: while
    a load for a key is in flight the key carries a generation counter that
    ``invalidate`` bumps, and the loaded value is only kept if the generation it
    started under is still current. Counters are dropped once the last load of
    a key finishes.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CacheConfig()
        self.logger = get_logger(f"{__name__}.AssessmentSummaryCache")
        self._clock = clock
        self._cache: "OrderedDict[int, CacheEntry]" = OrderedDict()
        self._generations: Dict[int, int] = {}
        self._loading: Dict[int, int] = {}
        self._lock = threading.RLock()
        self.stats = CacheStats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, schedule_id: int) -> bool:
        with self._lock:
            return schedule_id in self._cache

    def get(self, schedule_id: int) -> Optional[Completeness]:
        with self._lock:
            entry = self._cache.get(schedule_id)
            if entry is None:
                self.stats.misses += 1
                return None
            if entry.is_expired(self.config.ttl_seconds, self._clock()):
                del self._cache[schedule_id]
                self.stats.misses += 1
                self.stats.expired_evictions += 1
                return None
            self._cache.move_to_end(schedule_id)
            entry.access_count += 1
            self.stats.hits += 1
            return entry.summary

    def put(self, schedule_id: int, summary: Completeness, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generations.get(schedule_id, 0):
                self.logger.debug("discarding stale summary for schedule %s", schedule_id)
                return False
            self._cache[schedule_id] = CacheEntry(summary=summary, created_at=self._clock())
            self._cache.move_to_end(schedule_id)
            while len(self._cache) > self.config.max_size:
                evicted, _ = self._cache.popitem(last=False)
                self.stats.size_evictions += 1
                self.logger.debug("evicted summary for schedule %s", evicted)
            return True

    async def get_or_load(
        self,
        schedule_id: int,
        loader: Callable[[], Awaitable[Completeness]],
    ) -> Completeness:
        cached = self.get(schedule_id)
        if cached is not None:
            return cached
        with self._lock:
            self._loading[schedule_id] = self._loading.get(schedule_id, 0) + 1
            generation = self._generations.get(schedule_id, 0)
        try:
            summary = await loader()
            self.put(schedule_id, summary, generation=generation)
        finally:
            self._finish_load(schedule_id)
        return summary

    def _finish_load(self, schedule_id: int) -> None:
        with self._lock:
            remaining = self._loading.pop(schedule_id) - 1
            if remaining:
                self._loading[schedule_id] = remaining
            else:
                # nothing can race on this key any more
                self._generations.pop(schedule_id, None)

    def _bump(self, schedule_id: int) -> None:
        if schedule_id in self._loading:
            self._generations[schedule_id] = self._generations.get(schedule_id, 0) + 1

    def invalidate(self, schedule_id: int) -> None:
        with self._lock:
            self._bump(schedule_id)
            if self._cache.pop(schedule_id, None) is not None:
                self.stats.invalidations += 1
                self.logger.debug("invalidated summary for schedule %s", schedule_id)

    def clear(self) -> None:
        with self._lock:
            for schedule_id in list(self._loading):
                self._bump(schedule_id)
            self._cache.clear()

    def tracked_keys(self) -> int:
        """Keys holding load bookkeeping; zero whenever no load is in flight."""
        with self._lock:
            return len(self._loading) + len(self._generations)
