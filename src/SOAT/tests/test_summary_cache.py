# src/SOAT/tests/test_summary_cache.py
from __future__ import annotations

import pytest

from SOAT.engine import Completeness
from SOAT.services.summary_cache import AssessmentSummaryCache, CacheConfig


class FakeMonotonic:
    def __init__(self) -> None:
        self.t = 1000.0

    def __call__(self) -> float:
        return self.t


def test_get_put_and_stats():
    cache = AssessmentSummaryCache()
    assert cache.get(1) is None
    cache.put(1, Completeness(1, 2))
    assert cache.get(1) == Completeness(1, 2)
    assert 1 in cache and len(cache) == 1
    assert cache.stats.hits == 1 and cache.stats.misses == 1
    assert cache.stats.hit_rate == 0.5


def test_lru_eviction():
    cache = AssessmentSummaryCache(CacheConfig(max_size=2))
    cache.put(1, Completeness(0, 1))
    cache.put(2, Completeness(0, 1))
    cache.get(1)  # 2 becomes least recently used
    cache.put(3, Completeness(0, 1))
    assert 1 in cache and 3 in cache and 2 not in cache
    assert cache.stats.size_evictions == 1


def test_ttl_expiry():
    clock = FakeMonotonic()
    cache = AssessmentSummaryCache(CacheConfig(ttl_seconds=10), clock=clock)
    cache.put(1, Completeness(1, 1))
    clock.t += 11
    assert cache.get(1) is None
    assert cache.stats.expired_evictions == 1


def test_invalidate_only_drops_that_schedule():
    cache = AssessmentSummaryCache()
    cache.put(1, Completeness(1, 2))
    cache.put(2, Completeness(2, 2))
    cache.invalidate(1)
    assert 1 not in cache
    assert cache.get(2) == Completeness(2, 2)
    assert cache.stats.invalidations == 1


@pytest.mark.anyio
async def test_get_or_load_reads_through_once():
    cache = AssessmentSummaryCache()
    calls = []

    async def loader():
        calls.append(1)
        return Completeness(1, 3)

    assert await cache.get_or_load(5, loader) == Completeness(1, 3)
    assert await cache.get_or_load(5, loader) == Completeness(1, 3)
    assert len(calls) == 1


@pytest.mark.anyio
async def test_load_racing_an_invalidation_is_not_stored():
    cache = AssessmentSummaryCache()

    async def loader():
        # a submission commits while the summary is being computed
        cache.invalidate(5)
        return Completeness(0, 3)

    assert await cache.get_or_load(5, loader) == Completeness(0, 3)
    assert 5 not in cache
    assert cache.tracked_keys() == 0


@pytest.mark.anyio
async def test_invalidating_many_schedules_keeps_no_bookkeeping():
    cache = AssessmentSummaryCache()

    async def loader():
        return Completeness(1, 1)

    for sid in range(50):
        await cache.get_or_load(sid, loader)
        cache.invalidate(sid)
    cache.invalidate(999)
    cache.clear()

    assert len(cache) == 0
    assert cache.tracked_keys() == 0


@pytest.mark.anyio
async def test_failed_load_releases_its_key():
    cache = AssessmentSummaryCache()

    async def loader():
        raise RuntimeError("store down")

    with pytest.raises(RuntimeError):
        await cache.get_or_load(3, loader)
    assert 3 not in cache
    assert cache.tracked_keys() == 0


@pytest.mark.anyio
async def test_overlapping_loads_keep_the_newer_generation():
    cache = AssessmentSummaryCache()

    async def inner():
        return Completeness(2, 2)

    async def outer():
        # a submission commits, then another reader loads the fresh value
        cache.invalidate(7)
        await cache.get_or_load(7, inner)
        return Completeness(1, 2)

    assert await cache.get_or_load(7, outer) == Completeness(1, 2)
    assert cache.get(7) == Completeness(2, 2)
    assert cache.tracked_keys() == 0
