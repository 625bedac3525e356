"""Tests for the in-memory cache backend and the read-through result cache."""

from __future__ import annotations

import asyncio

import pytest

from auction_listing.infrastructure.cache import CacheBackend, InMemoryCache, ResultCache
from auction_listing.infrastructure.observability import get_counter_value, reset_metrics
from auction_listing.infrastructure.observability.metrics import CACHE_ERRORS, CACHE_LOOKUPS


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ExplodingBackend:
    def get(self, key):
        raise RuntimeError("backend down")

    def set(self, key, value, ttl):
        raise RuntimeError("backend down")


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics()
    yield
    reset_metrics()


def test_in_memory_cache_expires_entries():
    clock = FakeClock()
    cache = InMemoryCache(clock)
    cache.set("a", (1, 2), ttl=10)

    assert cache.get("a") == (1, 2)
    clock.advance(9.9)
    assert cache.get("a") == (1, 2)
    clock.advance(0.1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_purge_expired_and_clear():
    clock = FakeClock()
    cache = InMemoryCache(clock)
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=50)
    cache.set("never", 3, ttl=0)

    clock.advance(10)
    assert cache.purge_expired() == 1
    assert len(cache) == 1
    cache.clear()
    assert cache.get("long") is None


def test_writes_evict_expired_entries():
    clock = FakeClock()
    cache = InMemoryCache(clock)
    for n in range(1000):
        cache.set(f"page:{n}", (n,), ttl=300)
        clock.advance(1000)

    assert len(cache) <= 1


def test_writes_keep_live_entries_and_rewritten_keys():
    clock = FakeClock()
    cache = InMemoryCache(clock)
    cache.set("a", 1, ttl=10)
    cache.set("b", 2, ttl=100)
    clock.advance(5)
    cache.set("a", 3, ttl=10)
    clock.advance(8)
    cache.set("c", 4, ttl=10)

    assert cache.get("a") == 3
    assert cache.get("b") == 2
    assert len(cache) == 3


def test_in_memory_cache_satisfies_protocol():
    assert isinstance(InMemoryCache(), CacheBackend)


def test_get_or_compute_reads_through():
    cache = ResultCache("ids", InMemoryCache(FakeClock()))
    calls = []

    def compute():
        calls.append(1)
        return (7, 3, 9)

    assert cache.get_or_compute("k", 300, compute) == (7, 3, 9)
    assert cache.get_or_compute("k", 300, compute) == (7, 3, 9)
    assert len(calls) == 1
    assert get_counter_value(CACHE_LOOKUPS, {"namespace": "ids", "result": "miss"}) == 1
    assert get_counter_value(CACHE_LOOKUPS, {"namespace": "ids", "result": "hit"}) == 1


def test_empty_results_are_cached():
    cache = ResultCache("ids", InMemoryCache(FakeClock()))
    calls = []

    def compute():
        calls.append(1)
        return ()

    cache.get_or_compute("k", 300, compute)
    cache.get_or_compute("k", 300, compute)
    assert len(calls) == 1


def test_namespaces_do_not_collide():
    backend = InMemoryCache(FakeClock())
    ids = ResultCache("ids", backend)
    counts = ResultCache("counts", backend)

    ids.set("k", (1,), 300)
    assert counts.get("k") is None


def test_backend_failures_are_misses(caplog):
    cache = ResultCache("counts", ExplodingBackend())
    calls = []

    def compute():
        calls.append(1)
        return (1, 2, 3)

    with caplog.at_level("WARNING"):
        assert cache.get_or_compute("k", 900, compute) == (1, 2, 3)
        assert cache.get_or_compute("k", 900, compute) == (1, 2, 3)

    assert len(calls) == 2
    assert get_counter_value(CACHE_ERRORS, {"namespace": "counts", "operation": "get"}) == 2
    assert get_counter_value(CACHE_ERRORS, {"namespace": "counts", "operation": "set"}) == 2
    assert "Cache read failed" in caplog.text


def test_compute_errors_propagate_and_are_not_cached():
    cache = ResultCache("ids", InMemoryCache(FakeClock()))

    def failing():
        raise LookupError("boom")

    with pytest.raises(LookupError):
        cache.get_or_compute("k", 300, failing)
    assert cache.get("k") is None


def test_async_get_or_compute():
    cache = ResultCache("ids", InMemoryCache(FakeClock()))
    calls = []

    async def compute():
        calls.append(1)
        return (4, 5)

    async def run():
        first = await cache.aget_or_compute("k", 300, compute)
        second = await cache.aget_or_compute("k", 300, compute)
        return first, second

    assert asyncio.run(run()) == ((4, 5), (4, 5))
    assert len(calls) == 1


def test_invalidate_all_clears_in_memory_backend():
    backend = InMemoryCache(FakeClock())
    cache = ResultCache("ids", backend)
    cache.set("k", (1,), 300)

    cache.invalidate_all()
    assert cache.get("k") is None
