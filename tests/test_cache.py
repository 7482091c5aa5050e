import asyncio

import pytest

from app.config import CacheConfig
from app.core.cache import AnalysisCache, fingerprint


@pytest.fixture
def cache(manual_clock) -> AnalysisCache:
    return AnalysisCache(CacheConfig(ttl_seconds=60, max_entries=10, eviction_fraction=0.2), clock=manual_clock)


class TestFingerprint:

    def test_key_ignores_field_order(self):
        assert fingerprint({"a": 1, "b": "x"}) == fingerprint({"b": "x", "a": 1})

    def test_key_depends_on_values(self):
        assert fingerprint({"text": "hello"}) != fingerprint({"text": "hello!"})


class TestAnalysisCache:
    """Testes do cache em memória com TTL."""

    def test_get_and_set(self, cache):
        cache.set("k", "value")

        assert cache.get("k") == "value"
        assert cache.peek("k").hit_count == 1
        assert cache.metrics.hits == 1

    def test_miss(self, cache):
        assert cache.get("missing") is None
        assert cache.metrics.misses == 1

    def test_entry_expires_at_ttl(self, cache, manual_clock):
        cache.set("k", "value")

        manual_clock.advance(59)
        assert cache.get("k") == "value"

        manual_clock.advance(1)
        assert cache.get("k") is None
        assert "k" not in cache
        assert cache.metrics.expirations == 1

    def test_capacity_evicts_least_hit_entries(self, cache):
        for index in range(10):
            cache.set(f"k{index}", index)
        # k0 e k1 recebem hits; as demais ficam com zero
        cache.get("k0")
        cache.get("k1")

        cache.set("new", "value")

        assert len(cache) == 9
        assert "k0" in cache and "k1" in cache
        assert "k2" not in cache and "k3" not in cache
        assert cache.metrics.evictions == 2

    def test_updating_existing_key_does_not_evict(self, cache):
        for index in range(10):
            cache.set(f"k{index}", index)

        cache.set("k5", "updated")

        assert len(cache) == 10
        assert cache.get("k5") == "updated"

    def test_size_never_exceeds_capacity(self, cache):
        for index in range(100):
            cache.set(f"k{index}", index)
            assert len(cache) <= 10

    def test_minimum_eviction_is_one(self, manual_clock):
        cache = AnalysisCache(CacheConfig(max_entries=3, eviction_fraction=0.1), clock=manual_clock)
        for index in range(4):
            cache.set(f"k{index}", index)

        assert len(cache) == 3
        assert "k0" not in cache

    def test_sweep_expired(self, cache, manual_clock):
        cache.set("old", 1)
        manual_clock.advance(30)
        cache.set("recent", 2)
        manual_clock.advance(30)

        assert cache.sweep_expired() == 1
        assert "old" not in cache
        assert "recent" in cache

    def test_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.clear() == 2
        assert len(cache) == 0

    def test_stats(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")

        stats = cache.get_stats()
        assert stats["size"] == 1
        assert stats["metrics"]["hit_rate"] == pytest.approx(0.5)


class TestSweeper:

    def test_start_without_loop(self, cache):
        assert cache.start_sweeper() is False
        assert cache.sweeper_running is False

    @pytest.mark.asyncio
    async def test_sweeper_removes_expired_entries(self):
        clock_value = [0.0]
        cache = AnalysisCache(
            CacheConfig(ttl_seconds=1, sweep_interval_seconds=0.01),
            clock=lambda: clock_value[0],
        )
        cache.set("k", 1)
        clock_value[0] = 5.0

        assert cache.start_sweeper() is True
        await asyncio.sleep(0.05)

        assert "k" not in cache
        await cache.stop_sweeper()
        assert cache.sweeper_running is False

    @pytest.mark.asyncio
    async def test_no_sweep_after_stop(self):
        clock_value = [0.0]
        cache = AnalysisCache(
            CacheConfig(ttl_seconds=1, sweep_interval_seconds=0.01),
            clock=lambda: clock_value[0],
        )
        cache.start_sweeper()
        await cache.stop_sweeper()

        cache.set("k", 1)
        clock_value[0] = 5.0
        await asyncio.sleep(0.05)

        assert "k" in cache

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, cache):
        cache.start_sweeper()
        await cache.stop_sweeper()
        await cache.stop_sweeper()
        assert cache.sweeper_running is False
