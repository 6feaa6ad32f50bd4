"""Tests for the bounded TTL result cache."""

import pytest

from medterm.core.cache import ResultCache, make_cache_key

from conftest import FakeClock


@pytest.fixture
def cache(clock):
    return ResultCache("test", ttl_seconds=60, max_size=5, clock=clock)


class TestMakeCacheKey:
    """Tests for make_cache_key."""

    def test_deterministic(self):
        assert make_cache_key("annotate", "en", "text") == make_cache_key("annotate", "en", "text")

    def test_distinct_inputs(self):
        assert make_cache_key("annotate", "en", "text") != make_cache_key("annotate", "zh", "text")

    def test_dict_order_irrelevant(self):
        assert make_cache_key({"a": 1, "b": 2}) == make_cache_key({"b": 2, "a": 1})

    def test_lone_surrogate(self):
        key = make_cache_key("x", "\ud800")
        assert isinstance(key, str)
        assert key == make_cache_key("x", "\ud800")
        assert key != make_cache_key("x", "\udfff")

    def test_unserializable_returns_none(self):
        assert make_cache_key("schema", object()) is None


class TestResultCache:
    """Tests for ResultCache."""

    def test_invalid_limits(self):
        with pytest.raises(ValueError):
            ResultCache("bad", ttl_seconds=0, max_size=5)
        with pytest.raises(ValueError):
            ResultCache("bad", ttl_seconds=10, max_size=0)

    def test_put_and_get(self, cache):
        cache.put("k", {"value": 1})
        assert cache.get("k") == {"value": 1}
        assert "k" in cache

    def test_missing_key(self, cache):
        assert cache.get("missing") is None
        assert cache.stats()["misses"] == 1

    def test_expires_after_ttl(self, cache, clock):
        cache.put("k", "v")
        clock.advance(59)
        assert cache.get("k") == "v"
        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0
        assert cache.stats()["expirations"] == 1

    def test_compute_once_within_ttl(self, cache, clock):
        calls = []

        def compute():
            calls.append(1)
            return "result"

        assert cache.get_or_compute("k", compute) == "result"
        clock.advance(30)
        assert cache.get_or_compute("k", compute) == "result"
        assert len(calls) == 1

        clock.advance(30)
        cache.get_or_compute("k", compute)
        assert len(calls) == 2

    def test_none_key_always_computes(self, cache):
        calls = []
        for _ in range(3):
            cache.get_or_compute(None, lambda: calls.append(1) or "v")
        assert len(calls) == 3
        assert len(cache) == 0

    def test_put_with_none_key_ignored(self, cache):
        cache.put(None, "v")
        assert len(cache) == 0
        assert cache.get(None) is None

    def test_returns_independent_copies(self, cache):
        value = {"items": [1, 2]}
        cache.put("k", value)
        value["items"].append(3)

        first = cache.get("k")
        first["items"].append(4)

        assert cache.get("k") == {"items": [1, 2]}

    def test_size_never_exceeds_max(self, cache, clock):
        for i in range(20):
            cache.put(f"k{i}", i)
            clock.advance(1)
            assert len(cache) <= cache.max_size
        assert cache.stats()["evictions"] == 15

    def test_evicts_oldest_inserted_not_least_recent(self, clock):
        cache = ResultCache("fifo", ttl_seconds=100, max_size=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.put(key, key)
            clock.advance(1)

        assert cache.get("a") == "a"
        cache.put("d", "d")

        assert "a" not in cache
        assert all(key in cache for key in ("b", "c", "d"))

    def test_sweeps_expired_before_evicting(self, clock):
        cache = ResultCache("sweep", ttl_seconds=10, max_size=4, sweep_threshold=0.5, clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        clock.advance(11)
        cache.put("c", 3)
        cache.put("d", 4)

        stats = cache.stats()
        assert stats["expirations"] == 2
        assert stats["evictions"] == 0
        assert len(cache) == 2

    def test_reinsert_refreshes_timestamp(self, cache, clock):
        cache.put("k", 1)
        clock.advance(50)
        cache.put("k", 2)
        clock.advance(50)
        assert cache.get("k") == 2

    def test_evict_expired(self, cache, clock):
        cache.put("a", 1)
        clock.advance(30)
        cache.put("b", 2)
        clock.advance(40)
        assert cache.evict_expired() == 1
        assert "b" in cache

    def test_clear_resets_counters(self, cache):
        cache.put("k", 1)
        cache.get("k")
        cache.clear()
        stats = cache.stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    def test_stats(self, cache):
        cache.put("k", 1)
        cache.get("k")
        cache.get("other")
        stats = cache.stats()
        assert stats["name"] == "test"
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["max_size"] == 5
        assert stats["ttl_seconds"] == 60

    def test_default_clock(self):
        cache = ResultCache("real", ttl_seconds=60, max_size=2)
        cache.put("k", "v")
        assert cache.get("k") == "v"

    def test_independent_clocks(self):
        slow, fast = FakeClock(), FakeClock()
        slow_cache = ResultCache("slow", ttl_seconds=5, max_size=2, clock=slow)
        fast_cache = ResultCache("fast", ttl_seconds=5, max_size=2, clock=fast)
        slow_cache.put("k", 1)
        fast_cache.put("k", 1)
        fast.advance(10)
        assert slow_cache.get("k") == 1
        assert fast_cache.get("k") is None
