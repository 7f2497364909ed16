# ==============================================================================
# Tests for MemoryCache
# ==============================================================================
"""
Tests for the process-local cache: TTL expiry, isolation and pattern delete.
"""

from insight.infrastructure.cache import MemoryCache


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryCache:
    def test_get_missing(self):
        assert MemoryCache().get("nope") is None

    def test_set_and_get(self):
        cache = MemoryCache()
        cache.set("k", {"a": 1})
        assert cache.get("k") == {"a": 1}

    def test_ttl_expiry(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", {"a": 1}, ttl_seconds=10)

        clock.now += 9
        assert cache.get("k") == {"a": 1}

        clock.now += 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_no_ttl_never_expires(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", {"a": 1})
        clock.now += 10**9
        assert cache.get("k") == {"a": 1}

    def test_values_are_copied(self):
        cache = MemoryCache()
        value = {"items": [1]}
        cache.set("k", value)
        value["items"].append(2)
        cache.get("k")["items"].append(3)
        assert cache.get("k") == {"items": [1]}

    def test_delete(self):
        cache = MemoryCache()
        cache.set("k", {"a": 1})
        assert cache.delete("k") is True
        assert cache.delete("k") is False

    def test_delete_pattern(self):
        cache = MemoryCache()
        cache.set("insight:stats:a.com:7d", {})
        cache.set("insight:stats:a.com:30d", {})
        cache.set("insight:stats:b.com:7d", {})
        assert cache.delete_pattern("insight:stats:a.com:*") == 2
        assert len(cache) == 1
        assert cache.get("insight:stats:b.com:7d") == {}

    def test_instances_do_not_share_storage(self):
        first, second = MemoryCache(), MemoryCache()
        first.set("k", {"a": 1})
        assert second.get("k") is None

    def test_writes_sweep_expired_entries(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock, check_period=60)
        cache.set("old", {"a": 1}, ttl_seconds=10)
        cache.set("keep", {"b": 2})

        clock.now += 61
        cache.set("new", {"c": 3}, ttl_seconds=10)
        assert set(cache._data) == {"keep", "new"}

    def test_no_sweep_before_check_period(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock, check_period=60)
        cache.set("old", {"a": 1}, ttl_seconds=10)

        clock.now += 30
        cache.set("new", {"c": 3})
        assert "old" in cache._data
        assert cache.get("old") is None
