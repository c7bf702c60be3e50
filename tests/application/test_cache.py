"""Tests for the result cache."""

from datetime import datetime, timedelta, timezone

from catalog_aggregator.application.cache import ResultCache, get_result_cache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class TestResultCache:
    """Tests for TTL semantics."""

    def test_miss_on_unknown_key(self) -> None:
        assert ResultCache().get("nope") is None

    def test_put_then_get(self) -> None:
        cache = ResultCache()

        entry = cache.put("k", {"count": 1})

        assert cache.get("k") is entry
        assert entry.payload == {"count": 1}

    def test_entry_alive_just_before_ttl(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=60, clock=clock)
        cache.put("k", "payload")

        clock.advance(seconds=60, milliseconds=-1)

        assert cache.get("k") is not None

    def test_entry_expired_just_after_ttl(self) -> None:
        """Stale entries are misses and evicted lazily."""
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=60, clock=clock)
        cache.put("k", "payload")

        clock.advance(seconds=60, milliseconds=1)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_put_replaces_entry(self) -> None:
        """Last writer wins; the old entry is not mutated."""
        clock = FakeClock()
        cache = ResultCache(clock=clock)
        first = cache.put("k", "old")
        clock.advance(seconds=5)

        second = cache.put("k", "new")

        assert cache.get("k") is second
        assert first.payload == "old"
        assert second.created_at > first.created_at

    def test_clear(self) -> None:
        cache = ResultCache()
        cache.put("a", 1)
        cache.put("b", 2)

        cache.clear()

        assert len(cache) == 0


def test_global_cache_is_singleton() -> None:
    first = get_result_cache(ttl_seconds=30)

    assert get_result_cache() is first
    assert first.ttl == timedelta(seconds=30)
