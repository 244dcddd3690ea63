"""Tests for the bounded, time-expiring result cache."""

import threading
from datetime import UTC, datetime, timedelta, timezone

import pytest

from resource_search.services.result_cache import (
    ResultCache,
    make_resource_key,
    make_search_key,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestResultCache:
    def _make_cache(self, **kwargs) -> tuple[ResultCache, FakeClock]:
        clock = FakeClock()
        return ResultCache(clock=clock, **kwargs), clock

    def test_defaults(self):
        cache = ResultCache()
        assert cache.ttl_seconds == 300
        assert cache.capacity == 1000

    def test_miss_on_empty(self):
        cache, _ = self._make_cache()
        assert cache.get("missing") is None

    def test_set_then_get(self):
        cache, _ = self._make_cache()
        cache.set("k", {"total": 1})
        assert cache.get("k") == {"total": 1}

    def test_overwrite(self):
        cache, _ = self._make_cache()
        cache.set("k", "old")
        cache.set("k", "new")
        assert cache.get("k") == "new"
        assert len(cache) == 1

    def test_entry_served_until_ttl(self):
        cache, clock = self._make_cache(ttl_seconds=300)
        cache.set("k", "v")
        clock.advance(299)
        assert cache.get("k") == "v"

    def test_entry_expires_after_ttl(self):
        cache, clock = self._make_cache(ttl_seconds=300)
        cache.set("k", "v")
        clock.advance(300)
        assert cache.get("k") is None

    def test_expired_entry_removed_on_observation(self):
        cache, clock = self._make_cache(ttl_seconds=10)
        cache.set("k", "v")
        clock.advance(11)
        assert len(cache) == 1  # lazy: nothing swept yet
        cache.get("k")
        assert len(cache) == 0

    def test_overwrite_restarts_ttl(self):
        cache, clock = self._make_cache(ttl_seconds=10)
        cache.set("k", "v1")
        clock.advance(8)
        cache.set("k", "v2")
        clock.advance(8)
        assert cache.get("k") == "v2"

    def test_capacity_plus_one_keeps_bound(self):
        cache, _ = self._make_cache(capacity=1000)
        for i in range(1001):
            cache.set(f"key-{i}", i)
        assert len(cache) == 1000

    def test_evicts_oldest_inserted(self):
        cache, _ = self._make_cache(capacity=3)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        cache.get("a")  # reads do not refresh insertion order
        cache.set("d", 4)
        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("d") == 4

    def test_overwrite_at_capacity_does_not_evict(self):
        cache, _ = self._make_cache(capacity=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        assert cache.get("a") == 10
        assert cache.get("b") == 2

    def test_overwritten_key_becomes_newest(self):
        cache, _ = self._make_cache(capacity=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)
        assert cache.get("b") is None
        assert cache.get("a") == 10

    def test_invalidate_single_key(self):
        cache, _ = self._make_cache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_invalidate_missing_key_is_safe(self):
        cache, _ = self._make_cache()
        cache.invalidate("nope")
        assert len(cache) == 0

    def test_invalidate_all(self):
        cache, _ = self._make_cache()
        for i in range(5):
            cache.set(f"k{i}", i)
        assert cache.invalidate_all() == 5
        for i in range(5):
            assert cache.get(f"k{i}") is None
        assert len(cache) == 0

    def test_get_after_invalidate_all_misses_even_when_fresh(self):
        cache, clock = self._make_cache(ttl_seconds=300)
        cache.set("k", "v")
        clock.advance(1)
        cache.invalidate_all()
        assert cache.get("k") is None

    def test_rejects_invalid_policy(self):
        with pytest.raises(ValueError):
            ResultCache(capacity=0)
        with pytest.raises(ValueError):
            ResultCache(ttl_seconds=0)

    def test_concurrent_inserts_respect_capacity(self):
        cache = ResultCache(capacity=50)
        errors: list[AssertionError] = []

        def writer(thread_id: int) -> None:
            try:
                for i in range(500):
                    cache.set(f"t{thread_id}-{i}", i)
                    assert len(cache) <= 50
                    cache.get(f"t{thread_id}-{i // 2}")
            except AssertionError as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) == 50

    def test_concurrent_invalidate_all_leaves_consistent_state(self):
        cache = ResultCache(capacity=100)
        stop = threading.Event()

        def writer() -> None:
            i = 0
            while not stop.is_set():
                cache.set(f"k{i % 300}", i)
                i += 1

        thread = threading.Thread(target=writer)
        thread.start()
        for _ in range(200):
            cache.invalidate_all()
            assert len(cache) <= 100
        stop.set()
        thread.join()

        cache.invalidate_all()
        assert cache.get("k0") is None

    def test_generation_advances_on_invalidate_all(self):
        cache, _ = self._make_cache()
        before = cache.generation()
        cache.invalidate("k")
        assert cache.generation() == before
        cache.invalidate_all()
        assert cache.generation() == before + 1

    def test_set_with_current_generation(self):
        cache, _ = self._make_cache()
        generation = cache.generation()
        assert cache.set("k", "v", generation) is True
        assert cache.get("k") == "v"

    def test_set_with_stale_generation_is_dropped(self):
        cache, _ = self._make_cache()
        generation = cache.generation()
        cache.invalidate_all()
        assert cache.set("k", "stale", generation) is False
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_stale_write_does_not_replace_fresh_entry(self):
        cache, _ = self._make_cache()
        stale = cache.generation()
        cache.invalidate_all()
        cache.set("k", "fresh", cache.generation())
        cache.set("k", "stale", stale)
        assert cache.get("k") == "fresh"


class TestMakeSearchKey:
    def test_deterministic(self):
        cursor = datetime(2024, 5, 1, 12, 0)
        assert make_search_key("python", 10, cursor, "video") == make_search_key(
            "python", 10, cursor, "video"
        )

    def test_query_compared_in_normalized_form(self):
        assert make_search_key("  Pythón ", 10, None, None) == make_search_key(
            "python", 10, None, None
        )

    def test_blank_and_missing_query_share_key(self):
        assert make_search_key(None, 10, None, None) == make_search_key("   ", 10, None, None)

    @pytest.mark.parametrize(
        "other",
        [
            ("java", 10, None, None),
            ("python", 11, None, None),
            ("python", 10, datetime(2024, 1, 1), None),
            ("python", 10, None, "video"),
        ],
    )
    def test_any_parameter_change_changes_key(self, other):
        assert make_search_key("python", 10, None, None) != make_search_key(*other)

    def test_different_cursors_differ(self):
        a = make_search_key("python", 10, datetime(2024, 1, 1), None)
        b = make_search_key("python", 10, datetime(2024, 1, 2), None)
        assert a != b

    def test_aware_and_naive_cursor_for_same_instant_match(self):
        naive = datetime(2024, 1, 1, 12, 0)
        aware = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert make_search_key("q", 5, naive, None) == make_search_key("q", 5, aware, None)
        assert make_search_key("q", 5, naive, None) == make_search_key(
            "q", 5, naive.replace(tzinfo=UTC), None
        )

    def test_separator_in_query_cannot_collide(self):
        a = make_search_key('a","b', 10, None, None)
        b = make_search_key("a", 10, None, "b")
        assert a != b


def test_resource_key():
    assert make_resource_key(42) == "resource:42"
