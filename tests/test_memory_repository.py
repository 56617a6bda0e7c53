"""
Tests for the in-memory cache store.
"""

import threading

import pytest

from medigate.protocols import CacheStore
from medigate.repositories import InMemoryCacheRepository, NullCacheRepository


@pytest.fixture
def store(clock):
    return InMemoryCacheRepository(name="test", ttl=100, max_entries=3, clock=clock)


def test_satisfies_protocol(store):
    assert isinstance(store, CacheStore)
    assert isinstance(NullCacheRepository(), CacheStore)


def test_put_then_get(store):
    store.put("k", {"results": [1, 2]})
    assert store.get("k") == {"results": [1, 2]}


def test_miss_on_unknown_key(store):
    assert store.get("missing") is None


class TestExpiry:
    def test_fresh_just_before_ttl(self, store, clock):
        store.put("k", "v")
        clock.advance(99.999)
        assert store.get("k") == "v"

    def test_stale_at_exactly_ttl(self, store, clock):
        store.put("k", "v")
        clock.advance(100)
        assert store.get("k") is None

    def test_stale_entry_is_deleted_on_read(self, store, clock):
        store.put("k", "v")
        clock.advance(150)
        store.get("k")
        assert store.count() == 0

    def test_overwrite_restarts_ttl(self, store, clock):
        store.put("k", "old")
        clock.advance(80)
        store.put("k", "new")
        clock.advance(80)
        assert store.get("k") == "new"

    def test_sweep_removes_only_stale(self, store, clock):
        store.put("a", 1)
        clock.advance(50)
        store.put("b", 2)
        clock.advance(50)

        assert store.sweep() == 1
        assert store.keys() == ["b"]
        assert store.sweep() == 0


class TestEviction:
    def test_oldest_inserted_is_evicted(self, store):
        store.put("a", 1)
        store.put("b", 2)
        store.put("c", 3)
        store.put("d", 4)

        assert store.get("a") is None
        assert store.keys() == ["b", "c", "d"]

    def test_reads_do_not_refresh_position(self, store):
        store.put("a", 1)
        store.put("b", 2)
        store.put("c", 3)
        store.get("a")
        store.put("d", 4)

        assert store.get("a") is None
        assert store.get("b") == 2

    def test_overwrite_counts_as_fresh_insertion(self, store):
        store.put("a", 1)
        store.put("b", 2)
        store.put("c", 3)
        store.put("a", 10)
        store.put("d", 4)

        assert store.keys() == ["c", "a", "d"]
        assert store.get("a") == 10

    def test_exactly_one_eviction_per_put(self, store):
        for i in range(10):
            store.put(f"k{i}", i)
            assert store.count() <= 3
        assert store.get_stats()["evictions"] == 7

    def test_concurrent_puts_never_exceed_capacity(self, clock):
        store = InMemoryCacheRepository(name="test", ttl=100, max_entries=5, clock=clock)

        def writer(offset: int) -> None:
            for i in range(200):
                store.put(f"{offset}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.count() == 5


class TestStats:
    def test_hits_and_misses(self, store):
        store.put("k", "v")
        store.get("k")
        store.get("k")
        store.get("other")

        stats = store.get_stats()
        assert stats["name"] == "test"
        assert stats["backend"] == "memory"
        assert stats["size"] == 1
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(2 / 3)

    def test_clear(self, store):
        store.put("a", 1)
        store.put("b", 2)
        assert store.clear() == 2
        assert store.count() == 0


def test_internal_failure_degrades_to_miss():
    def broken_clock() -> float:
        raise RuntimeError("clock unavailable")

    store = InMemoryCacheRepository(name="test", ttl=100, max_entries=3, clock=broken_clock)

    store.put("k", "v")

    assert store.get("k") is None
    assert store.sweep() == 0
    assert store.get_stats()["failures"] == 2


def test_null_store_never_hits():
    store = NullCacheRepository(name="speech")
    store.put("k", "v")

    assert store.get("k") is None
    assert store.count() == 0
    assert store.get_stats()["backend"] == "none"
