"""Test bounded TTL/LRU cache store."""

import threading

import pytest
from pydantic import ValidationError

from resilience.cache.store import CacheStore
from resilience.models.cache_entry import CachePolicy


@pytest.fixture
def store(clock):
    """Create a three-entry store with a 60 second TTL."""
    return CacheStore("responses", CachePolicy(ttl_seconds=60, max_size=3), clock)


class TestCacheStoreReads:
    """Test get behaviour."""

    def test_miss_returns_default(self, store):
        """Test missing key returns the default and counts a miss."""
        assert store.get("absent") is None
        assert store.get("absent", default="fallback") == "fallback"
        assert store.misses == 2
        assert store.hits == 0

    def test_hit_returns_value(self, store):
        """Test stored value is returned and counted as a hit."""
        store.set("a", 1)

        assert store.get("a") == 1
        assert store.hits == 1
        assert store.misses == 0

    def test_hit_updates_access_metadata(self, store, clock):
        """Test a hit bumps access count and last access time."""
        store.set("a", 1)
        clock.advance(5)

        store.get("a")
        store.get("a")

        entry = store.peek("a")
        assert entry.access_count == 2
        assert entry.last_accessed_at == clock.now

    def test_falsy_values_are_hits(self, store):
        """Test falsy payloads are still cache hits."""
        store.set("empty", [])

        assert store.get("empty", default="missing") == []
        assert store.hits == 1


class TestCacheStoreExpiry:
    """Test TTL handling."""

    def test_entry_expires_at_ttl(self, store, clock):
        """Test entry is absent once now reaches created_at + ttl."""
        store.set("a", 1)

        clock.advance(59)
        assert store.get("a") == 1

        clock.advance(1)
        assert store.get("a") is None

    def test_expired_read_removes_entry(self, store, clock):
        """Test expired entry is dropped on read and counted as a miss."""
        store.set("a", 1)
        clock.advance(60)

        store.get("a")

        assert store.size == 0
        assert store.misses == 1
        assert store.get_stats().expirations == 1

    def test_custom_ttl(self, store, clock):
        """Test per-entry TTL override."""
        store.set("short", 1, ttl_seconds=5)
        store.set("default", 2)
        clock.advance(10)

        assert store.get("short") is None
        assert store.get("default") == 2

    def test_non_positive_ttl_rejected(self, store):
        """Test zero TTL override is rejected."""
        with pytest.raises(ValueError):
            store.set("a", 1, ttl_seconds=0)

    def test_purge_expired(self, store, clock):
        """Test sweep removes only expired entries."""
        store.set("old", 1)
        clock.advance(30)
        store.set("new", 2)
        clock.advance(30)

        removed = store.purge_expired()

        assert removed == 1
        assert store.size == 1
        assert store.peek("new") is not None

    def test_peek_hides_expired(self, store, clock):
        """Test peek does not return expired entries."""
        store.set("a", 1)
        clock.advance(60)

        assert store.peek("a") is None
        assert not store.contains("a")


class TestCacheStoreEviction:
    """Test LRU eviction."""

    def test_evicts_least_recently_used(self, store):
        """Test inserting into a full store evicts the oldest access."""
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)

        store.set("d", 4)

        assert store.size == 3
        assert not store.contains("a")
        assert store.evictions == 1

    def test_read_refreshes_recency(self, store):
        """Test a read entry is not the next eviction victim."""
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)
        store.get("a")

        store.set("d", 4)

        assert store.contains("a")
        assert not store.contains("b")

    def test_overwrite_does_not_evict(self, store):
        """Test overwriting an existing key in a full store keeps size."""
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)

        store.set("a", 10)

        assert store.size == 3
        assert store.evictions == 0
        assert store.get("a") == 10

    def test_overwrite_is_fresh_write(self, store, clock):
        """Test overwrite restarts timestamps and access count."""
        store.set("a", 1)
        store.get("a")
        clock.advance(50)

        store.set("a", 2)
        entry = store.peek("a")

        assert entry.created_at == clock.now
        assert entry.expires_at == clock.now + 60
        assert entry.access_count == 0

        clock.advance(50)
        assert store.get("a") == 2

    def test_overwrite_refreshes_recency(self, store):
        """Test overwritten key moves to most recently used."""
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)
        store.set("a", 10)

        store.set("d", 4)

        assert store.contains("a")
        assert not store.contains("b")

    def test_single_entry_store_keeps_new_entry(self, clock):
        """Test eviction never removes the entry being written."""
        store = CacheStore("tiny", CachePolicy(ttl_seconds=60, max_size=1), clock)

        store.set("a", 1)
        store.set("b", 2)

        assert store.size == 1
        assert store.get("b") == 2

    def test_zero_max_size_rejected(self):
        """Test the policy model rejects a zero bound."""
        with pytest.raises(ValidationError):
            CachePolicy(ttl_seconds=60, max_size=0)

    def test_concurrent_writes_respect_bound(self, clock):
        """Test size stays bounded under threaded writers."""
        store = CacheStore("shared", CachePolicy(ttl_seconds=60, max_size=5), clock)

        def writer(offset: int) -> None:
            for i in range(100):
                store.set(f"{offset}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.size == 5
        assert store.saves == 800
        assert store.evictions == 795


class TestCacheStoreMaintenance:
    """Test invalidation, clear and statistics."""

    def test_invalidate_by_predicate(self, store):
        """Test predicate invalidation removes matching entries only."""
        store.set("a", 1, scope="biz-1")
        store.set("b", 2, scope="biz-2")
        store.set("c", 3, scope="biz-1")

        removed = store.invalidate(lambda entry: entry.scope == "biz-1")

        assert removed == 2
        assert store.contains("b")
        assert store.size == 1

    def test_delete(self, store):
        """Test deleting a single key."""
        store.set("a", 1)

        assert store.delete("a") is True
        assert store.delete("a") is False

    def test_clear_returns_count(self, store):
        """Test clear removes everything and reports the count."""
        store.set("a", 1)
        store.set("b", 2)

        assert store.clear() == 2
        assert store.size == 0

    def test_entries_in_recency_order(self, store):
        """Test entry snapshot is ordered least to most recently used."""
        store.set("a", 1)
        store.set("b", 2)
        store.get("a")

        keys = [entry.key for entry in store.entries()]

        assert keys == ["b", "a"]
        assert len(store.entries(limit=1)) == 1

    def test_get_stats(self, store):
        """Test statistics snapshot."""
        store.set("a", 1)
        store.get("a")
        store.get("missing")

        stats = store.get_stats()

        assert stats.size == 1
        assert stats.max_size == 3
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.saves == 1
        assert stats.hit_rate == "50.00%"

    def test_reset_stats(self, store):
        """Test resetting counters keeps entries."""
        store.set("a", 1)
        store.get("a")

        store.reset_stats()

        assert store.hits == 0
        assert store.saves == 0
        assert store.size == 1
