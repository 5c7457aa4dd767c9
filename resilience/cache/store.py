"""
Bounded in-memory cache store with TTL expiry and LRU eviction.

Sandi Metz Principles:
- Single Responsibility: One cache type, one bound, one TTL
- Small methods: Each method does one thing
- Dependency Injection: Policy and clock injected
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from resilience.models.cache_entry import CacheEntry, CachePolicy
from resilience.models.statistics import StoreStatistics
from resilience.utils.logger import get_logger, log_cache_event

logger = get_logger(__name__)

_MISSING = object()

EntryPredicate = Callable[[CacheEntry], bool]


class CacheStore:
    """
    In-memory cache for a single cache type.

    Entries live in an ordered map kept in recency order: every write and
    every hit moves the key to the end, so the first key is always the
    least recently used one (ties fall back to insertion order). Expired
    entries are never returned and are dropped on read or by ``purge_expired``.
    Every operation holds the store lock, so a store is safe to share
    between threads.
    """

    def __init__(
        self,
        name: str,
        policy: CachePolicy,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache store.

        Args:
            name: Cache type name, used in logs and statistics
            policy: TTL and size bound
            clock: Time source returning epoch seconds
        """
        self._name = name
        self._policy = policy
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._saves = 0
        self._evictions = 0
        self._expirations = 0

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a live value, recording a hit or a miss.

        Args:
            key: Cache key
            default: Returned on a miss

        Returns:
            Cached value or ``default``
        """
        value = self._lookup(key)
        if value is _MISSING:
            return default
        return value

    def _lookup(self, key: str) -> Any:
        """Get value or the ``_MISSING`` sentinel."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None:
                self._misses += 1
                log_cache_event("miss", self._name, key)
                return _MISSING

            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                self._expirations += 1
                log_cache_event("expired", self._name, key)
                return _MISSING

            entry.touch(now)
            self._entries.move_to_end(key)
            self._hits += 1
            log_cache_event("hit", self._name, key, access_count=entry.access_count)
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        scope: Optional[str] = None,
        ttl_seconds: Optional[float] = None,
    ) -> CacheEntry:
        """
        Insert or overwrite an entry.

        Overwriting is a fresh write: timestamps and access count restart.
        Inserting a new key into a full store evicts the least recently
        used entry first.

        Args:
            key: Cache key
            value: Payload
            scope: Owning scope used for targeted invalidation
            ttl_seconds: Per-entry TTL override

        Returns:
            The stored entry
        """
        ttl = ttl_seconds if ttl_seconds is not None else self._policy.ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")

        with self._lock:
            now = self._clock()
            if key in self._entries:
                del self._entries[key]
            else:
                while len(self._entries) >= self._policy.max_size:
                    self._evict_lru()

            entry = CacheEntry.create(key, value, ttl, now, scope=scope)
            self._entries[key] = entry
            self._saves += 1

        log_cache_event("saved", self._name, key, ttl_seconds=ttl, size=self.size)
        return entry

    def _evict_lru(self) -> None:
        """Evict least recently used entry. Caller holds the lock."""
        lru_key, _ = self._entries.popitem(last=False)
        self._evictions += 1
        log_cache_event("evicted", self._name, lru_key, size=len(self._entries))

    def peek(self, key: str) -> Optional[CacheEntry]:
        """
        Get an entry without touching recency or counters.

        Args:
            key: Cache key

        Returns:
            Live entry or None
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return entry

    def contains(self, key: str) -> bool:
        """Check if a live entry exists for ``key``."""
        return self.peek(key) is not None

    def delete(self, key: str) -> bool:
        """
        Remove one entry.

        Args:
            key: Cache key

        Returns:
            True if an entry was removed
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate(self, predicate: EntryPredicate) -> int:
        """
        Remove every entry matching ``predicate``.

        Args:
            predicate: Called with each entry

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if predicate(entry)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def purge_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items() if entry.is_expired(now)
            ]
            for key in expired:
                del self._entries[key]
            self._expirations += len(expired)
        return len(expired)

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def entries(self, limit: Optional[int] = None) -> list[CacheEntry]:
        """
        Snapshot entries from least to most recently used.

        Args:
            limit: Maximum number of entries

        Returns:
            List of entries (copies are not made)
        """
        with self._lock:
            snapshot = list(self._entries.values())
        return snapshot if limit is None else snapshot[:limit]

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._saves = 0
            self._evictions = 0
            self._expirations = 0

    def get_stats(self) -> StoreStatistics:
        """
        Get store statistics.

        Returns:
            StoreStatistics snapshot
        """
        with self._lock:
            return StoreStatistics(
                size=len(self._entries),
                max_size=self._policy.max_size,
                hits=self._hits,
                misses=self._misses,
                saves=self._saves,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    @property
    def name(self) -> str:
        """Get cache type name."""
        return self._name

    @property
    def policy(self) -> CachePolicy:
        """Get store policy."""
        return self._policy

    @property
    def size(self) -> int:
        """Get current entry count, including not yet swept expired entries."""
        return len(self._entries)

    @property
    def max_size(self) -> int:
        """Get maximum cache size."""
        return self._policy.max_size

    @property
    def hits(self) -> int:
        """Get cache hit count."""
        return self._hits

    @property
    def misses(self) -> int:
        """Get cache miss count."""
        return self._misses

    @property
    def saves(self) -> int:
        """Get write count."""
        return self._saves

    @property
    def evictions(self) -> int:
        """Get LRU eviction count."""
        return self._evictions
