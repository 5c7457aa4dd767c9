"""
Multi-type cache manager.

Owns one bounded store per cache type (responses, searches, embeddings)
and the background expiry sweep.

Sandi Metz Principles:
- Single Responsibility: Route cache calls to the right store
- Dependency Injection: Policies and clock injected
"""

import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

from pydantic import ValidationError as PydanticValidationError

from resilience.cache.store import CacheStore, EntryPredicate
from resilience.exceptions import CacheError, ConfigurationError
from resilience.models.cache_entry import CacheEntry, CachePolicy, CacheType
from resilience.models.statistics import CacheStatistics
from resilience.utils import hasher
from resilience.utils.logger import get_logger
from resilience.utils.periodic import PeriodicTask

logger = get_logger(__name__)

T = TypeVar("T")

CacheTypeLike = Union[CacheType, str]
PolicyLike = Union[CachePolicy, Mapping[str, Any]]

_MISSING = object()

DEFAULT_CLEANUP_INTERVAL = 300.0
PREVIEW_LENGTH = 100
KEY_PREVIEW_LENGTH = 50

# Knowledge changes make answers and search results stale; embeddings are
# content-addressed and stay valid.
SCOPED_CACHE_TYPES = (CacheType.RESPONSES, CacheType.SEARCHES)


class CacheManager:
    """
    Typed in-memory cache with TTL, LRU eviction and hit/miss accounting.

    One instance is built at process start and injected into the AI,
    vector search and knowledge services.
    """

    def __init__(
        self,
        policies: Optional[Mapping[CacheTypeLike, PolicyLike]] = None,
        clock: Callable[[], float] = time.time,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
    ):
        """
        Initialize cache manager.

        Args:
            policies: Policy or policy mapping per cache type (defaults for
                missing types)
            clock: Time source returning epoch seconds
            cleanup_interval: Seconds between expiry sweeps

        Raises:
            ConfigurationError: If a cache type is unknown or a policy is invalid
        """
        merged = CachePolicy.defaults()
        for cache_type, policy in (policies or {}).items():
            try:
                cache_type = CacheType(cache_type)
            except ValueError:
                raise ConfigurationError(
                    f"Unknown cache type: {cache_type}"
                ) from None
            merged[cache_type] = _coerce_policy(cache_type, policy)

        self._stores: dict[CacheType, CacheStore] = {
            cache_type: CacheStore(cache_type.value, policy, clock)
            for cache_type, policy in merged.items()
        }

        self._sweeper = PeriodicTask("cache-cleanup", cleanup_interval, self.cleanup)

    def store(self, cache_type: CacheTypeLike) -> CacheStore:
        """
        Get the store for a cache type.

        Args:
            cache_type: CacheType or its name

        Returns:
            CacheStore

        Raises:
            CacheError: If the cache type is unknown
        """
        try:
            return self._stores[CacheType(cache_type)]
        except ValueError:
            raise CacheError(f"Unknown cache type: {cache_type}") from None

    def get(self, cache_type: CacheTypeLike, key: str) -> Any:
        """
        Get a cached value.

        Args:
            cache_type: Cache type
            key: Cache key

        Returns:
            Cached value or None on a miss
        """
        return self.store(cache_type).get(key)

    def set(
        self,
        cache_type: CacheTypeLike,
        key: str,
        value: Any,
        scope: Optional[str] = None,
        ttl_seconds: Optional[float] = None,
    ) -> CacheEntry:
        """
        Store a value.

        Args:
            cache_type: Cache type
            key: Cache key
            value: Payload
            scope: Owning scope (business id) for targeted invalidation
            ttl_seconds: Per-entry TTL override

        Returns:
            Stored entry
        """
        return self.store(cache_type).set(
            key, value, scope=scope, ttl_seconds=ttl_seconds
        )

    async def get_or_compute(
        self,
        cache_type: CacheTypeLike,
        key: str,
        compute: Callable[[], Awaitable[T]],
        scope: Optional[str] = None,
    ) -> T:
        """
        Get cached value or compute and store it on a miss.

        Errors raised by ``compute`` propagate and nothing is stored.

        Args:
            cache_type: Cache type
            key: Cache key
            compute: Async function producing the value
            scope: Owning scope

        Returns:
            Cached or newly computed value
        """
        store = self.store(cache_type)
        value = store.get(key, default=_MISSING)
        if value is not _MISSING:
            return value

        value = await compute()
        store.set(key, value, scope=scope)
        return value

    def invalidate_by_predicate(
        self, cache_type: CacheTypeLike, predicate: EntryPredicate
    ) -> int:
        """
        Remove entries matching a predicate from one store.

        Args:
            cache_type: Cache type
            predicate: Called with each CacheEntry

        Returns:
            Number of entries removed
        """
        return self.store(cache_type).invalidate(predicate)

    def invalidate_scope(
        self,
        scope_id: str,
        cache_types: Iterable[CacheTypeLike] = SCOPED_CACHE_TYPES,
    ) -> int:
        """
        Remove every entry stored under a scope.

        Called when a business's knowledge changes so stale answers are
        never served.

        Args:
            scope_id: Scope (business id)
            cache_types: Stores to scan

        Returns:
            Number of entries removed
        """
        removed = sum(
            self.invalidate_by_predicate(
                cache_type, lambda entry: entry.scope == scope_id
            )
            for cache_type in cache_types
        )
        logger.info("Invalidated cache scope", scope=scope_id, removed=removed)
        return removed

    def clear(self, cache_type: Optional[CacheTypeLike] = None) -> int:
        """
        Drop all entries of one store, or of every store.

        Clearing every store also resets statistics.

        Args:
            cache_type: Cache type, or None for all

        Returns:
            Number of entries removed
        """
        if cache_type is not None:
            removed = self.store(cache_type).clear()
            logger.info("Cleared cache", cache_type=CacheType(cache_type).value)
            return removed

        removed = 0
        for store in self._stores.values():
            removed += store.clear()
            store.reset_stats()
        logger.info("Cleared all caches", removed=removed)
        return removed

    def cleanup(self) -> int:
        """
        Remove expired entries from every store.

        Returns:
            Number of entries removed
        """
        removed = sum(store.purge_expired() for store in self._stores.values())
        if removed:
            logger.info("Cache cleanup completed", removed=removed)
        return removed

    def stats(self) -> CacheStatistics:
        """
        Get aggregated statistics.

        Returns:
            CacheStatistics with hit rate as a percentage string
        """
        return CacheStatistics.from_stores(
            {store.name: store.get_stats() for store in self._stores.values()}
        )

    def inspect(
        self, cache_type: Optional[CacheTypeLike] = None, limit: int = 10
    ) -> dict[str, dict[str, Any]]:
        """
        Describe stored entries for operators.

        Args:
            cache_type: Cache type, or None for all
            limit: Entries listed per type

        Returns:
            Mapping of type name to size and entry previews
        """
        stores = [self.store(cache_type)] if cache_type else self._stores.values()
        return {
            store.name: {
                "size": store.size,
                "entries": [_describe(entry) for entry in store.entries(limit)],
            }
            for store in stores
        }

    # Domain helpers

    def cache_response(self, business_id: str, query: str, response: str) -> CacheEntry:
        """Cache an AI response for a business query."""
        key = hasher.generate_response_key(business_id, query)
        return self.set(CacheType.RESPONSES, key, response, scope=business_id)

    def get_cached_response(self, business_id: str, query: str) -> Optional[str]:
        """Get a cached AI response for a business query."""
        key = hasher.generate_response_key(business_id, query)
        return self.get(CacheType.RESPONSES, key)

    def cache_search_results(
        self, business_id: str, query: str, results: list
    ) -> CacheEntry:
        """Cache vector search results for a business query."""
        key = hasher.generate_search_key(business_id, query)
        return self.set(CacheType.SEARCHES, key, results, scope=business_id)

    def get_cached_search_results(
        self, business_id: str, query: str
    ) -> Optional[list]:
        """Get cached vector search results for a business query."""
        key = hasher.generate_search_key(business_id, query)
        return self.get(CacheType.SEARCHES, key)

    def cache_embedding(self, text: str, embedding: list[float]) -> CacheEntry:
        """Cache an embedding vector for a text."""
        return self.set(
            CacheType.EMBEDDINGS, hasher.generate_embedding_key(text), embedding
        )

    def get_cached_embedding(self, text: str) -> Optional[list[float]]:
        """Get a cached embedding vector for a text."""
        return self.get(CacheType.EMBEDDINGS, hasher.generate_embedding_key(text))

    # Lifecycle

    def start_cleanup(self) -> None:
        """Start the periodic expiry sweep. Requires a running event loop."""
        self._sweeper.start()

    async def stop_cleanup(self) -> None:
        """Stop the periodic expiry sweep."""
        await self._sweeper.stop()

    @property
    def is_cleanup_running(self) -> bool:
        """Check if the expiry sweep is active."""
        return self._sweeper.is_running


def _describe(entry: CacheEntry) -> dict[str, Any]:
    """Build an operator-facing preview of an entry."""
    key = entry.key
    if len(key) > KEY_PREVIEW_LENGTH:
        key = key[:KEY_PREVIEW_LENGTH] + "..."

    value = entry.value if isinstance(entry.value, str) else repr(entry.value)
    if len(value) > PREVIEW_LENGTH:
        value = value[:PREVIEW_LENGTH] + "..."

    return {
        "key": key,
        "full_key": entry.key,
        "scope": entry.scope,
        "created_at": entry.created_at,
        "expires_at": entry.expires_at,
        "ttl_seconds": entry.ttl_seconds,
        "access_count": entry.access_count,
        "last_accessed_at": entry.last_accessed_at,
        "value_preview": value,
    }


def _coerce_policy(cache_type: CacheType, policy: PolicyLike) -> CachePolicy:
    """
    Validate a configured policy.

    Args:
        cache_type: Cache type the policy applies to
        policy: CachePolicy or a mapping of its fields

    Returns:
        CachePolicy

    Raises:
        ConfigurationError: If the policy is malformed or out of bounds
    """
    if isinstance(policy, CachePolicy):
        return policy
    if not isinstance(policy, Mapping):
        raise ConfigurationError(f"Invalid policy for cache type {cache_type.value}")

    try:
        return CachePolicy.model_validate(dict(policy))
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid policy for cache type {cache_type.value}", cause=e
        ) from e
