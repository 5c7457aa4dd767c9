"""
Fixed-window rate limiting per scope class and identifier.

Sandi Metz Principles:
- Single Responsibility: Count requests per window
- Small methods: Each method < 10 lines
- Dependency Injection: Limits and clock injected
"""

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from resilience.models.ratelimit import (
    GLOBAL_IDENTIFIER,
    RateLimitConfig,
    RateLimitCounter,
    RateLimitInfo,
    ScopeClass,
)
from resilience.utils.logger import get_logger
from resilience.utils.periodic import PeriodicTask

logger = get_logger(__name__)

ScopeLike = Union[ScopeClass, str]
CounterKey = Tuple[ScopeClass, str]

DEFAULT_RETENTION_SECONDS = 86400.0
DEFAULT_CLEANUP_INTERVAL = 60.0


class RateLimiter:
    """
    Fixed-window request counters keyed by (scope class, identifier).

    A window opens on the first request after the previous one ended and
    resets atomically. Counters are created lazily and garbage-collected
    once their window ended more than ``retention_seconds`` ago, which
    bounds memory when many identifiers are seen only once.

    Throttling is reported as ``False``, never raised.
    """

    def __init__(
        self,
        limits: Optional[Mapping[ScopeClass, RateLimitConfig]] = None,
        clock: Callable[[], float] = time.time,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
    ):
        """
        Initialize rate limiter.

        Args:
            limits: Limit per scope class (defaults for missing classes)
            clock: Time source returning epoch seconds
            retention_seconds: How long a finished window is kept
            cleanup_interval: Seconds between counter GC runs
        """
        self._limits: Dict[ScopeClass, RateLimitConfig] = RateLimitConfig.defaults()
        for scope, limit in (limits or {}).items():
            self._limits[ScopeClass(scope)] = limit

        self._clock = clock
        self._retention = retention_seconds
        self._counters: Dict[CounterKey, RateLimitCounter] = {}
        self._lock = threading.Lock()
        self._sweeper = PeriodicTask(
            "rate-limit-cleanup", cleanup_interval, self.cleanup
        )

    def check_and_increment(self, scope: ScopeLike, identifier: str) -> bool:
        """
        Admit a request if the identifier has budget left in its window.

        Args:
            scope: Scope class
            identifier: Sender phone number, owner phone number, ...

        Returns:
            True if admitted (and counted), False if throttled

        Raises:
            ValueError: If ``scope`` is not a known scope class
        """
        scope = ScopeClass(scope)
        config = self._limits[scope]
        if not config.enabled:
            return True

        with self._lock:
            counter = self._current_counter(scope, identifier, config)
            if counter.count >= counter.limit:
                allowed = False
            else:
                counter.count += 1
                allowed = True
            count = counter.count

        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                scope=scope.value,
                identifier=identifier,
                count=count,
                limit=config.limit,
            )
        return allowed

    def _current_counter(
        self, scope: ScopeClass, identifier: str, config: RateLimitConfig
    ) -> RateLimitCounter:
        """Get the counter, opening a fresh window if needed. Caller holds the lock."""
        now = self._clock()
        counter = self._counters.get((scope, identifier))

        if counter is None:
            counter = RateLimitCounter(
                count=0,
                window_start=now,
                limit=config.limit,
                window_seconds=config.window_seconds,
            )
            self._counters[(scope, identifier)] = counter
        elif counter.is_window_expired(now):
            counter.restart(now)
            counter.limit = config.limit
            counter.window_seconds = config.window_seconds

        return counter

    def _live_counter(
        self, scope: ScopeClass, identifier: str
    ) -> Optional[RateLimitCounter]:
        """Get the counter only if its window is still open."""
        counter = self._counters.get((scope, identifier))
        if counter is None or counter.is_window_expired(self._clock()):
            return None
        return counter

    def remaining(self, scope: ScopeLike, identifier: str) -> int:
        """
        Get requests left in the current window.

        An expired window counts as fresh.

        Args:
            scope: Scope class
            identifier: Identifier

        Returns:
            Remaining requests
        """
        scope = ScopeClass(scope)
        config = self._limits[scope]
        with self._lock:
            counter = self._live_counter(scope, identifier)
            used = counter.count if counter else 0
        return max(0, config.limit - used)

    def reset_time(self, scope: ScopeLike, identifier: str) -> float:
        """
        Get when the identifier's budget refills.

        Args:
            scope: Scope class
            identifier: Identifier

        Returns:
            Epoch seconds; ``now + window`` when no window is open
        """
        scope = ScopeClass(scope)
        config = self._limits[scope]
        with self._lock:
            counter = self._live_counter(scope, identifier)
            if counter is not None:
                return counter.window_end
        return self._clock() + config.window_seconds

    def info(self, scope: ScopeLike, identifier: str) -> RateLimitInfo:
        """
        Get remaining budget and reset time for a throttled caller.

        Args:
            scope: Scope class
            identifier: Identifier

        Returns:
            RateLimitInfo
        """
        config = self._limits[ScopeClass(scope)]
        return RateLimitInfo.from_timestamp(
            requests_remaining=self.remaining(scope, identifier),
            reset_timestamp=self.reset_time(scope, identifier),
            limit=config.limit,
            window_seconds=config.window_seconds,
        )

    def now(self) -> datetime:
        """Current time of the limiter clock as a UTC datetime."""
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def check_global(self) -> bool:
        """Admit a request against the shared global budget."""
        return self.check_and_increment(ScopeClass.GLOBAL, GLOBAL_IDENTIFIER)

    def check_customer(self, phone_number: str) -> bool:
        """Admit a customer query."""
        return self.check_and_increment(ScopeClass.CUSTOMER, phone_number)

    def check_business_owner(self, phone_number: str) -> bool:
        """Admit a business owner command."""
        return self.check_and_increment(ScopeClass.BUSINESS_OWNER, phone_number)

    def check_media_upload(self, phone_number: str) -> bool:
        """Admit a media upload."""
        return self.check_and_increment(ScopeClass.MEDIA_UPLOAD, phone_number)

    def cleanup(self) -> int:
        """
        Drop counters whose window ended more than ``retention_seconds`` ago.

        Returns:
            Number of counters removed
        """
        with self._lock:
            now = self._clock()
            stale = [
                key
                for key, counter in self._counters.items()
                if now - counter.window_end > self._retention
            ]
            for key in stale:
                del self._counters[key]

        if stale:
            logger.debug("Rate limit cleanup", removed=len(stale))
        return len(stale)

    def reset(
        self, scope: Optional[ScopeLike] = None, identifier: Optional[str] = None
    ) -> int:
        """
        Drop counters.

        Args:
            scope: Scope class, or None for every counter
            identifier: Identifier within ``scope``, or None for the whole class

        Returns:
            Number of counters removed
        """
        scope = ScopeClass(scope) if scope is not None else None
        with self._lock:
            if scope is None:
                keys = list(self._counters)
            elif identifier is None:
                keys = [key for key in self._counters if key[0] == scope]
            else:
                key = (scope, identifier)
                keys = [key] if key in self._counters else []
            for key in keys:
                del self._counters[key]

        logger.info(
            "Reset rate limits",
            scope=scope.value if scope else None,
            identifier=identifier,
            removed=len(keys),
        )
        return len(keys)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get limiter statistics.

        Returns:
            Counter totals and active counters per scope class
        """
        with self._lock:
            now = self._clock()
            live = [
                (key, counter)
                for key, counter in self._counters.items()
                if not counter.is_window_expired(now)
            ]
            total = len(self._counters)

        active = {scope.value: 0 for scope in ScopeClass}
        for (scope, _), _counter in live:
            active[scope.value] += 1

        return {
            "total_counters": total,
            "active_counters": active,
            "requests_in_window": sum(counter.count for _, counter in live),
            "limits": {
                scope.value: config.model_dump()
                for scope, config in self._limits.items()
            },
        }

    def get_limit(self, scope: ScopeLike) -> RateLimitConfig:
        """Get configuration for a scope class."""
        return self._limits[ScopeClass(scope)]

    def start_cleanup(self) -> None:
        """Start periodic counter GC. Requires a running event loop."""
        self._sweeper.start()

    async def stop_cleanup(self) -> None:
        """Stop periodic counter GC."""
        await self._sweeper.stop()

    @property
    def is_cleanup_running(self) -> bool:
        """Check if counter GC is active."""
        return self._sweeper.is_running

    @property
    def counter_count(self) -> int:
        """Number of tracked counters."""
        return len(self._counters)
