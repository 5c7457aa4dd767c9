"""
Process-wide resilience state.

Following Sandi Metz:
- Single Responsibility: Own and wire the shared components
- Dependency Injection: Built once, passed to callers
"""

from typing import Optional

from resilience.cache.manager import CacheManager
from resilience.config import AppConfig
from resilience.ratelimit.limiter import RateLimiter
from resilience.retry.manager import RetryManager
from resilience.utils.logger import get_logger

logger = get_logger(__name__)


class ResilienceState:
    """
    Owns the cache, rate limiter and retry manager singletons.

    Created at process start; background sweeps run between ``startup``
    and ``shutdown``. Tests build their own instance per case.
    """

    def __init__(
        self,
        cache: CacheManager,
        rate_limiter: RateLimiter,
        retry_manager: RetryManager,
    ) -> None:
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.retry_manager = retry_manager

    @classmethod
    def from_config(cls, settings: Optional[AppConfig] = None) -> "ResilienceState":
        """
        Build every component from configuration.

        Args:
            settings: Configuration (loads from environment if None)

        Returns:
            ResilienceState instance
        """
        settings = settings or AppConfig()
        return cls(
            cache=CacheManager(
                policies=settings.cache_policies(),
                cleanup_interval=settings.cache_cleanup_interval_seconds,
            ),
            rate_limiter=RateLimiter(
                limits=settings.rate_limit_policies(),
                retention_seconds=settings.rate_limit_retention_seconds,
                cleanup_interval=settings.rate_limit_cleanup_interval_seconds,
            ),
            retry_manager=RetryManager(
                retry_config=settings.retry_config(),
                breaker_config=settings.circuit_breaker_config(),
            ),
        )

    async def startup(self) -> None:
        """Start background sweeps."""
        self.cache.start_cleanup()
        self.rate_limiter.start_cleanup()
        logger.info("Resilience layer started")

    async def shutdown(self) -> None:
        """Stop background sweeps."""
        await self.cache.stop_cleanup()
        await self.rate_limiter.stop_cleanup()
        logger.info("Resilience layer stopped")
