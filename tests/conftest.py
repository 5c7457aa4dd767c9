"""
Pytest configuration and fixtures.

Provides common fixtures for testing.
"""

from unittest.mock import AsyncMock, patch

import pytest

from resilience.cache.manager import CacheManager
from resilience.config import AppConfig
from resilience.models.cache_entry import CachePolicy, CacheType
from resilience.ratelimit.limiter import RateLimiter
from resilience.retry.manager import RetryManager
from resilience.state import ResilienceState


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """
    Create a controllable clock.

    Returns:
        FakeClock starting at a fixed epoch
    """
    return FakeClock()


@pytest.fixture
def mock_sleep():
    """Mock asyncio.sleep to make backoff instant."""
    with patch("asyncio.sleep", new=AsyncMock()) as mock:
        yield mock


@pytest.fixture
def test_config() -> AppConfig:
    """
    Create test configuration.

    Returns:
        Test configuration instance
    """
    return AppConfig(
        app_env="development",
        cache_responses_max_size=3,
        rate_limit_customer_limit=2,
        retry_delay_seconds=0.0,
        circuit_failure_threshold=2,
    )


@pytest.fixture
def cache_manager(clock: FakeClock) -> CacheManager:
    """
    Create a cache manager with small bounds.

    Returns:
        CacheManager driven by the fake clock
    """
    return CacheManager(
        policies={
            CacheType.RESPONSES: CachePolicy(ttl_seconds=60, max_size=3),
            CacheType.SEARCHES: CachePolicy(ttl_seconds=30, max_size=3),
            CacheType.EMBEDDINGS: CachePolicy(ttl_seconds=600, max_size=3),
        },
        clock=clock,
    )


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    """
    Create a rate limiter with default limits.

    Returns:
        RateLimiter driven by the fake clock
    """
    return RateLimiter(clock=clock)


@pytest.fixture
def retry_manager(clock: FakeClock) -> RetryManager:
    """
    Create a retry manager.

    Returns:
        RetryManager driven by the fake clock
    """
    return RetryManager(clock=clock)


@pytest.fixture
def resilience_state(
    cache_manager: CacheManager,
    rate_limiter: RateLimiter,
    retry_manager: RetryManager,
) -> ResilienceState:
    """
    Create an isolated resilience state.

    Returns:
        ResilienceState
    """
    return ResilienceState(cache_manager, rate_limiter, retry_manager)
