"""
API dependency injection.

Sandi Metz Principles:
- Single Responsibility: Dependency lookup and injection
"""

from fastapi import Depends, Request

from resilience.cache.manager import CacheManager
from resilience.ratelimit.limiter import RateLimiter
from resilience.retry.manager import RetryManager
from resilience.state import ResilienceState


def get_state(request: Request) -> ResilienceState:
    """
    Get the resilience state attached by the application lifespan.

    Args:
        request: FastAPI request

    Returns:
        ResilienceState
    """
    return request.app.state.resilience


def get_cache(
    state: ResilienceState = Depends(get_state),  # noqa: B008
) -> CacheManager:
    """Get the cache manager."""
    return state.cache


def get_rate_limiter(
    state: ResilienceState = Depends(get_state),  # noqa: B008
) -> RateLimiter:
    """Get the rate limiter."""
    return state.rate_limiter


def get_retry_manager(
    state: ResilienceState = Depends(get_state),  # noqa: B008
) -> RetryManager:
    """Get the retry manager."""
    return state.retry_manager
