"""
Operator endpoints for cache, rate limit and circuit inspection.

Sandi Metz Principles:
- Single Responsibility: Expose administrative operations
- Thin layer: Delegates to the injected components
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from resilience.api.deps import get_cache, get_rate_limiter, get_retry_manager
from resilience.cache.manager import CacheManager
from resilience.models.cache_entry import CacheType
from resilience.models.ratelimit import ScopeClass
from resilience.models.statistics import CacheStatistics
from resilience.ratelimit.limiter import RateLimiter
from resilience.retry.manager import RetryManager
from resilience.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

VALID_TYPES = ", ".join(cache_type.value for cache_type in CacheType)
VALID_SCOPES = ", ".join(scope.value for scope in ScopeClass)


class ClearCacheRequest(BaseModel):
    """Cache clear request. Without fields every cache is cleared."""

    type: Optional[str] = Field(None, description="Cache type to clear")
    scope_id: Optional[str] = Field(None, description="Business id to invalidate")


class ClearCacheResponse(BaseModel):
    """Cache clear result."""

    success: bool = Field(default=True)
    cleared: int = Field(..., ge=0, description="Entries removed")
    message: str = Field(..., description="Human readable summary")


class RateLimitStatusResponse(BaseModel):
    """Budget of one identifier within its scope class."""

    scope: str
    identifier: str
    limit: int = Field(..., ge=1)
    window_seconds: float = Field(..., gt=0)
    requests_used: int = Field(..., ge=0)
    requests_remaining: int = Field(..., ge=0)
    exceeded: bool
    reset_at: datetime
    retry_after_seconds: int = Field(..., ge=0)
    retry_after_minutes: int = Field(..., ge=0)


def _parse_type(value: Optional[str]) -> Optional[CacheType]:
    """Validate a cache type name from a request."""
    if value is None:
        return None
    try:
        return CacheType(value)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid cache type. Must be one of: {VALID_TYPES}",
        ) from None


@router.get("/cache/stats", response_model=CacheStatistics)
async def get_cache_stats(
    cache: CacheManager = Depends(get_cache),  # noqa: B008
) -> CacheStatistics:
    """
    Get cache statistics.

    Returns:
        Hits, misses, saves, hit rate and size per type
    """
    return cache.stats()


@router.post("/cache/clear", response_model=ClearCacheResponse)
async def clear_cache(
    request: ClearCacheRequest,
    cache: CacheManager = Depends(get_cache),  # noqa: B008
) -> ClearCacheResponse:
    """
    Clear caches by scope, by type, or entirely.

    Args:
        request: Optional type and scope id

    Returns:
        Number of entries removed

    Raises:
        HTTPException: If the cache type is invalid
    """
    cache_type = _parse_type(request.type)

    if request.scope_id:
        if cache_type:
            cleared = cache.invalidate_scope(request.scope_id, [cache_type])
        else:
            cleared = cache.invalidate_scope(request.scope_id)
        message = f"Cleared {cleared} cache entries for business {request.scope_id}"
    elif cache_type:
        cleared = cache.clear(cache_type)
        message = f"Cleared {cache_type.value} cache"
    else:
        cleared = cache.clear()
        message = "Cleared all caches"

    logger.info("Admin cache clear", cleared=cleared, message=message)
    return ClearCacheResponse(cleared=cleared, message=message)


@router.get("/cache/inspect")
async def inspect_cache(
    type: Optional[str] = Query(None, description="Cache type"),  # noqa: B008
    limit: int = Query(10, ge=1, le=100, description="Entries per type"),  # noqa: B008
    cache: CacheManager = Depends(get_cache),  # noqa: B008
) -> Dict[str, Any]:
    """
    List the first entries of one or every cache.

    Returns:
        Size and entry previews per cache type
    """
    cache_type = _parse_type(type)
    return {"success": True, "caches": cache.inspect(cache_type, limit=limit)}


@router.get("/rate-limits")
async def get_rate_limit_stats(
    limiter: RateLimiter = Depends(get_rate_limiter),  # noqa: B008
) -> Dict[str, Any]:
    """
    Get rate limiter statistics.

    Returns:
        Counter totals and configured limits
    """
    return limiter.get_stats()


@router.get("/circuits")
async def get_circuit_stats(
    manager: RetryManager = Depends(get_retry_manager),  # noqa: B008
) -> Dict[str, Any]:
    """
    Get circuit breaker states.

    Returns:
        State and failure count per operation
    """
    return {"circuits": manager.get_stats()}


@router.get(
    "/rate-limits/{scope}/{identifier}", response_model=RateLimitStatusResponse
)
async def get_rate_limit_status(
    scope: str,
    identifier: str,
    limiter: RateLimiter = Depends(get_rate_limiter),  # noqa: B008
) -> RateLimitStatusResponse:
    """
    Get the remaining budget of one identifier.

    Args:
        scope: Scope class name
        identifier: Phone number, or "all" for the global scope

    Returns:
        Usage and time until the window resets

    Raises:
        HTTPException: If the scope class is invalid
    """
    try:
        scope_class = ScopeClass(scope)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid scope. Must be one of: {VALID_SCOPES}",
        ) from None

    info = limiter.info(scope_class, identifier)
    now = limiter.now()
    return RateLimitStatusResponse(
        scope=scope_class.value,
        identifier=identifier,
        limit=info.limit,
        window_seconds=info.window_seconds,
        requests_used=info.requests_used,
        requests_remaining=info.requests_remaining,
        exceeded=info.is_exceeded,
        reset_at=info.reset_at,
        retry_after_seconds=info.seconds_until_reset(now),
        retry_after_minutes=info.retry_after_minutes(now),
    )
