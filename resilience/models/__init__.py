"""
Models package for the resilience layer.

Exports all model classes for easy imports throughout the application.
"""

# Cache models
from resilience.models.cache_entry import CacheEntry, CachePolicy, CacheType

# Rate limiting models
from resilience.models.ratelimit import (
    GLOBAL_IDENTIFIER,
    RateLimitConfig,
    RateLimitCounter,
    RateLimitInfo,
    ScopeClass,
)

# Statistics models
from resilience.models.statistics import (
    CacheStatistics,
    StoreStatistics,
    format_hit_rate,
)

__all__ = [
    # Cache
    "CacheEntry",
    "CachePolicy",
    "CacheType",
    # Rate Limiting
    "GLOBAL_IDENTIFIER",
    "RateLimitConfig",
    "RateLimitCounter",
    "RateLimitInfo",
    "ScopeClass",
    # Statistics
    "CacheStatistics",
    "StoreStatistics",
    "format_hit_rate",
]
