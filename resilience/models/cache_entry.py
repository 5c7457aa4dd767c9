"""
Cache entry models.

Sandi Metz Principles:
- Single Responsibility: Cache data structure
- Clear naming: Descriptive fields
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class CacheType(str, Enum):
    """Independently bounded cache stores."""

    RESPONSES = "responses"
    SEARCHES = "searches"
    EMBEDDINGS = "embeddings"


class CachePolicy(BaseModel):
    """TTL and size bound for one cache store."""

    ttl_seconds: float = Field(..., gt=0, description="Entry time-to-live")
    max_size: int = Field(..., ge=1, description="Maximum number of entries")

    @classmethod
    def responses(cls) -> "CachePolicy":
        """Default policy for AI responses (1 hour, 1000 entries)."""
        return cls(ttl_seconds=3600, max_size=1000)

    @classmethod
    def searches(cls) -> "CachePolicy":
        """Default policy for vector search results (30 minutes, 500 entries)."""
        return cls(ttl_seconds=1800, max_size=500)

    @classmethod
    def embeddings(cls) -> "CachePolicy":
        """Default policy for embeddings (24 hours, 5000 entries)."""
        return cls(ttl_seconds=86400, max_size=5000)

    @classmethod
    def defaults(cls) -> dict[CacheType, "CachePolicy"]:
        """Default policy for every cache type."""
        return {
            CacheType.RESPONSES: cls.responses(),
            CacheType.SEARCHES: cls.searches(),
            CacheType.EMBEDDINGS: cls.embeddings(),
        }


class CacheEntry(BaseModel):
    """A cached value with its lifetime and access metadata."""

    key: str = Field(..., description="Cache key (content hash)")
    value: Any = Field(..., description="Cached payload")
    scope: Optional[str] = Field(None, description="Owning scope, e.g. business id")
    created_at: float = Field(..., description="Write time (epoch seconds)")
    expires_at: float = Field(..., description="Expiry time (epoch seconds)")
    last_accessed_at: float = Field(..., description="Last read or write time")
    access_count: int = Field(default=0, ge=0, description="Number of cache hits")

    @classmethod
    def create(
        cls,
        key: str,
        value: Any,
        ttl_seconds: float,
        now: float,
        scope: Optional[str] = None,
    ) -> "CacheEntry":
        """
        Create a fresh entry written at ``now``.

        Args:
            key: Cache key
            value: Payload
            ttl_seconds: Time-to-live
            now: Current time
            scope: Owning scope

        Returns:
            CacheEntry instance
        """
        return cls(
            key=key,
            value=value,
            scope=scope,
            created_at=now,
            expires_at=now + ttl_seconds,
            last_accessed_at=now,
        )

    @property
    def ttl_seconds(self) -> float:
        """Lifetime the entry was written with."""
        return self.expires_at - self.created_at

    def is_expired(self, now: float) -> bool:
        """Check if entry is expired at ``now``."""
        return now >= self.expires_at

    def touch(self, now: float) -> None:
        """Record a cache hit."""
        self.access_count += 1
        self.last_accessed_at = now
