"""
Rate limiting models.

Sandi Metz Principles:
- Small classes with clear purpose
- Clear naming conventions
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class ScopeClass(str, Enum):
    """Dimension a rate-limit counter is partitioned by."""

    GLOBAL = "global"
    CUSTOMER = "customer"
    BUSINESS_OWNER = "business_owner"
    MEDIA_UPLOAD = "media_upload"


GLOBAL_IDENTIFIER = "all"


class RateLimitConfig(BaseModel):
    """Rate limit configuration for one scope class."""

    limit: int = Field(..., ge=1, description="Requests allowed per window")
    window_seconds: float = Field(..., gt=0, description="Time window in seconds")
    enabled: bool = Field(default=True, description="Whether rate limiting is enabled")

    @classmethod
    def per_hour(cls, limit: int, enabled: bool = True) -> "RateLimitConfig":
        """Create per-hour rate limit."""
        return cls(limit=limit, window_seconds=3600, enabled=enabled)

    @classmethod
    def disabled(cls) -> "RateLimitConfig":
        """Create disabled rate limit config."""
        return cls(limit=1, window_seconds=1, enabled=False)

    @classmethod
    def defaults(cls) -> dict[ScopeClass, "RateLimitConfig"]:
        """Default limits for every scope class."""
        return {
            ScopeClass.GLOBAL: cls.per_hour(500),
            ScopeClass.CUSTOMER: cls.per_hour(10),
            ScopeClass.BUSINESS_OWNER: cls.per_hour(30),
            ScopeClass.MEDIA_UPLOAD: cls.per_hour(5),
        }


@dataclass
class RateLimitCounter:
    """Fixed-window request counter for one (scope, identifier) pair."""

    count: int
    window_start: float
    limit: int
    window_seconds: float

    @property
    def window_end(self) -> float:
        """When the current window closes."""
        return self.window_start + self.window_seconds

    def is_window_expired(self, now: float) -> bool:
        """Check if ``now`` is past the current window."""
        return now - self.window_start >= self.window_seconds

    def restart(self, now: float) -> None:
        """Open a fresh window at ``now``."""
        self.count = 0
        self.window_start = now


class RateLimitInfo(BaseModel):
    """Rate limit information surfaced to a throttled caller."""

    requests_remaining: int = Field(
        ..., ge=0, description="Requests remaining in window"
    )
    reset_at: datetime = Field(..., description="When the limit resets (UTC)")
    limit: int = Field(..., ge=1, description="Total requests allowed per window")
    window_seconds: float = Field(..., gt=0, description="Time window in seconds")

    @model_validator(mode="after")
    def validate_requests_remaining(self) -> "RateLimitInfo":
        """Validate requests_remaining doesn't exceed limit."""
        if self.requests_remaining > self.limit:
            raise ValueError(
                f"requests_remaining ({self.requests_remaining}) cannot exceed "
                f"limit ({self.limit})"
            )
        return self

    @classmethod
    def from_timestamp(
        cls,
        requests_remaining: int,
        reset_timestamp: float,
        limit: int,
        window_seconds: float,
    ) -> "RateLimitInfo":
        """
        Create rate limit info from an epoch reset time.

        Args:
            requests_remaining: Requests remaining
            reset_timestamp: Reset time in epoch seconds
            limit: Request limit
            window_seconds: Time window

        Returns:
            RateLimitInfo instance
        """
        return cls(
            requests_remaining=requests_remaining,
            reset_at=datetime.fromtimestamp(reset_timestamp, tz=timezone.utc),
            limit=limit,
            window_seconds=window_seconds,
        )

    @property
    def is_exceeded(self) -> bool:
        """Check if rate limit is exceeded."""
        return self.requests_remaining == 0

    @property
    def requests_used(self) -> int:
        """Get number of requests used."""
        return self.limit - self.requests_remaining

    def seconds_until_reset(self, now: datetime | None = None) -> int:
        """
        Get seconds until reset.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            Seconds until reset (0 if already reset)
        """
        now = now or datetime.now(timezone.utc)
        if now >= self.reset_at:
            return 0

        delta = self.reset_at - now
        return int(delta.total_seconds())

    def retry_after_minutes(self, now: datetime | None = None) -> int:
        """Get seconds until reset in minutes (rounded up)."""
        return (self.seconds_until_reset(now) + 59) // 60
