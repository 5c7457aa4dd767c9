"""Test rate limit models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from resilience.models.ratelimit import (
    RateLimitConfig,
    RateLimitCounter,
    RateLimitInfo,
    ScopeClass,
)


class TestRateLimitConfig:
    """Test RateLimitConfig model."""

    def test_per_hour(self):
        """Test per-hour factory."""
        config = RateLimitConfig.per_hour(10)

        assert config.limit == 10
        assert config.window_seconds == 3600
        assert config.enabled is True

    def test_disabled(self):
        """Test disabled config."""
        assert RateLimitConfig.disabled().enabled is False

    def test_defaults_cover_every_scope(self):
        """Test a default exists for every scope class."""
        assert set(RateLimitConfig.defaults()) == set(ScopeClass)

    def test_invalid_limit(self):
        """Test zero limit is invalid."""
        with pytest.raises(ValidationError):
            RateLimitConfig(limit=0, window_seconds=60)


class TestRateLimitCounter:
    """Test fixed-window counter."""

    def test_window(self):
        """Test window end and expiry."""
        counter = RateLimitCounter(
            count=3, window_start=100.0, limit=5, window_seconds=60
        )

        assert counter.window_end == 160.0
        assert not counter.is_window_expired(159.0)
        assert counter.is_window_expired(160.0)

    def test_restart(self):
        """Test restarting opens a fresh window."""
        counter = RateLimitCounter(
            count=5, window_start=100.0, limit=5, window_seconds=60
        )

        counter.restart(200.0)

        assert counter.count == 0
        assert counter.window_start == 200.0


class TestRateLimitInfo:
    """Test RateLimitInfo model."""

    def test_remaining_cannot_exceed_limit(self):
        """Test validation of remaining requests."""
        with pytest.raises(ValidationError):
            RateLimitInfo.from_timestamp(11, 0.0, limit=10, window_seconds=60)

    def test_exceeded(self):
        """Test exceeded and used counts."""
        info = RateLimitInfo.from_timestamp(0, 1000.0, limit=10, window_seconds=60)

        assert info.is_exceeded
        assert info.requests_used == 10
        assert info.reset_at.tzinfo is not None

    def test_seconds_until_reset(self):
        """Test countdown to reset."""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        info = RateLimitInfo(
            requests_remaining=0,
            reset_at=now + timedelta(seconds=90),
            limit=10,
            window_seconds=3600,
        )

        assert info.seconds_until_reset(now) == 90
        assert info.retry_after_minutes(now) == 2
        assert info.seconds_until_reset(now + timedelta(hours=1)) == 0
