"""
Application configuration management.

Following Sandi Metz principles:
- Single Responsibility: Configuration loading and validation
- Clear naming: Descriptive property names
"""

from typing import Dict, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from resilience.models.cache_entry import CachePolicy, CacheType
from resilience.models.ratelimit import RateLimitConfig, ScopeClass
from resilience.retry.circuit_breaker import CircuitBreakerConfig
from resilience.retry.retry import RetryConfig


class AppConfig(BaseSettings):
    """
    Application configuration with validation.

    Loads from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="ResilienceLayer", description="Application name")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # Cache settings
    cache_responses_ttl_seconds: float = Field(default=3600, gt=0, description="TTL")
    cache_responses_max_size: int = Field(default=1000, ge=1, description="Max size")
    cache_searches_ttl_seconds: float = Field(default=1800, gt=0, description="TTL")
    cache_searches_max_size: int = Field(default=500, ge=1, description="Max size")
    cache_embeddings_ttl_seconds: float = Field(default=86400, gt=0, description="TTL")
    cache_embeddings_max_size: int = Field(default=5000, ge=1, description="Max size")
    cache_cleanup_interval_seconds: float = Field(
        default=300, gt=0, description="Expiry sweep interval"
    )

    # Rate limit settings
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limits")
    rate_limit_global_limit: int = Field(default=500, ge=1, description="Global limit")
    rate_limit_global_window_seconds: float = Field(default=3600, gt=0)
    rate_limit_customer_limit: int = Field(default=10, ge=1, description="Per customer")
    rate_limit_customer_window_seconds: float = Field(default=3600, gt=0)
    rate_limit_business_owner_limit: int = Field(
        default=30, ge=1, description="Per business owner"
    )
    rate_limit_business_owner_window_seconds: float = Field(default=3600, gt=0)
    rate_limit_media_upload_limit: int = Field(
        default=5, ge=1, description="Media uploads per sender"
    )
    rate_limit_media_upload_window_seconds: float = Field(default=3600, gt=0)
    rate_limit_retention_seconds: float = Field(
        default=86400, ge=0, description="Keep stale counters this long"
    )
    rate_limit_cleanup_interval_seconds: float = Field(
        default=60, gt=0, description="Counter GC interval"
    )

    # Retry settings
    retry_max_attempts: int = Field(default=3, ge=1, description="Attempts per call")
    retry_delay_seconds: float = Field(
        default=1.0, ge=0.0, description="Linear backoff step"
    )

    # Circuit breaker settings
    circuit_failure_threshold: int = Field(
        default=5, ge=1, description="Failures before opening"
    )
    circuit_reset_timeout_seconds: float = Field(
        default=60.0, ge=0.0, description="Seconds before a trial call"
    )

    def cache_policies(self) -> Dict[CacheType, CachePolicy]:
        """Build per-type cache policies."""
        return {
            CacheType.RESPONSES: CachePolicy(
                ttl_seconds=self.cache_responses_ttl_seconds,
                max_size=self.cache_responses_max_size,
            ),
            CacheType.SEARCHES: CachePolicy(
                ttl_seconds=self.cache_searches_ttl_seconds,
                max_size=self.cache_searches_max_size,
            ),
            CacheType.EMBEDDINGS: CachePolicy(
                ttl_seconds=self.cache_embeddings_ttl_seconds,
                max_size=self.cache_embeddings_max_size,
            ),
        }

    def rate_limit_policies(self) -> Dict[ScopeClass, RateLimitConfig]:
        """Build per-scope rate limit configuration."""
        enabled = self.rate_limit_enabled
        return {
            ScopeClass.GLOBAL: RateLimitConfig(
                limit=self.rate_limit_global_limit,
                window_seconds=self.rate_limit_global_window_seconds,
                enabled=enabled,
            ),
            ScopeClass.CUSTOMER: RateLimitConfig(
                limit=self.rate_limit_customer_limit,
                window_seconds=self.rate_limit_customer_window_seconds,
                enabled=enabled,
            ),
            ScopeClass.BUSINESS_OWNER: RateLimitConfig(
                limit=self.rate_limit_business_owner_limit,
                window_seconds=self.rate_limit_business_owner_window_seconds,
                enabled=enabled,
            ),
            ScopeClass.MEDIA_UPLOAD: RateLimitConfig(
                limit=self.rate_limit_media_upload_limit,
                window_seconds=self.rate_limit_media_upload_window_seconds,
                enabled=enabled,
            ),
        }

    def retry_config(self) -> RetryConfig:
        """Build default retry configuration."""
        return RetryConfig(
            max_attempts=self.retry_max_attempts,
            delay_seconds=self.retry_delay_seconds,
        )

    def circuit_breaker_config(self) -> CircuitBreakerConfig:
        """Build default circuit breaker configuration."""
        return CircuitBreakerConfig(
            failure_threshold=self.circuit_failure_threshold,
            reset_timeout=self.circuit_reset_timeout_seconds,
        )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


# Global configuration instance
config = AppConfig()
