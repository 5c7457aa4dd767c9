"""
Retry and circuit-breaker utilities for external calls.
"""

from resilience.retry.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from resilience.retry.classifier import is_retryable_error
from resilience.retry.manager import RetryManager
from resilience.retry.retry import RetryConfig, RetryHandler

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "RetryConfig",
    "RetryHandler",
    "RetryManager",
    "is_retryable_error",
]
