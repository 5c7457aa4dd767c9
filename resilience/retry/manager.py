"""
Retry manager.

Entry point for calling code: ``with_retry`` smooths over transient
failures within one logical call, ``with_circuit_breaker`` protects a
struggling dependency from sustained load. They compose, breaker outside:

    await manager.with_circuit_breaker(
        lambda: manager.with_retry(call_llm, operation_name="openai"),
        operation_name="openai",
    )
"""

import threading
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from resilience.retry.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from resilience.retry.classifier import is_retryable_error
from resilience.retry.retry import (
    ErrorClassifier,
    RetryConfig,
    RetryHandler,
    with_overrides,
)
from resilience.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryManager:
    """
    Retry and circuit-breaker facade with a registry of named breakers.

    Breakers are created on first use of an operation name and live as
    long as the manager.
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        breaker_config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize retry manager.

        Args:
            retry_config: Default retry configuration
            breaker_config: Default circuit breaker configuration
            clock: Monotonic time source for breakers
        """
        self._retry_config = retry_config or RetryConfig()
        self._breaker_config = breaker_config or CircuitBreakerConfig()
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str = "operation",
        max_attempts: Optional[int] = None,
        delay_seconds: Optional[float] = None,
        is_retryable: Optional[ErrorClassifier] = None,
    ) -> T:
        """
        Invoke ``operation`` with bounded linear-backoff retries.

        Args:
            operation: Async function to execute
            operation_name: Name used in logs and errors
            max_attempts: Override of the default attempt count
            delay_seconds: Override of the default backoff step
            is_retryable: Override of the default error classifier

        Returns:
            Operation result

        Raises:
            RetryExhaustedError: If a retryable error persisted on every attempt
            Exception: The original error if it is not retryable, tagged with
                ``operation_name`` and ``attempts``
        """
        config = with_overrides(self._retry_config, max_attempts, delay_seconds)
        handler = RetryHandler(config, is_retryable or is_retryable_error)
        return await handler.execute(operation, operation_name)

    async def with_circuit_breaker(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str,
        failure_threshold: Optional[int] = None,
        reset_timeout_seconds: Optional[float] = None,
    ) -> T:
        """
        Invoke ``operation`` through the breaker named ``operation_name``.

        Threshold and timeout only apply when the breaker is created.

        Args:
            operation: Async function to execute
            operation_name: Breaker name
            failure_threshold: Failures before opening
            reset_timeout_seconds: Seconds before a trial call

        Returns:
            Operation result

        Raises:
            CircuitOpenError: If the circuit is open
        """
        breaker = self.get_breaker(
            operation_name, failure_threshold, reset_timeout_seconds
        )
        return await breaker.execute(operation)

    def get_breaker(
        self,
        operation_name: str,
        failure_threshold: Optional[int] = None,
        reset_timeout_seconds: Optional[float] = None,
    ) -> CircuitBreaker:
        """
        Get or create the breaker for an operation.

        Args:
            operation_name: Breaker name
            failure_threshold: Failures before opening (new breakers only)
            reset_timeout_seconds: Seconds before a trial call (new breakers only)

        Returns:
            CircuitBreaker
        """
        with self._lock:
            breaker = self._breakers.get(operation_name)
            if breaker is None:
                config = CircuitBreakerConfig(
                    failure_threshold=(
                        failure_threshold
                        if failure_threshold is not None
                        else self._breaker_config.failure_threshold
                    ),
                    reset_timeout=(
                        reset_timeout_seconds
                        if reset_timeout_seconds is not None
                        else self._breaker_config.reset_timeout
                    ),
                )
                breaker = CircuitBreaker(operation_name, config, self._clock)
                self._breakers[operation_name] = breaker
                logger.debug("Circuit breaker created", operation=operation_name)
            return breaker

    def get_state(self, operation_name: str) -> Optional[CircuitState]:
        """Get breaker state, or None if the operation was never called."""
        breaker = self._breakers.get(operation_name)
        return breaker.get_state() if breaker else None

    def reset(self, operation_name: Optional[str] = None) -> int:
        """
        Close one breaker or every breaker.

        Args:
            operation_name: Breaker name, or None for all

        Returns:
            Number of breakers reset
        """
        if operation_name is not None:
            breaker = self._breakers.get(operation_name)
            if breaker is None:
                return 0
            breaker.reset()
            return 1

        breakers = list(self._breakers.values())
        for breaker in breakers:
            breaker.reset()
        return len(breakers)

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """
        Get breaker statistics.

        Returns:
            State, failure count and retry-after per operation
        """
        return {
            name: {
                "state": breaker.get_state().value,
                "failure_count": breaker.get_failure_count(),
                "failure_threshold": breaker.config.failure_threshold,
                "retry_after_seconds": round(breaker.retry_after, 3),
            }
            for name, breaker in list(self._breakers.items())
        }

    @property
    def retry_config(self) -> RetryConfig:
        """Get default retry configuration."""
        return self._retry_config
