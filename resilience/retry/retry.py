"""
Retry logic for external calls.

Sandi Metz Principles:
- Single Responsibility: Manage retry logic
- Small methods: Each method < 10 lines
- Dependency Injection: Configuration injected
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from resilience.exceptions import RetryExhaustedError
from resilience.retry.classifier import is_retryable_error
from resilience.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

ErrorClassifier = Callable[[BaseException], bool]


@dataclass
class RetryConfig:
    """Retry configuration."""

    max_attempts: int = 3
    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")


class RetryHandler:
    """
    Linear backoff retry handler.

    Waits ``delay_seconds * attempt`` between attempts (1s, 2s, 3s with
    the defaults). Cancelling the awaiting task during an attempt or a
    backoff sleep stops further attempts.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        is_retryable: ErrorClassifier = is_retryable_error,
    ):
        """
        Initialize retry handler.

        Args:
            config: Retry configuration (uses defaults if None)
            is_retryable: Error classifier
        """
        self._config = config or RetryConfig()
        self._is_retryable = is_retryable

    async def execute(
        self,
        func: Callable[[], Awaitable[T]],
        operation_name: str = "operation",
    ) -> T:
        """
        Execute function with retry logic.

        Args:
            func: Async function to execute
            operation_name: Name used in logs and errors

        Returns:
            Function result

        Raises:
            RetryExhaustedError: If a retryable error persisted on every attempt
            Exception: The original error if it is not retryable, tagged with
                ``operation_name`` and ``attempts``
        """
        max_attempts = self._config.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                result = await func()
            except Exception as e:
                if not self._is_retryable(e):
                    logger.warning(
                        "Non-retryable error",
                        operation=operation_name,
                        attempt=attempt,
                        error=str(e),
                    )
                    tag_error(e, operation_name, attempt)
                    raise

                if attempt == max_attempts:
                    logger.error(
                        f"All {attempt} retry attempts failed",
                        operation=operation_name,
                        error=str(e),
                    )
                    raise RetryExhaustedError(operation_name, attempt, e) from e

                delay = self.calculate_delay(attempt)
                logger.warning(
                    f"Attempt {attempt} failed, retrying in {delay:.2f}s",
                    operation=operation_name,
                    error=str(e),
                )
                await asyncio.sleep(delay)
                continue

            if attempt > 1:
                logger.info(
                    f"Succeeded on attempt {attempt}", operation=operation_name
                )
            return result

        raise AssertionError("unreachable")  # pragma: no cover

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay after a failed attempt.

        Args:
            attempt: Failed attempt number (1-indexed)

        Returns:
            Delay in seconds
        """
        return self._config.delay_seconds * attempt

    @property
    def config(self) -> RetryConfig:
        """Get retry configuration."""
        return self._config


def with_overrides(
    config: RetryConfig,
    max_attempts: Optional[int] = None,
    delay_seconds: Optional[float] = None,
) -> RetryConfig:
    """
    Copy a retry configuration with per-call overrides.

    Args:
        config: Base configuration
        max_attempts: Override for attempts
        delay_seconds: Override for backoff step

    Returns:
        New RetryConfig
    """
    return RetryConfig(
        max_attempts=max_attempts if max_attempts is not None else config.max_attempts,
        delay_seconds=(
            delay_seconds if delay_seconds is not None else config.delay_seconds
        ),
    )


def tag_error(error: BaseException, operation_name: str, attempts: int) -> None:
    """
    Attach retry context to an error propagated as-is.

    Sets ``operation_name`` and ``attempts`` unless the error already
    carries them (e.g. a nested CircuitOpenError), and adds a note shown
    in the traceback.

    Args:
        error: Error being re-raised
        operation_name: Operation the error came from
        attempts: Attempts made, including the failing one
    """
    if not hasattr(error, "operation_name"):
        error.operation_name = operation_name
    if not hasattr(error, "attempts"):
        error.attempts = attempts
    error.add_note(f"{operation_name}: failed on attempt {attempts}")
