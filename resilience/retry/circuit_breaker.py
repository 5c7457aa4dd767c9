"""
Circuit breaker for external calls.

Sandi Metz Principles:
- Single Responsibility: Prevent cascading failures
- Small methods: Each method < 10 lines
- Clear naming: Self-documenting code
"""

import threading
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from resilience.exceptions import CircuitOpenError
from resilience.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Blocking requests
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
    ):
        """
        Initialize circuit breaker configuration.

        Args:
            failure_threshold: Consecutive failures before opening circuit (default: 5)
            reset_timeout: Seconds before a trial call is allowed (default: 60)
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if reset_timeout < 0:
            raise ValueError("reset_timeout cannot be negative")

        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout


class CircuitBreaker:
    """
    Circuit breaker for one named external operation.

    CLOSED counts consecutive failures and opens at the threshold. OPEN
    rejects calls with CircuitOpenError until ``reset_timeout`` has passed
    since the last failure, then lets exactly one trial call through in
    HALF_OPEN. The trial closes the circuit on success and reopens it on
    failure.
    """

    def __init__(
        self,
        name: str = "operation",
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Operation name used in logs and errors
            config: Circuit breaker configuration (creates default if None)
            clock: Monotonic time source in seconds
        """
        self._name = name
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._trial_in_flight = False

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute operation through circuit breaker.

        Args:
            operation: Async function to execute

        Returns:
            Operation result

        Raises:
            CircuitOpenError: If circuit is open; the operation is not invoked
            Exception: Whatever the operation raised
        """
        is_trial = self._acquire()

        try:
            result = await operation()
        except CircuitOpenError:
            # A nested breaker rejected the call; the dependency was not hit
            raise
        except Exception:
            self._on_failure()
            raise
        else:
            self._on_success()
            return result
        finally:
            if is_trial:
                with self._lock:
                    self._trial_in_flight = False

    def _acquire(self) -> bool:
        """
        Admit or reject a call.

        Returns:
            True if the admitted call is the half-open trial

        Raises:
            CircuitOpenError: If the call is rejected
        """
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return False

            if self._state == CircuitState.OPEN and self._should_attempt_reset():
                self._transition_to_half_open()

            if self._state == CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return True

        logger.warning("Call rejected by open circuit", operation=self._name)
        raise CircuitOpenError(self._name, retry_after=self.retry_after)

    def _should_attempt_reset(self) -> bool:
        """
        Check if enough time has passed to attempt recovery.

        Returns:
            True if reset timeout has elapsed
        """
        if self._last_failure_time is None:
            return True

        elapsed = self._clock() - self._last_failure_time
        return elapsed >= self._config.reset_timeout

    def _on_success(self) -> None:
        """Handle successful operation."""
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._transition_to_closed()
            else:
                # Failures must be consecutive to open the circuit
                self._failure_count = 0

    def _on_failure(self) -> None:
        """Handle failed operation."""
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()

            if self._state == CircuitState.HALF_OPEN:
                # Failure in half-open immediately reopens circuit
                self._transition_to_open()
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self._config.failure_threshold
            ):
                self._transition_to_open()

    def _transition_to_closed(self) -> None:
        """Transition to CLOSED state."""
        logger.info("Circuit breaker closing", operation=self._name, state="CLOSED")
        self._state = CircuitState.CLOSED
        self._failure_count = 0

    def _transition_to_open(self) -> None:
        """Transition to OPEN state."""
        logger.warning(
            "Circuit breaker opening",
            operation=self._name,
            state="OPEN",
            failures=self._failure_count,
        )
        self._state = CircuitState.OPEN

    def _transition_to_half_open(self) -> None:
        """Transition to HALF_OPEN state."""
        logger.info(
            "Circuit breaker half-open", operation=self._name, state="HALF_OPEN"
        )
        self._state = CircuitState.HALF_OPEN

    def get_state(self) -> CircuitState:
        """
        Get current circuit state.

        Returns:
            Current circuit state
        """
        return self._state

    def reset(self) -> None:
        """Manually reset circuit breaker to CLOSED state."""
        logger.info("Circuit breaker manual reset", operation=self._name)
        with self._lock:
            self._transition_to_closed()
            self._last_failure_time = None
            self._trial_in_flight = False

    def get_failure_count(self) -> int:
        """
        Get current failure count.

        Returns:
            Number of consecutive failures
        """
        return self._failure_count

    @property
    def name(self) -> str:
        """Get operation name."""
        return self._name

    @property
    def config(self) -> CircuitBreakerConfig:
        """Get circuit breaker configuration."""
        return self._config

    @property
    def last_failure_time(self) -> Optional[float]:
        """Get clock reading of the last failure."""
        return self._last_failure_time

    @property
    def retry_after(self) -> float:
        """Seconds until an open circuit admits a trial call."""
        if self._state != CircuitState.OPEN or self._last_failure_time is None:
            return 0.0
        elapsed = self._clock() - self._last_failure_time
        return max(0.0, self._config.reset_timeout - elapsed)
