"""
Custom exceptions for the resilience layer.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        """
        Initialize application error.

        Args:
            message: Error message
            cause: Original exception that caused this error
        """
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        """Get string representation."""
        if self.cause:
            return f"{self.message} (caused by: {str(self.cause)})"
        return self.message


class ConfigurationError(AppError):
    """Raised when configuration is invalid."""

    pass


class CacheError(AppError):
    """Raised when cache operations are misused."""

    pass


class ValidationError(AppError):
    """Raised when caller input fails validation. Never retried."""

    pass


class ExternalServiceError(AppError):
    """Raised when an upstream service (LLM, vector DB, Twilio) fails."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        """
        Initialize external service error.

        Args:
            service: Name of the failing service
            message: Error message
            status_code: HTTP-equivalent status, None for transport failures
            cause: Original exception
        """
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} service error: {message}", cause)


class RetryExhaustedError(AppError):
    """Raised when every attempt of a retryable operation failed."""

    def __init__(self, operation_name: str, attempts: int, cause: BaseException):
        self.operation_name = operation_name
        self.attempts = attempts
        super().__init__(
            f"{operation_name} failed after {attempts} attempt(s)", cause
        )


class CircuitOpenError(AppError):
    """Raised when a call is rejected because its circuit is open."""

    def __init__(self, operation_name: str, retry_after: float = 0.0):
        self.operation_name = operation_name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker OPEN for {operation_name}")
