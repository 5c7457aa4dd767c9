"""
Retryable error classification.

Sandi Metz Principles:
- Single Responsibility: Decide whether an error is worth retrying
- Pure functions: No side effects
"""

import asyncio
import errno
from typing import Optional

import httpx

from resilience.exceptions import (
    CircuitOpenError,
    ExternalServiceError,
    RetryExhaustedError,
    ValidationError,
)

RETRYABLE_STATUS_CODES = frozenset({408, 429})

RETRYABLE_ERRNO_CODES = frozenset(
    {
        errno.ECONNRESET,
        errno.ETIMEDOUT,
        errno.ECONNREFUSED,
        errno.ECONNABORTED,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
    }
)

RETRYABLE_ERROR_CODES = frozenset(
    {"ECONNRESET", "ETIMEDOUT", "ENOTFOUND", "ECONNREFUSED", "EAI_AGAIN"}
)


def is_retryable_status(status_code: int) -> bool:
    """
    Check if an HTTP-equivalent status is transient.

    Args:
        status_code: Response status

    Returns:
        True for 5xx, 408 and 429
    """
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


def get_status_code(error: BaseException) -> Optional[int]:
    """
    Extract an HTTP-equivalent status from an error, if it carries one.

    Looks at ``status_code``, ``status`` and ``response.status_code`` so
    errors from httpx, provider SDKs and our own ExternalServiceError are
    all understood.

    Args:
        error: Raised exception

    Returns:
        Status code or None
    """
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value

    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def is_retryable_error(error: BaseException) -> bool:
    """
    Default retry policy.

    Network failures, timeouts and 5xx/408/429 responses are retryable.
    Validation errors, other 4xx responses, open circuits and already
    exhausted retries are not. An explicit ``retryable`` attribute on the
    error always wins.

    Args:
        error: Raised exception

    Returns:
        True if the operation should be attempted again
    """
    explicit = getattr(error, "retryable", None)
    if isinstance(explicit, bool):
        return explicit

    if isinstance(error, (ValidationError, CircuitOpenError, RetryExhaustedError)):
        return False

    status_code = get_status_code(error)
    if status_code is not None:
        return is_retryable_status(status_code)

    if isinstance(error, ExternalServiceError):
        # No status means the transport failed before a response arrived
        return True

    if isinstance(error, httpx.TransportError):
        return True

    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return True

    if isinstance(error, OSError) and error.errno in RETRYABLE_ERRNO_CODES:
        return True

    return getattr(error, "code", None) in RETRYABLE_ERROR_CODES
