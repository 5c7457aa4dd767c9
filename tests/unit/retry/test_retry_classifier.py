"""Test retryable error classification."""

import asyncio
import errno

import httpx
import pytest

from resilience.exceptions import (
    CircuitOpenError,
    ExternalServiceError,
    RetryExhaustedError,
    ValidationError,
)
from resilience.retry.classifier import (
    get_status_code,
    is_retryable_error,
    is_retryable_status,
)


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/v1/chat")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("upstream", request=request, response=response)


class TestStatusCodes:
    """Test status-based classification."""

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 408, 429])
    def test_retryable_status(self, status):
        """Test server errors, timeouts and throttling are retryable."""
        assert is_retryable_status(status)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_errors_not_retryable(self, status):
        """Test other client errors are not retried."""
        assert not is_retryable_status(status)

    def test_httpx_status_errors(self):
        """Test httpx response errors are classified by status."""
        assert is_retryable_error(_status_error(503))
        assert not is_retryable_error(_status_error(400))

    def test_get_status_code_sources(self):
        """Test status is read from common attribute names."""

        class SdkError(Exception):
            status = 429

        assert get_status_code(_status_error(502)) == 502
        assert get_status_code(SdkError()) == 429
        assert get_status_code(ValueError()) is None


class TestErrorClassification:
    """Test the default retry policy."""

    def test_external_service_errors(self):
        """Test service errors follow their status."""
        assert is_retryable_error(ExternalServiceError("openai", "down", 503))
        assert not is_retryable_error(ExternalServiceError("openai", "bad", 400))
        assert is_retryable_error(ExternalServiceError("qdrant", "reset"))

    def test_transport_errors(self):
        """Test network failures are retryable."""
        assert is_retryable_error(httpx.ConnectError("refused"))
        assert is_retryable_error(httpx.ReadTimeout("slow"))
        assert is_retryable_error(ConnectionResetError())
        assert is_retryable_error(asyncio.TimeoutError())
        assert is_retryable_error(OSError(errno.ETIMEDOUT, "timed out"))

    def test_error_codes(self):
        """Test string error codes from client libraries."""
        error = RuntimeError("socket")
        error.code = "ETIMEDOUT"

        assert is_retryable_error(error)

    def test_non_retryable(self):
        """Test validation and resilience errors are never retried."""
        assert not is_retryable_error(ValidationError("empty query"))
        assert not is_retryable_error(CircuitOpenError("openai", 30.0))
        assert not is_retryable_error(
            RetryExhaustedError("openai", 3, ConnectionError())
        )
        assert not is_retryable_error(ValueError("bug"))
        assert not is_retryable_error(OSError(errno.ENOENT, "missing"))

    def test_explicit_flag_wins(self):
        """Test a retryable attribute overrides classification."""
        retry_me = ValueError("transient")
        retry_me.retryable = True
        skip_me = ExternalServiceError("twilio", "down", 503)
        skip_me.retryable = False

        assert is_retryable_error(retry_me)
        assert not is_retryable_error(skip_me)
