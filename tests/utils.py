# mypy: ignore-errors
"""Utility functions and helpers for the test suites."""

import logging
from typing import Any, Callable, List, Optional

import pytest
from botocore.exceptions import BotoCoreError, ClientError

from s3_conformance.exceptions import get_error_code, get_error_message, get_status

logger = logging.getLogger(__name__)


class TestDataGenerator:
    """Generate various test data scenarios."""

    __test__ = False

    @staticmethod
    def generate_test_content(size_bytes: int) -> bytes:
        """Generate test content of specified size."""
        chunk = b"x" * 1024
        full_chunks = size_bytes // 1024
        remainder = size_bytes % 1024
        return chunk * full_chunks + chunk[:remainder]

    @staticmethod
    def multipart_payload() -> str:
        """5 MiB of the repeating ``12345`` pattern, enough for one full part."""
        return "12345" * (1024 * 1024)

    @staticmethod
    def unreadable_values() -> List[str]:
        """Header values containing non-printing characters."""
        return ["\x07", "\x08", "\x01"]


class ErrorSimulator:
    """Simulate various error conditions for testing."""

    @staticmethod
    def create_client_error(
        error_code: str,
        message: str = "Test error",
        http_status: int = 400,
        operation_name: str = "TestOperation",
    ) -> ClientError:
        """Create boto3 ClientError for testing."""
        return ClientError(
            error_response={
                "Error": {"Code": error_code, "Message": message},
                "ResponseMetadata": {"HTTPStatusCode": http_status},
            },
            operation_name=operation_name,
        )


def assert_client_error(
    excinfo: Any,
    status: Optional[int] = None,
    code: Optional[str] = None,
    message: Optional[str] = None,
) -> ClientError:
    """Check the status, code and message of a raised ClientError."""
    error = excinfo.value if hasattr(excinfo, "value") else excinfo
    assert isinstance(error, ClientError), f"Expected ClientError, got {error!r}"

    if status is not None:
        assert get_status(error.response) == status
    if code is not None:
        assert get_error_code(error) == code
    if message is not None:
        assert get_error_message(error) == message
    return error


def assert_request_rejected(func: Callable, *args: Any, **kwargs: Any) -> Exception:
    """Assert that a request carrying an unreadable header does not succeed.

    The request may be refused on the client side by the HTTP stack, or
    sent and answered with a 4xx error.
    """
    with pytest.raises((ClientError, BotoCoreError, ValueError)) as excinfo:
        func(*args, **kwargs)

    error = excinfo.value
    if isinstance(error, ClientError):
        status = get_status(error.response)
        assert status is not None and 400 <= status < 500, (
            f"Expected a 4xx rejection, got {status}: {get_error_code(error)}"
        )
    logger.debug(f"Request rejected with {error!r}")
    return error
