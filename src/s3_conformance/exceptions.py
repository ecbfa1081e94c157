"""Exception hierarchy and response helpers for conformance runs."""

import logging
import re
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def _sanitize_context_for_logging(context: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize context dictionary for safe logging by masking credentials."""
    if not context:
        return {}

    SENSITIVE_FIELDS = {
        "access_key",
        "secret_key",
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_session_token",
        "sse_customer_key",
        "password",
        "token",
        "secret",
        "credential",
    }

    sanitized: Dict[str, Any] = {}

    for key, value in context.items():
        key_lower = key.lower().replace("-", "_").replace(" ", "_")

        if key_lower in SENSITIVE_FIELDS:
            sanitized[key] = "***MASKED***"
        elif isinstance(value, str):
            if _is_sensitive_string_value(value):
                sanitized[key] = "***MASKED***"
            else:
                sanitized[key] = value
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_context_for_logging(value)
        else:
            sanitized[key] = value

    return sanitized


def _is_sensitive_string_value(value: str) -> bool:
    """Check if a string value looks like an AWS credential."""
    if not isinstance(value, str) or len(value) < 16:
        return False

    sensitive_patterns = [
        r"^(AKIA|ASIA)[A-Z0-9]{16}$",  # AWS access key id
        r"^[A-Za-z0-9/+=]{40}$",  # AWS secret key
    ]

    return any(re.search(pattern, value) for pattern in sensitive_patterns)


class S3ConformanceError(Exception):
    """Base exception for conformance suite infrastructure failures."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.operation = operation
        self.context = context or {}
        self.cause = cause

        sanitized_context = _sanitize_context_for_logging(self.context)
        logger.error(
            f"{self.__class__.__name__}: {message} | Operation: {operation} | "
            f"Code: {error_code} | Context: {sanitized_context}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error": self.__class__.__name__,
            "message": str(self),
            "error_code": self.error_code,
            "operation": self.operation,
            "context": _sanitize_context_for_logging(self.context),
        }


class S3ConfigurationError(S3ConformanceError):
    """Missing or malformed suite configuration."""

    pass


class S3ConnectionError(S3ConformanceError):
    """Network and endpoint errors."""

    pass


class S3ThrottleError(S3ConformanceError):
    """Rate limiting errors reported by the service."""

    pass


class S3BucketError(S3ConformanceError):
    """Bucket-level failures during setup or teardown."""

    pass


class S3ObjectError(S3ConformanceError):
    """Object-level failures during setup or teardown."""

    pass


class S3ValidationError(S3ConformanceError):
    """Generated names or keys that break S3 naming rules."""

    pass


class S3CleanupError(S3ConformanceError):
    """Teardown could not remove a prefixed bucket."""

    pass


BOTO3_ERROR_MAPPING = {
    "NoSuchBucket": (S3BucketError, "Bucket does not exist"),
    "BucketNotEmpty": (S3BucketError, "Bucket is not empty"),
    "BucketAlreadyExists": (S3BucketError, "Bucket already exists"),
    "BucketAlreadyOwnedByYou": (S3BucketError, "Bucket already owned by you"),
    "NoSuchKey": (S3ObjectError, "Object not found"),
    "NoSuchUpload": (S3ObjectError, "Multipart upload not found"),
    "InvalidAccessKeyId": (S3ConfigurationError, "Access key is not recognised"),
    "SignatureDoesNotMatch": (S3ConfigurationError, "Secret key is wrong"),
    "Throttling": (S3ThrottleError, "Request throttled"),
    "RequestLimitExceeded": (S3ThrottleError, "Request limit exceeded"),
    "TooManyRequests": (S3ThrottleError, "Too many requests"),
    "SlowDown": (S3ThrottleError, "Slow down requests"),
    "ServiceUnavailable": (S3ConnectionError, "Service unavailable"),
    "InternalError": (S3ConnectionError, "Internal service error"),
    "RequestTimeout": (S3ConnectionError, "Request timeout"),
}


def map_boto3_error(
    error: Exception, operation: str = "unknown"
) -> S3ConformanceError:
    """Map a boto3/botocore error to the matching S3ConformanceError subclass."""
    from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

    if isinstance(error, S3ConformanceError):
        return error

    if isinstance(error, ClientError):
        error_code = get_error_code(error)
        error_message = get_error_message(error) or str(error)

        exception_class, default_message = BOTO3_ERROR_MAPPING.get(
            error_code, (S3ConformanceError, "Unexpected S3 error")
        )

        return exception_class(
            message=f"{default_message}: {error_message}",
            error_code=error_code,
            operation=operation,
            context={"status": get_status(error.response)},
            cause=error,
        )

    elif isinstance(error, NoCredentialsError):
        return S3ConfigurationError(
            message="AWS credentials not found or invalid",
            error_code="NoCredentials",
            operation=operation,
            cause=error,
        )

    elif isinstance(error, BotoCoreError):
        return S3ConnectionError(
            message=f"AWS SDK error: {error}",
            error_code="BotoCoreError",
            operation=operation,
            cause=error,
        )

    else:
        return S3ConformanceError(
            message=f"Unexpected error: {error}", operation=operation, cause=error
        )


def get_status(response: Dict[str, Any]) -> Optional[int]:
    """Return the HTTP status code recorded in a boto3 response or error body."""
    return response.get("ResponseMetadata", {}).get("HTTPStatusCode")


def get_error_code(error: Exception) -> str:
    """Return the S3 error code carried by a ClientError."""
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Code", ""))


def get_error_message(error: Exception) -> str:
    """Return the S3 error message carried by a ClientError."""
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Message", ""))


def get_status_and_error_code(response: Dict[str, Any]) -> Tuple[Optional[int], str]:
    """Return ``(status, error_code)`` from a ClientError response dict."""
    status = get_status(response)
    error_code = str(response.get("Error", {}).get("Code", ""))
    return status, error_code
