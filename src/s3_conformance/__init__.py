"""S3 API conformance suite.

This package holds the helper library behind a black-box conformance suite
for S3-compatible object stores: configuration, pooled boto3 clients, unique
bucket naming, raw header injection, and thin wrappers over bucket, object,
listing and multipart calls. The test catalogue itself lives in
``tests/functional``.
"""

from .config import ConformanceConfig, get_config, load_config, reset_config
from .connection import S3ConnectionPool, close_connection_pool, get_client
from .exceptions import (
    S3BucketError,
    S3CleanupError,
    S3ConfigurationError,
    S3ConformanceError,
    S3ConnectionError,
    S3ObjectError,
    S3ThrottleError,
    S3ValidationError,
    get_status_and_error_code,
)
from .headers import inject_headers
from .naming import get_bucket_name, get_prefix
from .retry_handler import RetryConfig

__version__ = "0.1.0"

__all__ = [
    "ConformanceConfig",
    "load_config",
    "get_config",
    "reset_config",
    "S3ConnectionPool",
    "get_client",
    "close_connection_pool",
    "S3ConformanceError",
    "S3ConfigurationError",
    "S3ConnectionError",
    "S3ThrottleError",
    "S3BucketError",
    "S3ObjectError",
    "S3ValidationError",
    "S3CleanupError",
    "get_status_and_error_code",
    "inject_headers",
    "get_prefix",
    "get_bucket_name",
    "RetryConfig",
    "__version__",
]
