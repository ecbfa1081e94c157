"""Suite configuration loaded from the environment and an optional .env file."""

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

from .exceptions import S3ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "S3TEST_"
DEFAULT_BUCKET_PREFIX = "s3conf-{random}-"
VALID_ADDRESSING_STYLES = ("path", "virtual", "auto")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env(name: str, default: str = "") -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ConformanceConfig:
    """Connection and feature settings for a conformance run."""

    endpoint_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_prefix: str = DEFAULT_BUCKET_PREFIX
    verify_ssl: bool = True
    addressing_style: str = "path"
    signature_version: str = "s3v4"
    kms_key_id: Optional[str] = None
    enable_sse: bool = False
    enable_lifecycle: bool = False
    log_level: str = "WARNING"

    @property
    def is_secure(self) -> bool:
        """Whether the endpoint speaks TLS."""
        return bool(self.endpoint_url) and str(self.endpoint_url).startswith(
            "https://"
        )

    def validate(self) -> None:
        """Raise S3ConfigurationError if the config cannot reach a service."""
        if not self.endpoint_url:
            raise S3ConfigurationError(
                message=f"{ENV_PREFIX}ENDPOINT_URL is not set",
                error_code="MissingEndpoint",
                operation="validate_config",
            )

        if not self.endpoint_url.startswith(("http://", "https://")):
            raise S3ConfigurationError(
                message=f"Endpoint must be an http(s) URL: {self.endpoint_url}",
                error_code="InvalidEndpoint",
                operation="validate_config",
            )

        if not self.access_key or not self.secret_key:
            raise S3ConfigurationError(
                message="Access key and secret key are required",
                error_code="MissingCredentials",
                operation="validate_config",
            )

        if self.addressing_style not in VALID_ADDRESSING_STYLES:
            raise S3ConfigurationError(
                message=(
                    f"Addressing style must be one of {VALID_ADDRESSING_STYLES}, "
                    f"got {self.addressing_style!r}"
                ),
                error_code="InvalidAddressingStyle",
                operation="validate_config",
            )

    def describe(self) -> Dict[str, Any]:
        """Summary of the configuration with credentials masked."""
        return {
            "endpoint_url": self.endpoint_url or "Not set",
            "region": self.region,
            "access_key": "***MASKED***" if self.access_key else "Not set",
            "secret_key": "***MASKED***" if self.secret_key else "Not set",
            "bucket_prefix": self.bucket_prefix,
            "addressing_style": self.addressing_style,
            "signature_version": self.signature_version,
            "verify_ssl": self.verify_ssl,
            "enable_sse": self.enable_sse,
            "enable_lifecycle": self.enable_lifecycle,
            "kms_key_id": "set" if self.kms_key_id else "Not set",
        }


def load_config(env_file: Optional[Union[str, Path]] = None) -> ConformanceConfig:
    """Build a configuration from ``S3TEST_*`` environment variables.

    Args:
        env_file: Optional path to a .env file. If None, a ``.env`` in the
            current working directory is used when present. Values already
            present in the environment take precedence over the file.

    Returns:
        A fresh ConformanceConfig. It is not validated; call ``validate()``
        before connecting.
    """
    if env_file is None:
        env_file = Path.cwd() / ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file, override=False)
        logger.debug(f"Loaded environment from {env_file}")

    config = ConformanceConfig(
        endpoint_url=_env("ENDPOINT_URL") or None,
        access_key=_env("ACCESS_KEY") or None,
        secret_key=_env("SECRET_KEY") or None,
        region=_env("REGION", "us-east-1"),
        bucket_prefix=_env("BUCKET_PREFIX", DEFAULT_BUCKET_PREFIX),
        verify_ssl=_env_bool("VERIFY_SSL", True),
        addressing_style=_env("ADDRESSING_STYLE", "path"),
        signature_version=_env("SIGNATURE_VERSION", "s3v4"),
        kms_key_id=_env("KMS_KEY_ID") or None,
        enable_sse=_env_bool("ENABLE_SSE"),
        enable_lifecycle=_env_bool("ENABLE_LIFECYCLE"),
        log_level=_env("LOG_LEVEL", "WARNING").upper(),
    )

    logger.debug(f"Conformance configuration: {config.describe()}")
    return config


_config: Optional[ConformanceConfig] = None
_config_lock = threading.Lock()


def get_config() -> ConformanceConfig:
    """Get or create the process-wide configuration."""
    global _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config

    with _config_lock:
        _config = None
