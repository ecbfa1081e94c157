"""S3 naming rules and header value checks used by the suite."""

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from .exceptions import S3ValidationError

logger = logging.getLogger(__name__)

MIN_BUCKET_NAME_LENGTH = 3
MAX_BUCKET_NAME_LENGTH = 63
MAX_OBJECT_KEY_BYTES = 1024

BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$")
NON_PRINTABLE_PATTERN = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


@dataclass
class ValidationRule:
    """Individual validation rule definition."""

    name: str
    validator: Callable[[str], bool]
    error_message: str


def _is_ip_address(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


BUCKET_NAME_RULES: List[ValidationRule] = [
    ValidationRule(
        "length",
        lambda x: MIN_BUCKET_NAME_LENGTH <= len(x) <= MAX_BUCKET_NAME_LENGTH,
        f"Bucket name must be {MIN_BUCKET_NAME_LENGTH}-{MAX_BUCKET_NAME_LENGTH} "
        "characters",
    ),
    ValidationRule(
        "pattern",
        lambda x: bool(BUCKET_NAME_PATTERN.match(x)),
        "Bucket name must use lowercase letters, digits, '.' and '-' and start "
        "and end with a letter or digit",
    ),
    ValidationRule(
        "no_adjacent_periods",
        lambda x: ".." not in x,
        "Bucket name must not contain adjacent periods",
    ),
    ValidationRule(
        "not_ip_address",
        lambda x: not _is_ip_address(x),
        "Bucket name must not be formatted as an IP address",
    ),
]


def validate_bucket_name(name: str) -> None:
    """Raise S3ValidationError if ``name`` breaks the S3 bucket naming rules."""
    failed = [rule for rule in BUCKET_NAME_RULES if not rule.validator(str(name))]
    if failed:
        raise S3ValidationError(
            message="; ".join(rule.error_message for rule in failed),
            error_code="InvalidBucketName",
            operation="validate_bucket_name",
            context={"bucket_name": name, "rules": [rule.name for rule in failed]},
        )


def is_valid_bucket_name(name: str) -> bool:
    return all(rule.validator(str(name)) for rule in BUCKET_NAME_RULES)


def validate_object_key(key: str) -> None:
    """Raise S3ValidationError unless ``key`` is 1-1024 bytes of UTF-8."""
    size = len(key.encode("utf-8"))
    if not 1 <= size <= MAX_OBJECT_KEY_BYTES:
        raise S3ValidationError(
            message=f"Object key must be 1-{MAX_OBJECT_KEY_BYTES} bytes, got {size}",
            error_code="KeyTooLong" if size else "InvalidKey",
            operation="validate_object_key",
            context={"key_length": size},
        )


def is_printable_header_value(value: str) -> bool:
    """False when a header value carries control characters (tab excepted)."""
    return not NON_PRINTABLE_PATTERN.search(value)
