"""Fixtures for the conformance catalogue run against a live endpoint."""

import logging
from typing import Any, Callable, Generator

import pytest

from s3_conformance.buckets import create_bucket, delete_prefixed_buckets
from s3_conformance.config import ConformanceConfig, load_config
from s3_conformance.connection import close_connection_pool, get_client
from s3_conformance.exceptions import S3ConfigurationError, S3ConformanceError
from s3_conformance.naming import get_bucket_name, get_prefix

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def conformance_config() -> ConformanceConfig:
    """Validated configuration for the endpoint under test."""
    config = load_config()
    try:
        config.validate()
    except S3ConfigurationError as e:
        pytest.skip(f"Conformance endpoint not configured: {e}")

    logger.info(f"Running conformance suite against {config.describe()}")
    return config


@pytest.fixture(scope="session")
def s3_client(conformance_config: ConformanceConfig) -> Generator[Any, None, None]:
    """Pooled client shared by every conformance test."""
    yield get_client(conformance_config)
    close_connection_pool()


@pytest.fixture(autouse=True)
def cleanup_buckets(
    conformance_config: ConformanceConfig, s3_client: Any
) -> Generator[None, None, None]:
    """Delete every bucket created under the run prefix after each test."""
    yield
    try:
        delete_prefixed_buckets(s3_client, get_prefix(conformance_config))
    except S3ConformanceError as e:
        logger.warning(f"Bucket cleanup failed: {e}")


@pytest.fixture
def new_bucket_name(conformance_config: ConformanceConfig) -> Callable[[], str]:
    """Factory for unused bucket names under the run prefix."""
    return lambda: get_bucket_name(conformance_config)


@pytest.fixture
def make_bucket(
    s3_client: Any, new_bucket_name: Callable[[], str]
) -> Callable[[], str]:
    """Factory that creates a bucket under the run prefix and returns its name."""

    def _make_bucket() -> str:
        name = new_bucket_name()
        create_bucket(s3_client, name)
        return name

    return _make_bucket


@pytest.fixture
def bucket(make_bucket: Callable[[], str]) -> str:
    """A fresh, empty bucket."""
    return make_bucket()


@pytest.fixture
def sse_enabled(conformance_config: ConformanceConfig) -> None:
    if not conformance_config.enable_sse:
        pytest.skip("Server-side encryption cases need S3TEST_ENABLE_SSE=1")


@pytest.fixture
def kms_key_id(conformance_config: ConformanceConfig, sse_enabled: None) -> str:
    if not conformance_config.kms_key_id:
        pytest.skip("SSE-KMS cases need S3TEST_KMS_KEY_ID")
    return conformance_config.kms_key_id


@pytest.fixture
def lifecycle_enabled(conformance_config: ConformanceConfig) -> None:
    if not conformance_config.enable_lifecycle:
        pytest.skip("Lifecycle cases need S3TEST_ENABLE_LIFECYCLE=1")
