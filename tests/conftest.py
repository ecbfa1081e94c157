"""Shared test configuration and fixtures."""

import logging
import os
from typing import Any, Dict, Generator

import boto3
import pytest
from moto import mock_aws

from s3_conformance.config import ConformanceConfig, reset_config

CONFORMANCE_ENV_FLAG = "RUN_CONFORMANCE_TESTS"

CATEGORY_MARKERS = (
    "bucket",
    "object",
    "listing",
    "multipart",
    "conditional",
    "headers",
    "encryption",
    "lifecycle",
)


def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers and logging."""
    config.addinivalue_line("markers", "unit: Fast offline unit tests")
    config.addinivalue_line(
        "markers", "conformance: Tests run against a live S3-compatible endpoint"
    )
    config.addinivalue_line("markers", "bucket: Bucket create/list/delete cases")
    config.addinivalue_line("markers", "object: Object read/write/copy cases")
    config.addinivalue_line("markers", "listing: ListObjects pagination cases")
    config.addinivalue_line("markers", "multipart: Multipart upload cases")
    config.addinivalue_line("markers", "conditional: Conditional request cases")
    config.addinivalue_line("markers", "headers: Raw request header cases")
    config.addinivalue_line(
        "markers", "encryption: Server-side encryption cases (S3TEST_ENABLE_SSE)"
    )
    config.addinivalue_line(
        "markers", "lifecycle: Bucket lifecycle cases (S3TEST_ENABLE_LIFECYCLE)"
    )
    config.addinivalue_line("markers", "slow: Slow running tests (>10 seconds)")

    # Configure logging for tests
    level = os.environ.get("S3TEST_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=logging.DEBUG if config.getoption("--verbose") else level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def conformance_enabled(config: Any) -> bool:
    return bool(config.getoption("--conformance")) or os.environ.get(
        CONFORMANCE_ENV_FLAG, ""
    ).lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config, items) -> None:  # type: ignore
    """Add markers based on location and skip gated tests."""
    skip_slow = pytest.mark.skip(reason="Slow test skipped (use --slow to enable)")
    skip_conformance = pytest.mark.skip(
        reason=f"Conformance tests need --conformance or {CONFORMANCE_ENV_FLAG}=1"
    )
    run_conformance = conformance_enabled(config)

    for item in items:
        path = str(item.fspath)

        # Add markers based on test file location
        if "functional" in path:
            item.add_marker(pytest.mark.conformance)
            if not run_conformance:
                item.add_marker(skip_conformance)
        elif "unit" in path:
            item.add_marker(pytest.mark.unit)

        module = os.path.basename(path)
        for category in CATEGORY_MARKERS:
            if module.startswith(f"test_{category}"):
                item.add_marker(getattr(pytest.mark, category))

        # Skip slow tests unless explicitly enabled
        if "slow" in item.keywords and not config.getoption("--slow"):
            item.add_marker(skip_slow)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--slow", action="store_true", default=False, help="Run slow tests"
    )
    parser.addoption(
        "--conformance",
        action="store_true",
        default=False,
        help="Run conformance tests against S3TEST_ENDPOINT_URL",
    )


@pytest.fixture(autouse=True)
def clean_environment() -> Generator[None, None, None]:
    """Clean environment variables between tests."""
    original_env = os.environ.copy()
    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def fresh_config() -> Generator[None, None, None]:
    """Drop the cached configuration before and after a test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def mock_config() -> ConformanceConfig:
    """Configuration for tests running against moto."""
    return ConformanceConfig(
        access_key="testing",
        secret_key="testing",
        region="us-east-1",
        bucket_prefix="unit-{random}-",
    )


@pytest.fixture
def mock_s3_setup() -> Generator[Dict[str, Any], None, None]:
    """Setup mocked S3 environment for testing."""
    with mock_aws():
        s3_client = boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )
        s3_client.create_bucket(Bucket="test-conformance-bucket")

        yield {
            "client": s3_client,
            "bucket_name": "test-conformance-bucket",
            "region_name": "us-east-1",
        }
