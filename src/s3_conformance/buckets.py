"""Bucket helpers: creation, ACLs, lifecycle and prefixed teardown."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from botocore.exceptions import ClientError

from .exceptions import S3CleanupError, S3ConformanceError, get_error_code
from .headers import inject_headers
from .naming import get_prefix
from .retry_handler import RetryConfig, with_retry

logger = logging.getLogger(__name__)

CLEANUP_RETRY_CONFIG = RetryConfig(max_attempts=4, base_delay=0.5, max_delay=8.0)


def _create_bucket_kwargs(client: Any, name: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"Bucket": name}
    region = client.meta.region_name
    if region and region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
    return kwargs


def create_bucket(client: Any, name: str) -> Dict[str, Any]:
    """Create ``name`` in the client's region."""
    logger.debug(f"Creating bucket {name}")
    return client.create_bucket(**_create_bucket_kwargs(client, name))


def create_bucket_with_headers(
    client: Any, name: str, headers: Mapping[str, str]
) -> Dict[str, Any]:
    """Create ``name`` with raw header overrides (empty value removes)."""
    with inject_headers(client, "CreateBucket", headers):
        return create_bucket(client, name)


def delete_bucket(client: Any, name: str) -> Dict[str, Any]:
    return client.delete_bucket(Bucket=name)


def list_buckets(client: Any) -> List[str]:
    """Names of every bucket visible to the client's credentials."""
    response = client.list_buckets()
    return [bucket["Name"] for bucket in response.get("Buckets", [])]


def bucket_exists(client: Any, name: str) -> bool:
    try:
        client.head_bucket(Bucket=name)
    except ClientError as e:
        if get_error_code(e) in ("404", "NoSuchBucket", "NotFound"):
            return False
        raise
    return True


def set_bucket_acl(client: Any, name: str, acl: str) -> Dict[str, Any]:
    """Apply a canned ACL such as ``public-read``."""
    return client.put_bucket_acl(Bucket=name, ACL=acl)


def get_bucket_lifecycle(client: Any, name: str) -> Dict[str, Any]:
    return client.get_bucket_lifecycle_configuration(Bucket=name)


def set_bucket_lifecycle(
    client: Any,
    name: str,
    rule_id: str,
    status: str,
    content_md5: Optional[str] = None,
    expiration_days: int = 1,
    prefix: str = "",
) -> Dict[str, Any]:
    """Put a single-rule lifecycle configuration.

    ``status`` is sent verbatim so invalid values ("enabled", "invalid") reach
    the server. When ``content_md5`` is given it replaces the digest the SDK
    computes for the body.
    """
    rule: Dict[str, Any] = {
        "Filter": {"Prefix": prefix},
        "Status": status,
        "Expiration": {"Days": expiration_days},
    }
    if rule_id:
        rule["ID"] = rule_id

    kwargs = {
        "Bucket": name,
        "LifecycleConfiguration": {"Rules": [rule]},
    }

    if content_md5 is None:
        return client.put_bucket_lifecycle_configuration(**kwargs)

    with inject_headers(
        client,
        "PutBucketLifecycleConfiguration",
        {"Content-MD5": content_md5},
        event="before-sign",
    ):
        return client.put_bucket_lifecycle_configuration(**kwargs)


@with_retry(CLEANUP_RETRY_CONFIG)
def _abort_uploads(client: Any, name: str) -> int:
    aborted = 0
    paginator = client.get_paginator("list_multipart_uploads")
    for page in paginator.paginate(Bucket=name):
        for upload in page.get("Uploads", []):
            try:
                client.abort_multipart_upload(
                    Bucket=name, Key=upload["Key"], UploadId=upload["UploadId"]
                )
            except ClientError as e:
                if get_error_code(e) != "NoSuchUpload":
                    raise
                logger.debug(f"Upload {upload['UploadId']} in {name} already gone")
                continue
            aborted += 1
    return aborted


def _delete_batch(client: Any, name: str, objects: List[Dict[str, str]]) -> None:
    for start in range(0, len(objects), 1000):
        batch = objects[start : start + 1000]
        response = client.delete_objects(
            Bucket=name, Delete={"Objects": batch, "Quiet": True}
        )
        for error in response.get("Errors", []):
            logger.warning(
                f"Failed to delete {name}/{error['Key']}: "
                f"{error['Code']}: {error['Message']}"
            )


@with_retry(CLEANUP_RETRY_CONFIG)
def _empty_bucket(client: Any, name: str) -> int:
    removed = 0
    try:
        paginator = client.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=name):
            objects = [
                {"Key": entry["Key"], "VersionId": entry["VersionId"]}
                for entry in page.get("Versions", []) + page.get("DeleteMarkers", [])
            ]
            if objects:
                _delete_batch(client, name, objects)
                removed += len(objects)
        return removed
    except ClientError as e:
        # Services without versioning support fall back to plain listing
        if get_error_code(e) not in ("NotImplemented", "MethodNotAllowed"):
            raise

    paginator = client.get_paginator("list_objects")
    for page in paginator.paginate(Bucket=name):
        objects = [{"Key": entry["Key"]} for entry in page.get("Contents", [])]
        if objects:
            _delete_batch(client, name, objects)
            removed += len(objects)
    return removed


@with_retry(CLEANUP_RETRY_CONFIG)
def _delete_empty_bucket(client: Any, name: str) -> None:
    client.delete_bucket(Bucket=name)


def delete_prefixed_buckets(client: Any, prefix: Optional[str] = None) -> List[str]:
    """Delete every bucket starting with ``prefix`` (default: the run prefix).

    Each bucket is emptied first: in-flight multipart uploads are aborted and
    all object versions, delete markers and objects removed. Buckets that
    disappear while this runs are skipped. A bucket that cannot be deleted
    does not stop the others.

    Returns:
        Names of the buckets that were deleted.

    Raises:
        S3CleanupError: One or more buckets were left behind. The context
            lists them under ``failed_buckets``.
    """
    prefix = prefix or get_prefix()
    deleted: List[str] = []
    failures: Dict[str, S3ConformanceError] = {}

    for name in list_buckets(client):
        if not name.startswith(prefix):
            continue

        try:
            aborted = _abort_uploads(client, name)
            removed = _empty_bucket(client, name)
            _delete_empty_bucket(client, name)
        except S3ConformanceError as e:
            if e.error_code == "NoSuchBucket":
                logger.debug(f"Bucket {name} vanished during cleanup")
                continue
            logger.warning(f"Could not delete bucket {name}: {e}")
            failures[name] = e
            continue

        logger.debug(
            f"Deleted bucket {name} ({removed} objects, {aborted} uploads aborted)"
        )
        deleted.append(name)

    if deleted:
        logger.info(f"Cleaned up {len(deleted)} buckets with prefix {prefix}")

    if failures:
        first = next(iter(failures.values()))
        raise S3CleanupError(
            message=f"Could not delete {len(failures)} buckets: "
            f"{', '.join(failures)}",
            error_code=first.error_code,
            operation="delete_prefixed_buckets",
            context={
                "failed_buckets": list(failures),
                "errors": {name: e.error_code for name, e in failures.items()},
                "deleted_buckets": deleted,
            },
            cause=first,
        )
    return deleted
