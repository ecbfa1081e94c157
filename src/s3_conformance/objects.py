"""Object helpers shared by the conformance catalogue.

Every helper issues plain boto3 calls and lets ``ClientError`` propagate
unchanged, so tests can assert on the status and error code the service
returned.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .headers import inject_headers

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000

SSE_C_ALGORITHM_HEADER = "x-amz-server-side-encryption-customer-algorithm"
SSE_C_KEY_HEADER = "x-amz-server-side-encryption-customer-key"
SSE_C_KEY_MD5_HEADER = "x-amz-server-side-encryption-customer-key-md5"
SSE_HEADER = "x-amz-server-side-encryption"
SSE_KMS_KEY_ID_HEADER = "x-amz-server-side-encryption-aws-kms-key-id"

# A fixed AES256 customer key and the base64 MD5 of its raw bytes.
DEFAULT_SSE_C = (
    "AES256",
    "pO3upElrwuEXSoFwCfnZPdSsmt/xWeFa0N9KgDijwVs=",
    "DWygnHRtgiJ77HCm+1rvHw==",
)

Body = Union[str, bytes]


def _read_body(response: Dict[str, Any]) -> str:
    body = response["Body"]
    try:
        return body.read().decode("utf-8")
    finally:
        body.close()


def put_object(client: Any, bucket: str, key: str, content: Body) -> Dict[str, Any]:
    return client.put_object(Bucket=bucket, Key=key, Body=content)


def create_objects(client: Any, bucket: str, objects: Mapping[str, Body]) -> None:
    """Write every ``key: content`` pair in ``objects`` to ``bucket``."""
    for key, content in objects.items():
        put_object(client, bucket, key, content)
    logger.debug(f"Created {len(objects)} objects in {bucket}")


def put_object_with_headers(
    client: Any,
    bucket: str,
    key: str,
    content: Body,
    headers: Mapping[str, str],
    event: str = "before-call",
) -> Dict[str, Any]:
    """PutObject with raw header overrides; an empty value removes a header."""
    with inject_headers(client, "PutObject", headers, event=event):
        return put_object(client, bucket, key, content)


def get_object(client: Any, bucket: str, key: str) -> str:
    """Return the body of ``bucket/key`` decoded as UTF-8."""
    return _read_body(client.get_object(Bucket=bucket, Key=key))


def head_object(client: Any, bucket: str, key: str) -> Dict[str, Any]:
    return client.head_object(Bucket=bucket, Key=key)


def get_objects(client: Any, bucket: str) -> Dict[str, Any]:
    """Raw ListObjects response for ``bucket``."""
    return client.list_objects(Bucket=bucket)


def list_objects(client: Any, bucket: str) -> List[Dict[str, Any]]:
    """``Contents`` of a ListObjects call, or an empty list."""
    return get_objects(client, bucket).get("Contents", [])


def delete_objects(client: Any, bucket: str) -> int:
    """Delete every object in ``bucket`` with batched DeleteObjects calls.

    Returns:
        The number of keys submitted for deletion.
    """
    keys: List[str] = []
    paginator = client.get_paginator("list_objects")
    for page in paginator.paginate(Bucket=bucket):
        keys.extend(entry["Key"] for entry in page.get("Contents", []))

    for start in range(0, len(keys), DELETE_BATCH_SIZE):
        batch = keys[start : start + DELETE_BATCH_SIZE]
        client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
        )

    logger.debug(f"Deleted {len(keys)} objects from {bucket}")
    return len(keys)


def copy_object(
    client: Any, dest_bucket: str, source: str, key: str
) -> Dict[str, Any]:
    """Copy ``source`` (``"bucket/key"``) to ``dest_bucket/key``."""
    return client.copy_object(Bucket=dest_bucket, CopySource=source, Key=key)


def get_object_with_range(
    client: Any, bucket: str, key: str, byte_range: str
) -> Tuple[Dict[str, Any], str]:
    """GET ``bucket/key`` with a ``Range`` header such as ``bytes=4-7``."""
    response = client.get_object(Bucket=bucket, Key=key, Range=byte_range)
    return response, _read_body(response)


def set_get_metadata(client: Any, bucket: str, value: str, key: str = "foo") -> str:
    """Store ``value`` as the ``meta1`` user metadata and read it back.

    A service that drops an empty metadata value reads back as ``""``.
    """
    client.put_object(Bucket=bucket, Key=key, Body="bar", Metadata={"meta1": value})
    response = client.get_object(Bucket=bucket, Key=key)
    response["Body"].close()
    return response["Metadata"].get("meta1", "")


def get_object_if_match(client: Any, bucket: str, key: str, etag: str) -> str:
    return _read_body(client.get_object(Bucket=bucket, Key=key, IfMatch=etag))


def get_object_if_none_match(client: Any, bucket: str, key: str, etag: str) -> str:
    return _read_body(client.get_object(Bucket=bucket, Key=key, IfNoneMatch=etag))


def get_object_if_modified_since(
    client: Any, bucket: str, key: str, since: datetime
) -> str:
    return _read_body(
        client.get_object(Bucket=bucket, Key=key, IfModifiedSince=since)
    )


def get_object_if_unmodified_since(
    client: Any, bucket: str, key: str, since: datetime
) -> str:
    return _read_body(
        client.get_object(Bucket=bucket, Key=key, IfUnmodifiedSince=since)
    )


def put_object_if_match(
    client: Any, bucket: str, key: str, content: Body, etag: str
) -> Dict[str, Any]:
    """PutObject carrying an ``If-Match`` precondition."""
    return put_object_with_headers(client, bucket, key, content, {"If-Match": etag})


def put_object_if_none_match(
    client: Any, bucket: str, key: str, content: Body, etag: str
) -> Dict[str, Any]:
    """PutObject carrying an ``If-None-Match`` precondition."""
    return put_object_with_headers(
        client, bucket, key, content, {"If-None-Match": etag}
    )


def _header_value(value: Optional[str]) -> str:
    # Blank fields map to "" which removes the header
    return value if value and value.strip() else ""


def sse_c_headers(sse: Sequence[str]) -> Dict[str, str]:
    """Request headers for an ``(algorithm, key_b64, md5_b64)`` triple."""
    algorithm, key_b64, md5_b64 = sse
    return {
        SSE_C_ALGORITHM_HEADER: _header_value(algorithm),
        SSE_C_KEY_HEADER: _header_value(key_b64),
        SSE_C_KEY_MD5_HEADER: _header_value(md5_b64),
    }


def sse_kms_headers(sse: Optional[str], kms_key_id: Optional[str]) -> Dict[str, str]:
    return {
        SSE_HEADER: _header_value(sse),
        SSE_KMS_KEY_ID_HEADER: _header_value(kms_key_id),
    }


def write_sse_c(
    client: Any, bucket: str, key: str, data: Body, sse: Sequence[str]
) -> Dict[str, Any]:
    """PutObject encrypted with a customer-provided key."""
    return put_object_with_headers(client, bucket, key, data, sse_c_headers(sse))


def read_sse_c(client: Any, bucket: str, key: str, sse: Sequence[str]) -> str:
    """GetObject for an SSE-C object, sending the key triple in ``sse``."""
    with inject_headers(client, "GetObject", sse_c_headers(sse)):
        return get_object(client, bucket, key)


def write_sse_kms(
    client: Any,
    bucket: str,
    key: str,
    data: Body,
    sse: Optional[str],
    kms_key_id: Optional[str],
) -> Dict[str, Any]:
    """PutObject with ``x-amz-server-side-encryption`` and a KMS key id.

    Either field may be blank to leave its header off the request.
    """
    return put_object_with_headers(
        client, bucket, key, data, sse_kms_headers(sse, kms_key_id)
    )


def _payload(size: int) -> str:
    return "A" * size


def sse_c_round_trip(
    client: Any,
    bucket: str,
    size: int,
    sse: Sequence[str] = DEFAULT_SSE_C,
    key: str = "testobj",
) -> Tuple[str, str]:
    """Write ``size`` bytes with SSE-C and read them back with the same key.

    Returns:
        ``(written, read)`` so callers can compare them.
    """
    data = _payload(size)
    write_sse_c(client, bucket, key, data, sse)
    return data, read_sse_c(client, bucket, key, sse)


def sse_kms_round_trip(
    client: Any, bucket: str, size: int, kms_key_id: str, key: str = "testobj"
) -> Tuple[str, str]:
    """Write ``size`` bytes with SSE-KMS and read them back without headers."""
    data = _payload(size)
    write_sse_kms(client, bucket, key, data, "aws:kms", kms_key_id)
    return data, get_object(client, bucket, key)
