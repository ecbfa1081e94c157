"""Multipart upload helpers."""

import logging
from typing import Any, Dict, List, Tuple, Union

logger = logging.getLogger(__name__)

MIN_PART_SIZE = 5 * 1024 * 1024

Body = Union[str, bytes]


def initiate_multipart_upload(client: Any, bucket: str, key: str) -> Dict[str, Any]:
    return client.create_multipart_upload(Bucket=bucket, Key=key)


def upload_part(
    client: Any,
    bucket: str,
    key: str,
    upload_id: str,
    body: Body,
    part_number: int,
) -> Dict[str, Any]:
    return client.upload_part(
        Bucket=bucket,
        Key=key,
        UploadId=upload_id,
        PartNumber=part_number,
        Body=body,
    )


def complete_multipart_upload(
    client: Any,
    bucket: str,
    key: str,
    upload_id: str,
    parts: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Complete an upload from ``[{"ETag": ..., "PartNumber": ...}]``."""
    return client.complete_multipart_upload(
        Bucket=bucket,
        Key=key,
        UploadId=upload_id,
        MultipartUpload={"Parts": parts},
    )


def abort_multipart_upload(
    client: Any, bucket: str, key: str, upload_id: str
) -> Dict[str, Any]:
    return client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)


def list_parts(client: Any, bucket: str, key: str, upload_id: str) -> Dict[str, Any]:
    return client.list_parts(Bucket=bucket, Key=key, UploadId=upload_id)


def split_into_parts(data: Body, part_size: int = MIN_PART_SIZE) -> List[Body]:
    """Cut ``data`` into ``part_size`` chunks; the last one may be shorter.

    Empty data still yields one (empty) part, since S3 needs at least one.
    """
    if part_size <= 0:
        raise ValueError(f"part_size must be positive, got {part_size}")

    total_size = len(data)
    num_parts = max(1, (total_size + part_size - 1) // part_size)
    return [
        data[(n - 1) * part_size : min(n * part_size, total_size)]
        for n in range(1, num_parts + 1)
    ]


def multipart_upload(
    client: Any,
    bucket: str,
    key: str,
    data: Body,
    part_size: int = MIN_PART_SIZE,
) -> Tuple[str, List[Dict[str, Any]]]:
    """Upload ``data`` as a complete multipart upload.

    The upload is aborted if any part or the completion fails, and the
    original error is re-raised.

    Returns:
        ``(upload_id, parts)`` where ``parts`` is the completion list.
    """
    response = initiate_multipart_upload(client, bucket, key)
    upload_id = response["UploadId"]

    try:
        parts = []
        for part_number, chunk in enumerate(split_into_parts(data, part_size), 1):
            part = upload_part(client, bucket, key, upload_id, chunk, part_number)
            parts.append({"ETag": part["ETag"], "PartNumber": part_number})

        complete_multipart_upload(client, bucket, key, upload_id, parts)
    except Exception:
        try:
            abort_multipart_upload(client, bucket, key, upload_id)
        except Exception as abort_error:
            logger.error(f"Failed to abort multipart upload: {abort_error}")
        raise

    logger.debug(f"Uploaded {bucket}/{key} in {len(parts)} parts")
    return upload_id, parts
