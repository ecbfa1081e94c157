"""ListObjects helpers for prefix, delimiter, marker and max-keys cases."""

import logging
from typing import Any, Dict, Iterator, List, Tuple

logger = logging.getLogger(__name__)

ListResult = Tuple[Dict[str, Any], List[str], List[str]]


def get_keys(response: Dict[str, Any]) -> List[str]:
    """Keys from a ListObjects response, in the order the service sent them."""
    return [entry["Key"] for entry in response.get("Contents", [])]


def get_prefixes(response: Dict[str, Any]) -> List[str]:
    """CommonPrefixes from a ListObjects response."""
    return [entry["Prefix"] for entry in response.get("CommonPrefixes", [])]


def _list(client: Any, bucket: str, **kwargs: Any) -> ListResult:
    response = client.list_objects(Bucket=bucket, **kwargs)
    keys, prefixes = get_keys(response), get_prefixes(response)
    logger.debug(
        f"ListObjects {bucket} {kwargs}: {len(keys)} keys, {len(prefixes)} prefixes"
    )
    return response, keys, prefixes


def list_objects_with_prefix(client: Any, bucket: str, prefix: str) -> ListResult:
    """List ``bucket`` under ``prefix``; returns ``(response, keys, prefixes)``."""
    return _list(client, bucket, Prefix=prefix)


def list_objects_with_delimiter(
    client: Any, bucket: str, delimiter: str
) -> ListResult:
    return _list(client, bucket, Delimiter=delimiter)


def list_objects_with_delimiter_and_prefix(
    client: Any, bucket: str, prefix: str, delimiter: str
) -> ListResult:
    return _list(client, bucket, Prefix=prefix, Delimiter=delimiter)


def get_keys_with_max_keys(
    client: Any, bucket: str, max_keys: int
) -> Tuple[Dict[str, Any], List[str]]:
    response, keys, _ = _list(client, bucket, MaxKeys=max_keys)
    return response, keys


def get_keys_with_marker(
    client: Any, bucket: str, marker: str
) -> Tuple[Dict[str, Any], List[str]]:
    response, keys, _ = _list(client, bucket, Marker=marker)
    return response, keys


def list_objects_v2_pages(
    client: Any, bucket: str, page_size: int, prefix: str = ""
) -> Iterator[Dict[str, Any]]:
    """Yield ListObjectsV2 pages by following ``NextContinuationToken``.

    The token is followed by hand rather than through a paginator so that
    every raw page, including its ``IsTruncated`` flag, reaches the caller.
    """
    kwargs: Dict[str, Any] = {"Bucket": bucket, "MaxKeys": page_size}
    if prefix:
        kwargs["Prefix"] = prefix

    while True:
        page = client.list_objects_v2(**kwargs)
        yield page

        if not page.get("IsTruncated"):
            return

        token = page.get("NextContinuationToken")
        if not token:
            logger.warning(f"Truncated ListObjectsV2 page for {bucket} has no token")
            return
        kwargs["ContinuationToken"] = token
