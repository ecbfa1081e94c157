"""Inject raw HTTP headers and query parameters into boto3 S3 calls.

boto3 does not expose arbitrary headers as call parameters, so header
validation cases hook into the client's event system instead. Handlers are
registered for one operation and removed again when the ``with`` block
exits, since pooled clients are shared between tests.

``before-call`` handlers run before the request is signed, which means the
signer overwrites an injected ``Authorization`` header. ``before-sign``
handlers run on the serialized request, so injected headers take part in the
signature.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping

logger = logging.getLogger(__name__)


def _apply_headers(headers: Any, overrides: Mapping[str, str]) -> None:
    for name, value in overrides.items():
        # Header names are case-insensitive, and assigning to a signed
        # request's headers appends rather than replaces.
        existing = [h for h in list(headers.keys()) if h.lower() == name.lower()]
        for header in existing:
            if header in headers:
                del headers[header]
        if value != "":
            headers[name] = value


def make_header_handler(overrides: Mapping[str, str], event: str = "before-call"):
    """Build the botocore handler that applies ``overrides``.

    An empty string value removes the header rather than sending it empty.
    """
    overrides = dict(overrides)

    if event == "before-sign":

        def _before_sign(request: Any, **kwargs: Any) -> None:
            _apply_headers(request.headers, overrides)

        return _before_sign

    def _before_call(params: Dict[str, Any], **kwargs: Any) -> None:
        _apply_headers(params["headers"], overrides)

    return _before_call


@contextmanager
def inject_headers(
    client: Any,
    operation: str,
    headers: Mapping[str, str],
    event: str = "before-call",
) -> Iterator[None]:
    """Apply ``headers`` to every ``operation`` call made inside the block."""
    event_name = f"{event}.s3.{operation}"
    handler = make_header_handler(headers, event)

    client.meta.events.register(event_name, handler)
    logger.debug(f"Injecting headers {sorted(headers)} on {event_name}")
    try:
        yield
    finally:
        client.meta.events.unregister(event_name, handler)


@contextmanager
def add_query_params(
    client: Any, operation: str, params: Mapping[str, str]
) -> Iterator[None]:
    """Append raw query parameters to the URL of ``operation`` calls."""
    event_name = f"before-call.s3.{operation}"
    query = "&".join(f"{name}={value}" for name, value in params.items())

    def _add_params(params: Dict[str, Any], **kwargs: Any) -> None:
        separator = "&" if "?" in params["url"] else "?"
        params["url"] += f"{separator}{query}"

    client.meta.events.register(event_name, _add_params)
    try:
        yield
    finally:
        client.meta.events.unregister(event_name, _add_params)
