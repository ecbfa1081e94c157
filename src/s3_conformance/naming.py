"""Unique bucket names scoped to one test run."""

import itertools
import logging
import random
import string
import threading
from typing import Optional

from .config import ConformanceConfig, get_config
from .validation import validate_bucket_name

logger = logging.getLogger(__name__)

MAX_PREFIX_LENGTH = 30
RANDOM_ALPHABET = string.ascii_lowercase + string.digits

_prefix_lock = threading.Lock()
_prefixes: dict = {}
_counter = itertools.count(1)


def choose_bucket_prefix(template: str, max_len: int = MAX_PREFIX_LENGTH) -> str:
    """Expand ``{random}`` in ``template`` so the result fits in ``max_len``.

    The random part fills whatever room the fixed text leaves, so a run's
    buckets never collide with another run using the same template. At most
    one ``{random}`` placeholder is allowed.
    """
    if template.count("{random}") > 1:
        raise ValueError("Bucket prefix template may contain {random} only once")

    fixed = template.replace("{random}", "")
    if len(fixed) > max_len:
        raise ValueError(f"Bucket prefix template is longer than {max_len} chars")

    if "{random}" not in template:
        return template.lower()

    room = max_len - len(fixed)
    rand = "".join(random.choice(RANDOM_ALPHABET) for _ in range(room))
    return template.replace("{random}", rand).lower()


def get_prefix(config: Optional[ConformanceConfig] = None) -> str:
    """Return this process's bucket prefix for ``config``'s template."""
    template = (config or get_config()).bucket_prefix

    with _prefix_lock:
        if template not in _prefixes:
            _prefixes[template] = choose_bucket_prefix(template)
            logger.info(f"Using bucket prefix {_prefixes[template]}")
        return _prefixes[template]


def get_bucket_name(config: Optional[ConformanceConfig] = None) -> str:
    """Return a new bucket name under the run prefix."""
    name = f"{get_prefix(config)}{next(_counter)}"
    validate_bucket_name(name)
    return name
