"""Retry support for suite housekeeping (teardown and cleanup calls)."""

import logging
import random
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type

from .exceptions import S3ConnectionError, S3ThrottleError, map_boto3_error

logger = logging.getLogger(__name__)


@dataclass
class RetryContext:
    """Context information for retry operations."""

    operation: str
    attempt: int
    total_attempts: int
    last_error: Optional[Exception]
    start_time: float
    delay: float

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time


class RetryConfig:
    """Retry configuration for cleanup operations.

    Conformance requests themselves are never retried; only the helpers that
    tidy up after a test use this.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_errors: Optional[Tuple[Type[Exception], ...]] = None,
        max_total_time: Optional[float] = None,
        backoff_strategy: str = "exponential",
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts before giving up
            base_delay: Base delay in seconds for retry calculations
            max_delay: Maximum delay in seconds between retries
            exponential_base: Base for exponential backoff calculation
            jitter: Whether to scale each delay by a random factor in [0.5, 1.0)
            retryable_errors: Exception types that should trigger retries
            max_total_time: Maximum total time in seconds for all attempts.
                When None, only max_attempts limits retries.
            backoff_strategy: One of "exponential", "linear" or "fixed". All
                strategies respect max_delay as an upper bound.
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.max_total_time = max_total_time
        self.backoff_strategy = backoff_strategy

        self.retryable_errors = retryable_errors or (
            S3ConnectionError,
            S3ThrottleError,
        )

    def calculate_delay(self, attempt: int, context: RetryContext) -> float:
        """Calculate delay before the next attempt (0-based ``attempt``)."""
        if self.backoff_strategy == "exponential":
            delay = self.base_delay * (self.exponential_base**attempt)
        elif self.backoff_strategy == "linear":
            delay = self.base_delay * (attempt + 1)
        else:  # fixed
            delay = self.base_delay

        delay = min(delay, self.max_delay)

        if self.jitter:
            delay *= 0.5 + random.random() * 0.5

        if self.max_total_time:
            remaining_time = self.max_total_time - context.elapsed_time
            delay = min(delay, remaining_time)

        return max(0, delay)

    def should_retry(self, error: Exception, context: RetryContext) -> bool:
        """Determine if error should trigger another attempt."""
        if context.attempt >= self.max_attempts:
            return False

        if self.max_total_time and context.elapsed_time >= self.max_total_time:
            return False

        return isinstance(error, self.retryable_errors)


def with_retry(config: Optional[RetryConfig] = None) -> Callable:
    """Retry decorator that maps SDK errors before deciding to retry."""
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            context = RetryContext(
                operation=func.__name__,
                attempt=0,
                total_attempts=config.max_attempts,
                last_error=None,
                start_time=time.time(),
                delay=0,
            )

            while context.attempt < config.max_attempts:
                try:
                    logger.debug(
                        f"Executing {context.operation} (attempt {context.attempt + 1}/"
                        f"{context.total_attempts})"
                    )

                    result = func(*args, **kwargs)

                    if context.attempt > 0:
                        logger.info(
                            f"Operation {context.operation} succeeded after "
                            f"{context.attempt + 1} attempts"
                        )

                    return result

                except Exception as e:
                    context.last_error = e
                    context.attempt += 1

                    mapped_error = map_boto3_error(e, context.operation)

                    if not config.should_retry(mapped_error, context):
                        logger.error(
                            f"Operation {context.operation} failed permanently: "
                            f"{mapped_error}"
                        )
                        raise mapped_error

                    context.delay = config.calculate_delay(context.attempt - 1, context)

                    if context.delay <= 0:
                        logger.error(f"Retry timeout exceeded for {context.operation}")
                        break

                    logger.warning(
                        f"Attempt {context.attempt} failed for {context.operation}: "
                        f"{mapped_error}. Retrying in {context.delay:.2f}s"
                    )

                    time.sleep(context.delay)

            final_error = map_boto3_error(
                context.last_error or Exception("Unknown error"), context.operation
            )
            logger.error(
                f"Max retry attempts ({config.max_attempts}) exceeded for "
                f"{context.operation}: {final_error}"
            )
            raise final_error

        return wrapper

    return decorator
