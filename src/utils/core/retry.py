"""
Retry policy with exponential backoff for API clients.

The backoff wait is delegated to the caller so that a sleeping retry can be
interrupted by a cancelled fetch context instead of blocking a worker thread.
"""

import random
from dataclasses import dataclass
from typing import Callable, Optional, Type, TypeVar

from src.utils.core.logger import get_logger

logger = get_logger(__name__, utility="general")

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0  # Base delay in seconds
    max_delay: float = 60.0  # Maximum delay in seconds
    backoff_factor: float = 2.0  # Exponential backoff multiplier
    jitter: bool = True  # Add random jitter to prevent thundering herd
    retryable_exceptions: tuple[Type[Exception], ...] = (
        ConnectionError,
        TimeoutError,
    )
    non_retryable_exceptions: tuple[Type[Exception], ...] = ()


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay for exponential backoff with optional jitter."""
    delay = min(config.base_delay * (config.backoff_factor**attempt), config.max_delay)

    if config.jitter:
        # +/-25% of delay
        jitter_range = delay * 0.25
        delay += random.uniform(-jitter_range, jitter_range)

    return max(0, delay)


def is_retryable_exception(exception: Exception, config: RetryConfig) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exception, config.non_retryable_exceptions):
        return False

    if isinstance(exception, config.retryable_exceptions):
        return True

    # Exceptions that classify themselves (StatusError for 429/5xx)
    is_retryable = getattr(exception, "is_retryable", None)
    if callable(is_retryable):
        return bool(is_retryable())

    return False


def call_with_retry(
    func: Callable[[], T],
    config: RetryConfig,
    wait: Optional[Callable[[float], bool]] = None,
    description: str = "operation",
) -> T:
    """
    Call `func` until it succeeds, raises a non-retryable exception, or the
    attempts are exhausted.

    Args:
        func: Zero-argument callable performing one attempt
        config: Retry configuration
        wait: Backoff sleep; receives the delay and returns True when the
            caller was cancelled during the wait (no further attempts are made)
        description: Label used in log messages

    Returns:
        The value returned by the first successful attempt

    Raises:
        The last exception when it is not retryable, when the wait was
        cancelled, or when it was raised by the final attempt.
    """
    for attempt in range(config.max_attempts):
        try:
            return func()
        except Exception as e:
            if not is_retryable_exception(e, config):
                logger.debug(f"Non-retryable exception in {description}: {type(e).__name__}: {e}")
                raise

            if attempt >= config.max_attempts - 1:
                logger.error(
                    f"All {config.max_attempts} attempts failed for {description}. "
                    f"Last error: {type(e).__name__}: {e}"
                )
                raise

            delay = calculate_delay(attempt, config)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_attempts} of {description} failed "
                f"({type(e).__name__}). Retrying in {delay:.2f}s: {e}"
            )
            if wait is not None and wait(delay):
                raise

    raise ValueError(f"max_attempts must be >= 1 for {description}")


# API retry configuration - handles network errors, rate limits and server errors
API_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    max_delay=30.0,
    backoff_factor=2.0,
    retryable_exceptions=(ConnectionError, TimeoutError),
    non_retryable_exceptions=(),
)
