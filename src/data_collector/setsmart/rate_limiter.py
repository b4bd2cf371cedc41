"""
Rate limiting functionality for SETSMART API requests
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from src.utils.core.logger import get_logger
from src.data_collector.config import config
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.errors import RateLimitCancelled

logger = get_logger(__name__, utility="setsmart")


@dataclass
class RateLimiter:
    """
    Token bucket rate limiter shared by every request of a run

    Attributes:
        interval: Seconds between token refills (one token per interval)
        burst: Bucket capacity
        tokens: Tokens currently available
        last_refill: Monotonic timestamp of the last refill
    """

    interval: float = 0.05
    burst: int = 10
    tokens: float = field(init=False)
    last_refill: float = field(init=False)

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.burst < 1:
            raise ValueError("burst must be at least 1")
        self.tokens = float(self.burst)
        self.last_refill = time.monotonic()
        self._lock = threading.Lock()
        self.acquired = 0

    def _refill(self, now: float) -> None:
        elapsed = now - self.last_refill
        if elapsed > 0:
            self.tokens = min(float(self.burst), self.tokens + elapsed / self.interval)
            self.last_refill = now

    def acquire(self, ctx: FetchContext) -> None:
        """
        Block until a token is available

        Raises:
            RateLimitCancelled: If the context is cancelled or past its deadline
                before a token could be taken
        """
        while True:
            if ctx.cancelled:
                raise RateLimitCancelled(f"rate limit wait aborted: {ctx.reason}")

            with self._lock:
                self._refill(time.monotonic())
                if self.tokens >= 1:
                    self.tokens -= 1
                    self.acquired += 1
                    return
                sleep_time = (1 - self.tokens) * self.interval

            logger.debug(f"Rate limit reached. Waiting {sleep_time:.3f} seconds for a token")
            ctx.wait(sleep_time)

    def get_available_tokens(self) -> float:
        """Get number of tokens currently in the bucket"""
        with self._lock:
            self._refill(time.monotonic())
            return self.tokens

    def reset(self) -> None:
        """Refill the bucket to capacity"""
        with self._lock:
            self.tokens = float(self.burst)
            self.last_refill = time.monotonic()
        logger.info("Rate limiter manually reset")

    def __str__(self) -> str:
        return (
            f"RateLimiter(rate: {1 / self.interval:.1f}/s, burst: {self.burst}, "
            f"available: {self.get_available_tokens():.1f}, acquired: {self.acquired})"
        )


class NoOpRateLimiter(RateLimiter):
    """
    No-op limiter that never waits. Used when rate limiting is disabled.
    Cancellation is still honoured so a cancelled run stops issuing requests.
    """

    def __init__(self):
        super().__init__(interval=1.0, burst=1)

    def acquire(self, ctx: FetchContext) -> None:
        if ctx.cancelled:
            raise RateLimitCancelled(f"rate limit wait aborted: {ctx.reason}")
        with self._lock:
            self.acquired += 1

    def get_available_tokens(self) -> float:
        return float("inf")


def get_rate_limiter(
    interval: Optional[float] = None, burst: Optional[int] = None, disabled: Optional[bool] = None
) -> RateLimiter:
    """
    Factory to return the appropriate rate limiter depending on configuration.
    """
    if disabled is None:
        disabled = config.DISABLE_RATE_LIMITING
    if disabled:
        return NoOpRateLimiter()
    return RateLimiter(
        interval=interval if interval is not None else config.rate_limit_interval,
        burst=burst if burst is not None else config.RATE_LIMIT_BURST,
    )
