"""
Error taxonomy for SETSMART fetches.

Every external call either returns its payload or raises a FetchError
subclass. The orchestrator turns these into ErrorSink entries; none of them
ends the run.
"""

from typing import Optional


class FetchError(Exception):
    """Base error for one failed fetch, carrying enough context for the error log"""

    def __init__(
        self,
        message: str,
        symbol: Optional[str] = None,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.message: str = message
        self.symbol: Optional[str] = symbol
        self.stage: Optional[str] = stage
        self.cause: Optional[BaseException] = cause
        super().__init__(message)

    def is_retryable(self) -> bool:
        return False

    def with_context(self, symbol: Optional[str], stage: Optional[str]) -> "FetchError":
        """Fill in symbol/stage when the error was raised below the fetcher"""
        if self.symbol is None:
            self.symbol = symbol
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(self.stage)
        if self.symbol:
            parts.append(self.symbol)
        prefix = f"[{' '.join(parts)}] " if parts else ""
        return f"{prefix}{self.message}"


class TransportError(FetchError):
    """Connection failure or request timeout"""

    def is_retryable(self) -> bool:
        return True


class StatusError(FetchError):
    """Non-200 response status"""

    RETRYABLE_HTTP_ERRORS = (429, 500, 502, 503, 504)

    def __init__(self, message: str, status_code: int, **kwargs) -> None:
        self.status_code: int = status_code
        super().__init__(message, **kwargs)

    def is_retryable(self) -> bool:
        return self.status_code in self.RETRYABLE_HTTP_ERRORS


class DecodeError(FetchError):
    """Malformed JSON body or a payload that does not match the expected shape"""


class RateLimitCancelled(FetchError):
    """The context was cancelled while waiting for a rate limiter token"""


class OrchestrationTimeout(FetchError):
    """The run-level deadline passed before the symbol's task completed"""


class ConfigurationError(Exception):
    """Required configuration (API key) is missing"""
