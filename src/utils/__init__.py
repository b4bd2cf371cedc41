# Shared utilities package

# Core utilities
from .core.logger import get_logger, init_logging_structure, shutdown_logging
from .core.retry import RetryConfig, call_with_retry, calculate_delay, is_retryable_exception, API_RETRY_CONFIG

__all__ = [
    "get_logger",
    "init_logging_structure",
    "shutdown_logging",
    "RetryConfig",
    "call_with_retry",
    "calculate_delay",
    "is_retryable_exception",
    "API_RETRY_CONFIG",
]
