# Core utilities package
# Contains foundational infrastructure utilities for the application

__all__ = [
    "get_logger",
    "init_logging_structure",
    "shutdown_logging",
    "RetryConfig",
    "call_with_retry",
    "API_RETRY_CONFIG",
]

from .logger import get_logger, init_logging_structure, shutdown_logging
from .retry import RetryConfig, call_with_retry, API_RETRY_CONFIG
