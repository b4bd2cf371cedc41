"""
SETSMART Financial Data Collection Module

This module fetches quarterly financial statements for every listed symbol,
enriches each statement with its quarter-end price and exports the merged
table, with a shared rate limiter and per-symbol failure isolation.
"""

from .client import SetSmartClient
from .context import FetchContext
from .data_models import StatementRecord, QuarterRange
from .error_sink import ErrorSink
from .orchestrator import RunReport, SymbolOrchestrator
from .price_enricher import PriceEnricher
from .rate_limiter import RateLimiter
from .record_fetcher import RecordFetcher
from .result_collator import ResultCollator
from .symbol_source import SymbolSource

__version__ = "1.0.0"

__all__ = [
    "SetSmartClient",
    "FetchContext",
    "StatementRecord",
    "QuarterRange",
    "ErrorSink",
    "RunReport",
    "SymbolOrchestrator",
    "PriceEnricher",
    "RateLimiter",
    "RecordFetcher",
    "ResultCollator",
    "SymbolSource",
]
