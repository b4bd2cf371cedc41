"""Fixtures package for tests.

Re-export commonly used fixture factories and helpers for convenient imports
from `tests._fixtures` package.
"""

from .factories import (
    StatementRecordFactory,
    build_statement,
    build_statement_batch,
    set_factory_seed,
)
from .remote_api_responses import (
    FakeResponse,
    FakeSetSmartApi,
    canned_api_factory,
    delayed,
    make_price_row,
    make_statement,
    SAMPLE_PRICE_ROW,
    SAMPLE_STATEMENT,
)

__all__ = [
    "StatementRecordFactory",
    "build_statement",
    "build_statement_batch",
    "set_factory_seed",
    "FakeResponse",
    "FakeSetSmartApi",
    "canned_api_factory",
    "delayed",
    "make_price_row",
    "make_statement",
    "SAMPLE_PRICE_ROW",
    "SAMPLE_STATEMENT",
]
