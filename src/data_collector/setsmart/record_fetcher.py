"""
Statement and price fetching for a single symbol
"""

from typing import Any, List, Optional

from pydantic import ValidationError

from src.utils.core.logger import get_logger
from src.data_collector.config import CollectorConfig, config as default_config
from src.data_collector.setsmart.client import SetSmartClient
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.data_models import PriceSnapshot, QuarterRange, StatementRecord
from src.data_collector.setsmart.errors import DecodeError, FetchError

logger = get_logger(__name__, utility="setsmart")

STAGE_STATEMENTS = "statements"
STAGE_PRICE = "price"


class RecordFetcher:
    """
    Performs one logical fetch: a statement batch for a symbol, or the price
    snapshot for one statement period. Every failure surfaces as a FetchError
    tagged with the symbol and stage.
    """

    def __init__(self, client: SetSmartClient, config: Optional[CollectorConfig] = None):
        self.client = client
        self.config = config or client.config or default_config

    def fetch_statements(
        self, ctx: FetchContext, symbol: str, quarter_range: QuarterRange
    ) -> List[StatementRecord]:
        """
        Fetch all quarterly statements of a symbol within the range

        Args:
            ctx: Cancellation scope of the symbol's task
            symbol: Listed company symbol
            quarter_range: Inclusive (year, quarter) window

        Returns:
            Statement records in API order

        Raises:
            FetchError: On transport, status, decode or cancellation failure
        """
        params = {"symbol": symbol, **quarter_range.as_params()}
        try:
            payload = self.client.get_json(ctx, self.config.STATEMENTS_ENDPOINT, params)
            records = self._parse_statements(payload)
        except FetchError as e:
            e.with_context(symbol, STAGE_STATEMENTS)
            raise

        logger.debug(f"Fetched {len(records)} statements for {symbol}")
        return records

    def fetch_price(self, ctx: FetchContext, symbol: str, as_of_date: str) -> Optional[PriceSnapshot]:
        """
        Fetch the adjusted end-of-day price row starting at `as_of_date`

        Returns:
            The first returned price row, or None when the API returned no rows

        Raises:
            FetchError: On transport, status, decode or cancellation failure
        """
        params = {"symbol": symbol, "startDate": as_of_date, "adjustedPriceFlag": "Y"}
        try:
            payload = self.client.get_json(ctx, self.config.PRICE_ENDPOINT, params)
            rows = self._parse_price_rows(payload)
        except FetchError as e:
            e.with_context(symbol, STAGE_PRICE)
            raise

        if not rows:
            logger.debug(f"No price rows for {symbol} on {as_of_date}")
            return None
        return rows[0]

    @staticmethod
    def _parse_statements(payload: Any) -> List[StatementRecord]:
        if not isinstance(payload, list):
            raise DecodeError(f"expected a JSON array of statements, got {type(payload).__name__}")
        try:
            return [StatementRecord.model_validate(item) for item in payload]
        except ValidationError as e:
            raise DecodeError(f"statement payload does not match schema: {e.error_count()} errors", cause=e) from e

    @staticmethod
    def _parse_price_rows(payload: Any) -> List[PriceSnapshot]:
        if not isinstance(payload, list):
            raise DecodeError(f"expected a JSON array of prices, got {type(payload).__name__}")
        rows = [row for row in payload if isinstance(row, dict)]
        if len(rows) != len(payload):
            raise DecodeError("price payload contains non-object rows")
        return rows
