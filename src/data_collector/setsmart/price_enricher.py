"""
Attach end-of-quarter price snapshots to a symbol's statement batch
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from src.utils.core.logger import get_logger
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.data_models import StatementRecord
from src.data_collector.setsmart.error_sink import ErrorSink
from src.data_collector.setsmart.errors import FetchError
from src.data_collector.setsmart.record_fetcher import RecordFetcher

logger = get_logger(__name__, utility="setsmart")

PRICE_ERROR_SUFFIX = "-price"


class PriceEnricher:
    """
    Fetches one price snapshot per statement record, bounded-parallel.

    A failed price fetch leaves only that record without a snapshot; the
    batch is always returned whole.
    """

    def __init__(self, fetcher: RecordFetcher, error_sink: ErrorSink, max_workers: int = 5):
        self.fetcher = fetcher
        self.error_sink = error_sink
        self.max_workers = max(1, max_workers)

    def _enrich_one(self, ctx: FetchContext, symbol: str, record: StatementRecord) -> None:
        snapshot = self.fetcher.fetch_price(ctx, symbol, record.quarter_end_date)
        if snapshot is not None:
            record.attach_price(snapshot)

    def enrich(
        self, ctx: FetchContext, batch: Sequence[StatementRecord], symbol: Optional[str] = None
    ) -> List[StatementRecord]:
        """
        Enrich every record of the batch with its quarter-end price

        Args:
            ctx: Context of the symbol's task; a sub-context scoped to this
                batch is derived from it and cancelled when the batch ends
            batch: Statement records of one symbol
            symbol: Symbol the batch was fetched for; keys the batch's price
                error entry (defaults to the first record's symbol)

        Returns:
            The same records, in the same order
        """
        records = list(batch)
        if not records:
            return records

        symbol = symbol or records[0].symbol
        sub_ctx = ctx.child()
        failures: List[str] = []
        skipped = 0
        try:
            with ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(records)),
                thread_name_prefix="price",
            ) as executor:
                future_to_record = {
                    executor.submit(self._enrich_one, sub_ctx, symbol, record): record for record in records
                }
                for future in as_completed(future_to_record):
                    record = future_to_record[future]
                    try:
                        future.result()
                    except FetchError as e:
                        # Cut short by the caller's cancellation; the caller reports it
                        if ctx.cancelled:
                            skipped += 1
                        else:
                            failures.append(f"Q{record.quarter}/{record.year}: {e.message}")
                    except Exception as e:
                        logger.exception(f"Unexpected error enriching {symbol} Q{record.quarter}/{record.year}")
                        failures.append(f"Q{record.quarter}/{record.year}: {e}")
        finally:
            sub_ctx.cancel("price batch finished")

        if failures:
            self.error_sink.record(f"{symbol}{PRICE_ERROR_SUFFIX}", "price data: " + "; ".join(failures))

        enriched = sum(1 for r in records if r.has_price)
        if skipped:
            logger.debug(f"Skipped {skipped} price fetches for {symbol} after cancellation")
        logger.debug(f"Enriched {enriched}/{len(records)} records for {symbol}")
        return records
