"""
Concurrent per-symbol collection: statements, then prices, then collation.
"""

import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from src.utils.core.logger import get_logger
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.data_models import QuarterRange, StatementRecord
from src.data_collector.setsmart.error_sink import ErrorEntry, ErrorSink
from src.data_collector.setsmart.errors import FetchError, OrchestrationTimeout
from src.data_collector.setsmart.price_enricher import PriceEnricher
from src.data_collector.setsmart.record_fetcher import RecordFetcher
from src.data_collector.setsmart.result_collator import ResultCollator

logger = get_logger(__name__, utility="setsmart")


@dataclass
class RunReport:
    """Outcome of one run: ordered records plus the failures collected on the way"""

    records: List[StatementRecord] = field(default_factory=list)
    error_entries: List[ErrorEntry] = field(default_factory=list)
    symbols_total: int = 0
    symbols_succeeded: int = 0
    timed_out: bool = False
    elapsed_seconds: float = 0.0

    @property
    def errors(self) -> Dict[str, str]:
        """Failure key -> reason"""
        return dict(self.error_entries)

    def summary(self) -> Dict[str, object]:
        return {
            "records": len(self.records),
            "enriched": sum(1 for r in self.records if r.has_price),
            "symbols_total": self.symbols_total,
            "symbols_succeeded": self.symbols_succeeded,
            "errors": len(self.error_entries),
            "timed_out": self.timed_out,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }


class SymbolOrchestrator:
    """
    Fans out one task per symbol on a bounded thread pool.

    Each task fetches the symbol's statements, enriches them with prices and
    forwards the batch to the collator. Failures are recorded per symbol and
    never cancel sibling tasks; only the run deadline cancels work.
    """

    def __init__(
        self,
        fetcher: RecordFetcher,
        quarter_range: QuarterRange,
        max_workers: int = 20,
        enrich_max_workers: int = 5,
        per_symbol_timeout: float = 30.0,
    ):
        """
        Args:
            fetcher: Record fetcher shared by every task (and its rate limiter)
            quarter_range: Statement window requested for every symbol
            max_workers: Concurrent symbol tasks
            enrich_max_workers: Concurrent price fetches within one symbol's batch
            per_symbol_timeout: Run deadline budget per symbol, in seconds
        """
        self.fetcher = fetcher
        self.quarter_range = quarter_range
        self.max_workers = max(1, max_workers)
        self.enrich_max_workers = max(1, enrich_max_workers)
        self.per_symbol_timeout = per_symbol_timeout

    def _process_symbol(
        self,
        ctx: FetchContext,
        symbol: str,
        position: int,
        total: int,
        enricher: PriceEnricher,
        error_sink: ErrorSink,
        collator: ResultCollator,
    ) -> int:
        """Run the statements -> prices -> collate pipeline for one symbol"""
        logger.info(f"Fetching data for {symbol} ({position}/{total})")

        try:
            records = self.fetcher.fetch_statements(ctx, symbol, self.quarter_range)
        except FetchError as e:
            error_sink.record(symbol, f"financial data: {e.message}")
            return 0

        if not records:
            logger.info(f"No statements returned for {symbol}")
            return 0

        enricher.enrich(ctx, records, symbol=symbol)

        if ctx.cancelled:
            raise OrchestrationTimeout(f"{ctx.reason} before results were collected", symbol=symbol)

        collator.add(records)
        logger.info(f"Finished {symbol} ({position}/{total}): {len(records)} records")
        return len(records)

    def run(self, symbols: Sequence[str], parent_ctx: Optional[FetchContext] = None) -> RunReport:
        """
        Collect statements and prices for every symbol

        Args:
            symbols: Symbol universe of the run
            parent_ctx: Optional outer context; cancelling it cancels the run

        Returns:
            RunReport with sorted records and every recorded failure
        """
        started = time.monotonic()
        unique_symbols = list(dict.fromkeys(symbols))
        total = len(unique_symbols)
        if not unique_symbols:
            logger.warning("No symbols to process")
            return RunReport()

        run_ctx = FetchContext(timeout=self.per_symbol_timeout * total, parent=parent_ctx)
        error_sink = ErrorSink()
        collator = ResultCollator()
        enricher = PriceEnricher(self.fetcher, error_sink, max_workers=self.enrich_max_workers)

        logger.info(
            f"Starting collection of {total} symbols with {self.max_workers} workers "
            f"(deadline {run_ctx.remaining():.0f}s)"
        )

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="symbol")
        timed_out = False
        future_to_symbol = {}
        try:
            future_to_symbol = {
                executor.submit(
                    self._process_symbol, run_ctx, symbol, position, total, enricher, error_sink, collator
                ): symbol
                for position, symbol in enumerate(unique_symbols, start=1)
            }

            _, not_done = wait(future_to_symbol, timeout=run_ctx.remaining())
            if not_done:
                timed_out = True
                logger.warning(f"Run deadline exceeded with {len(not_done)} symbols unfinished; cancelling")
                run_ctx.cancel("run deadline exceeded")
                for future in not_done:
                    if future.cancel():
                        error_sink.record(
                            future_to_symbol[future],
                            f"{OrchestrationTimeout.__name__}: run deadline exceeded before the task started",
                        )
        finally:
            # Running tasks stop at their next limiter wait or request timeout
            executor.shutdown(wait=True, cancel_futures=True)

        deadline_exceeded = run_ctx.deadline_exceeded
        run_ctx.cancel("run finished")

        succeeded = 0
        for future, symbol in future_to_symbol.items():
            if future.cancelled():
                continue
            try:
                if future.result() > 0:
                    succeeded += 1
            except OrchestrationTimeout as e:
                error_sink.record(symbol, f"{type(e).__name__}: {e.message}")
            except Exception as e:
                logger.exception(f"Unexpected error processing {symbol}")
                error_sink.record(symbol, f"unexpected error: {e}")

        report = RunReport(
            records=collator.collect(),
            error_entries=error_sink.drain(),
            symbols_total=total,
            symbols_succeeded=succeeded,
            timed_out=timed_out or deadline_exceeded,
            elapsed_seconds=time.monotonic() - started,
        )
        logger.info(f"Collection complete: {report.summary()}")
        return report
