"""
End-to-end SETSMART collection run: symbol universe, concurrent fetch,
diagnostics file and CSV export.
"""

import argparse
import sys
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from src.utils.core.logger import get_logger
from src.data_collector.config import CollectorConfig, config as default_config
from src.data_collector.setsmart.client import SetSmartClient
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.csv_exporter import export_to_csv
from src.data_collector.setsmart.data_models import QuarterRange
from src.data_collector.setsmart.error_sink import write_error_log
from src.data_collector.setsmart.errors import ConfigurationError, FetchError
from src.data_collector.setsmart.orchestrator import RunReport, SymbolOrchestrator
from src.data_collector.setsmart.rate_limiter import get_rate_limiter
from src.data_collector.setsmart.record_fetcher import RecordFetcher
from src.data_collector.setsmart.symbol_source import SymbolSource

logger = get_logger(__name__, utility="setsmart")


@dataclass
class CollectionResult:
    """Artifacts produced by one collection run"""

    report: RunReport
    csv_path: Optional[Path] = None
    error_log_path: Optional[Path] = None


def run_financial_collection(
    config: Optional[CollectorConfig] = None,
    now: Optional[datetime] = None,
    output_file: Optional[str] = None,
    client: Optional[SetSmartClient] = None,
) -> CollectionResult:
    """
    Collect quarterly statements with quarter-end prices for every listed symbol

    Args:
        config: Collector configuration (defaults to the global instance)
        now: Reference time for the quarter window and file timestamps
        output_file: CSV path; defaults to a timestamped file in OUTPUT_DIR
        client: Pre-built API client (its rate limiter is shared by the run)

    Returns:
        CollectionResult with the run report and written file paths

    Raises:
        ConfigurationError: If no API key is configured
        FetchError: If the symbol universe cannot be fetched
    """
    config = config or default_config
    now = now or datetime.now()

    owns_client = client is None
    if client is None:
        limiter = get_rate_limiter(
            interval=config.rate_limit_interval,
            burst=config.RATE_LIMIT_BURST,
            disabled=config.DISABLE_RATE_LIMITING,
        )
        client = SetSmartClient(rate_limiter=limiter, config=config)

    logger.info(f"Starting SETSMART collection (api key {config.masked_api_key}, limiter {client.rate_limiter})")

    try:
        root_ctx = FetchContext()
        symbols = SymbolSource(client).list_symbols(root_ctx, now.strftime("%Y-%m-%d"))

        quarter_range = QuarterRange.trailing(config.HISTORY_YEARS, now)
        logger.info(
            f"Collecting Q{quarter_range.start_quarter}/{quarter_range.start_year} to "
            f"Q{quarter_range.end_quarter}/{quarter_range.end_year} for {len(symbols)} symbols"
        )

        orchestrator = SymbolOrchestrator(
            fetcher=RecordFetcher(client, config),
            quarter_range=quarter_range,
            max_workers=config.MAX_WORKERS,
            enrich_max_workers=config.ENRICH_MAX_WORKERS,
            per_symbol_timeout=config.PER_SYMBOL_TIMEOUT,
        )
        report = orchestrator.run(symbols, parent_ctx=root_ctx)
    finally:
        if owns_client:
            client.close()

    result = CollectionResult(report=report)

    if report.error_entries:
        result.error_log_path = write_error_log(
            report.error_entries, Path(config.OUTPUT_DIR) / config.ERROR_LOG_FILE, now
        )

    if report.records:
        result.csv_path = export_to_csv(
            report.records,
            filename=output_file,
            localize=config.LOCALIZE_HEADERS,
            output_dir=config.OUTPUT_DIR,
        )
    else:
        logger.warning("No records collected; CSV export skipped")

    logger.info(
        f"Fetched {len(report.records)} records from {report.symbols_succeeded}/{report.symbols_total} symbols"
    )
    return result


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect SETSMART quarterly financials with quarter-end prices")
    parser.add_argument("--output", help="CSV file to write (default: timestamped file in OUTPUT_DIR)")
    parser.add_argument("--max-workers", type=int, help="Concurrent symbol tasks")
    parser.add_argument("--years", type=int, help="Years of quarterly history to request")
    parser.add_argument("--no-localize", action="store_true", help="Keep canonical (English) CSV headers")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    overrides = {}
    if args.max_workers is not None:
        overrides["MAX_WORKERS"] = args.max_workers
    if args.years is not None:
        overrides["HISTORY_YEARS"] = args.years
    if args.no_localize:
        overrides["LOCALIZE_HEADERS"] = False
    run_config = replace(default_config, **overrides)

    try:
        result = run_financial_collection(config=run_config, output_file=args.output)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except FetchError as e:
        logger.error(f"Unable to fetch symbol list: {e}")
        return 1

    logger.info(f"Collection finished: {result.report.summary()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
