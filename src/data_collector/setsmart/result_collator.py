"""
Collation and deterministic ordering of statement records
"""

import threading
from typing import List, Sequence, Tuple

from src.data_collector.setsmart.data_models import StatementRecord, parse_int


def sort_key(record: StatementRecord) -> Tuple[str, int, int]:
    """Symbol ascending, then year and quarter descending (unparsable -> 0)"""
    return (record.symbol, -parse_int(record.year), -parse_int(record.quarter))


def sort_records(records: Sequence[StatementRecord]) -> List[StatementRecord]:
    return sorted(records, key=sort_key)


class ResultCollator:
    """Accepts batches in any order from worker threads; sorts once on collect"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[StatementRecord] = []
        self.batches = 0

    def add(self, batch: Sequence[StatementRecord]) -> None:
        with self._lock:
            self._records.extend(batch)
            self.batches += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def collect(self) -> List[StatementRecord]:
        with self._lock:
            records = list(self._records)
        return sort_records(records)
