"""
Thread-safe accumulation of per-symbol failures and the diagnostics file
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from src.utils.core.logger import get_logger

logger = get_logger(__name__, utility="setsmart")

ErrorEntry = Tuple[str, str]


class ErrorSink:
    """
    Collects (key, reason) pairs from any number of worker threads.

    Keys are `symbol` for statement failures and `symbol-price` for price
    failures; call sites record at most one failure per symbol per stage.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[ErrorEntry] = []
        self._drained = False

    def record(self, key: str, reason: str) -> None:
        with self._lock:
            if self._drained:
                raise RuntimeError(f"error sink already drained; cannot record {key}")
            self._entries.append((key, reason))
        logger.warning(f"{key}: {reason}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def drain(self) -> List[ErrorEntry]:
        """Return every recorded entry in arrival order. May be called once."""
        with self._lock:
            if self._drained:
                raise RuntimeError("error sink already drained")
            self._drained = True
            entries, self._entries = self._entries, []
        return entries


def write_error_log(
    entries: Sequence[ErrorEntry],
    path: Union[str, Path],
    now: Optional[datetime] = None,
) -> Path:
    """
    Write the run's failures as a timestamped diagnostics file

    Returns:
        Path of the written file
    """
    path = Path(path)
    now = now or datetime.now()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(f"--- Fetch errors on {now.strftime('%Y-%m-%d %H:%M:%S')} ---\n")
        for key, reason in entries:
            fh.write(f"{key}: {reason}\n")

    logger.info(f"Found {len(entries)} errors, written to {path}")
    return path
