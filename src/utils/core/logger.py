"""
Centralized Logging System for the SETSMART financial collector
This module provides a unified logging configuration that can be imported
and used across all modules in the project.
"""

import logging
import atexit
import sys
import os
from pathlib import Path
from typing import Optional, Dict
from datetime import datetime

from loguru import logger as _loguru_logger

# Run identifier for this process: combines process id and import-time timestamp.
# Each process run produces at most one log file per utility.
RUN_ID = f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{os.getpid()}"

# Base logs directory - central logs folder at project root
LOGS_BASE_DIR = Path(os.getenv("LOGS_DIR", Path(__file__).parent.parent.parent.parent / "logs"))

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message} | {function}:{line}"

UTILITIES = ["setsmart", "data_collector", "general"]


class InterceptHandler(logging.Handler):
    """Intercepts stdlib logging (urllib3, requests) and routes it to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _loguru_logger.level(record.levelname).name
        except (ValueError, AttributeError):
            level = record.levelno

        # Find caller from where logging was called
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _file_logging_enabled() -> bool:
    return os.getenv("LOG_TO_FILE", "false").strip().lower() in {"1", "true", "yes"}


def _ensure_utility_dir(utility: str) -> Path:
    path = LOGS_BASE_DIR / utility
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_logger(name: str, utility: Optional[str] = None):
    """Return a Loguru logger bound to the module name and utility.

    The returned object exposes `.info`, `.warning`, `.error`, `.debug`, and
    other Loguru methods via the bound logger.
    """
    if utility is None:
        lower_name = name.lower()
        if "setsmart" in lower_name:
            utility = "setsmart"
        elif "data_collector" in lower_name:
            utility = "data_collector"
        else:
            utility = "general"

    _initialize_sinks_once()

    if _file_logging_enabled():
        _ensure_file_sink_for_utility(utility, _ensure_utility_dir(utility))

    return _loguru_logger.bind(name=name, utility=utility)


def init_logging_structure():
    """Initialize the logging directory structure"""
    for u in UTILITIES:
        _ensure_utility_dir(u)


def _initialize_sinks_once() -> None:
    """Initialize console sink and stdlib intercept once per process."""
    global _sinks_initialized, _console_sink_id
    if _sinks_initialized:
        return

    _loguru_logger.remove()

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    _console_sink_id = _loguru_logger.add(sys.stdout, level=level, enqueue=True, format=LOG_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=0)

    _sinks_initialized = True


def _ensure_file_sink_for_utility(utility: str, util_dir: Path) -> None:
    """Add a file sink for the given utility if not already added for this process run."""
    if utility in _file_sink_ids:
        return
    log_file = util_dir / f"{utility}_{RUN_ID}.log"

    sink_id = _loguru_logger.add(
        str(log_file),
        level="INFO",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
        enqueue=True,
        format=LOG_FORMAT,
    )

    _file_sink_ids[utility] = sink_id


def shutdown_logging() -> None:
    """Remove all Loguru sinks to flush queued messages. Safe to call multiple times."""
    global _sinks_initialized, _console_sink_id
    for sid in list(_file_sink_ids.values()):
        try:
            _loguru_logger.remove(sid)
        except ValueError as e:
            sys.stderr.write(f"Error removing file sink id={sid}: {e}\n")
    _file_sink_ids.clear()

    try:
        if _console_sink_id is not None:
            _loguru_logger.remove(_console_sink_id)
    except ValueError as e:
        sys.stderr.write(f"Error removing console sink id={_console_sink_id}: {e}\n")
    finally:
        _console_sink_id = None

    _sinks_initialized = False


_sinks_initialized = False
_console_sink_id: Optional[int] = None
_file_sink_ids: Dict[str, int] = {}

# Flush sinks on graceful exit
atexit.register(shutdown_logging)
