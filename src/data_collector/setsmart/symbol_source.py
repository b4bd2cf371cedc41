"""
Symbol universe discovery for a collection run
"""

from typing import Any, List, Optional

from src.utils.core.logger import get_logger
from src.data_collector.setsmart.client import SetSmartClient
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.errors import DecodeError, FetchError

logger = get_logger(__name__, utility="setsmart")

# Wrapper fields that may hold the symbol array in an object response
CANDIDATE_LIST_FIELDS = ("data", "results", "symbols", "items", "securities")


def extract_symbols(payload: Any) -> List[str]:
    """
    Locate the symbol list inside a response of unknown top-level shape

    Strategy:
        1. array of objects carrying a `symbol` field (plain strings accepted)
        2. object whose first candidate wrapper field holds such an array
        3. object whose keys are the symbols

    Returns:
        Symbols in response order, blanks dropped, duplicates removed

    Raises:
        DecodeError: If the payload matches none of the shapes
    """
    if isinstance(payload, list):
        raw = _symbols_from_array(payload)
    elif isinstance(payload, dict):
        raw = None
        for name in CANDIDATE_LIST_FIELDS:
            if isinstance(payload.get(name), list):
                raw = _symbols_from_array(payload[name])
                break
        if raw is None:
            raw = list(payload.keys())
    else:
        raise DecodeError(f"unexpected symbol list payload type {type(payload).__name__}")

    symbols: List[str] = []
    seen = set()
    for symbol in raw:
        symbol = str(symbol).strip()
        if symbol and symbol not in seen:
            seen.add(symbol)
            symbols.append(symbol)
    return symbols


def _symbols_from_array(items: List[Any]) -> List[str]:
    symbols = []
    for item in items:
        if isinstance(item, dict):
            if item.get("symbol") is not None:
                symbols.append(item["symbol"])
        elif isinstance(item, str):
            symbols.append(item)
    return symbols


class SymbolSource:
    """Security-master lookup returning the flat list of symbols to collect"""

    def __init__(self, client: SetSmartClient, security_type: Optional[str] = None):
        self.client = client
        self.security_type = security_type or client.config.SECURITY_TYPE

    def list_symbols(self, ctx: FetchContext, as_of_date: str) -> List[str]:
        """
        Fetch the symbol universe as of a date

        Raises:
            FetchError: If the request fails or the payload cannot be decoded
        """
        params = {"securityType": self.security_type, "date": as_of_date}
        try:
            payload = self.client.get_json(ctx, self.client.config.SYMBOLS_ENDPOINT, params)
            symbols = extract_symbols(payload)
        except FetchError as e:
            e.with_context(None, "symbols")
            raise

        logger.info(f"Found {len(symbols)} symbols as of {as_of_date}")
        return symbols
