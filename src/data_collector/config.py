"""
Configuration settings for SETSMART financial statement and price collection
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class CollectorConfig:
    """Configuration class for SETSMART API collection settings"""

    # API Configuration
    API_KEY: str = os.getenv("SETSMART_API_KEY", "")
    BASE_URL: str = "https://www.setsmart.com"
    STATEMENTS_ENDPOINT: str = "/api/listed-company-api/financial-data-and-ratio-by-symbol"
    PRICE_ENDPOINT: str = "/api/listed-company-api/eod-price-by-symbol"
    SYMBOLS_ENDPOINT: str = "/api/listed-company-api/eod-price-by-security-type"
    SECURITY_TYPE: str = "CS"
    REQUEST_TIMEOUT: float = 30.0
    MAX_RETRIES: int = 3

    # Rate Limiting (token bucket shared by every request of a run)
    RATE_LIMIT_INTERVAL_MS: int = 50  # one token per interval -> 20 req/sec
    RATE_LIMIT_BURST: int = 10
    # When True, client-side rate limiting is disabled
    DISABLE_RATE_LIMITING: bool = False

    # Concurrency
    MAX_WORKERS: int = 20
    ENRICH_MAX_WORKERS: int = 5
    PER_SYMBOL_TIMEOUT: float = 30.0  # seconds of run budget per symbol

    # Collection window
    HISTORY_YEARS: int = 5

    # Output
    OUTPUT_DIR: str = "."
    ERROR_LOG_FILE: str = "fetch_errors.log"
    LOCALIZE_HEADERS: bool = True

    @property
    def rate_limit_interval(self) -> float:
        """Token refill interval in seconds"""
        return self.RATE_LIMIT_INTERVAL_MS / 1000.0

    @property
    def masked_api_key(self) -> str:
        """API key safe to log"""
        if not self.API_KEY:
            return "<missing>"
        if len(self.API_KEY) <= 8:
            return "*" * len(self.API_KEY)
        return f"{self.API_KEY[:4]}...{self.API_KEY[-4:]}"

    @classmethod
    def from_env(cls) -> 'CollectorConfig':
        """Create configuration from environment variables"""
        return cls(
            API_KEY=os.getenv("SETSMART_API_KEY", ""),
            BASE_URL=os.getenv("SETSMART_BASE_URL", cls.BASE_URL),
            REQUEST_TIMEOUT=float(os.getenv("REQUEST_TIMEOUT", str(cls.REQUEST_TIMEOUT))),
            MAX_RETRIES=int(os.getenv("MAX_RETRIES", str(cls.MAX_RETRIES))),
            RATE_LIMIT_INTERVAL_MS=int(os.getenv("RATE_LIMIT_INTERVAL_MS", str(cls.RATE_LIMIT_INTERVAL_MS))),
            RATE_LIMIT_BURST=int(os.getenv("RATE_LIMIT_BURST", str(cls.RATE_LIMIT_BURST))),
            DISABLE_RATE_LIMITING=_env_bool("DISABLE_RATE_LIMITING", "false"),
            MAX_WORKERS=int(os.getenv("MAX_WORKERS", str(cls.MAX_WORKERS))),
            ENRICH_MAX_WORKERS=int(os.getenv("ENRICH_MAX_WORKERS", str(cls.ENRICH_MAX_WORKERS))),
            PER_SYMBOL_TIMEOUT=float(os.getenv("PER_SYMBOL_TIMEOUT", str(cls.PER_SYMBOL_TIMEOUT))),
            HISTORY_YEARS=int(os.getenv("HISTORY_YEARS", str(cls.HISTORY_YEARS))),
            OUTPUT_DIR=os.getenv("OUTPUT_DIR", cls.OUTPUT_DIR),
            ERROR_LOG_FILE=os.getenv("ERROR_LOG_FILE", cls.ERROR_LOG_FILE),
            LOCALIZE_HEADERS=_env_bool("LOCALIZE_HEADERS", "true"),
        )


# Global configuration instance
config = CollectorConfig.from_env()
