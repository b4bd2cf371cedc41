"""
SETSMART API client with error shaping, rate limiting and retry
"""

from dataclasses import replace
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from src.utils.core.logger import get_logger
from src.utils.core.retry import API_RETRY_CONFIG, RetryConfig, call_with_retry
from src.data_collector.config import CollectorConfig, config as default_config
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.errors import (
    ConfigurationError,
    DecodeError,
    StatusError,
    TransportError,
)
from src.data_collector.setsmart.rate_limiter import RateLimiter, get_rate_limiter

logger = get_logger(__name__, utility="setsmart")


class SetSmartClient:
    """Thread-safe client for the SETSMART listed-company API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        retry_config: Optional[RetryConfig] = None,
        config: Optional[CollectorConfig] = None,
    ) -> None:
        """
        Initialize the client

        Args:
            api_key: SETSMART API key (defaults to config)
            rate_limiter: Limiter shared by every request of the run
            retry_config: Retry policy for transport errors and 429/5xx responses
            config: Collector configuration (defaults to the global instance)
        """
        self.config: CollectorConfig = config or default_config
        self.api_key: str = api_key or self.config.API_KEY
        if not self.api_key:
            raise ConfigurationError("SETSMART_API_KEY is required for API requests")

        self.base_url: str = self.config.BASE_URL
        self.rate_limiter: RateLimiter = rate_limiter or get_rate_limiter()
        self.retry_config: RetryConfig = retry_config or replace(
            API_RETRY_CONFIG, max_attempts=max(1, self.config.MAX_RETRIES)
        )
        self.session: requests.Session = requests.Session()

        self.session.headers.update(
            {
                "User-Agent": "SetSmartCollector/1.0",
                "Accept": "application/json",
                "api-key": self.api_key,
            }
        )
        # Fan-out of up to MAX_WORKERS x ENRICH_MAX_WORKERS threads share this session
        pool_size = max(10, self.config.MAX_WORKERS * self.config.ENRICH_MAX_WORKERS)
        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=pool_size)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def _request_timeout(self, ctx: FetchContext) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.config.REQUEST_TIMEOUT
        return max(0.001, min(self.config.REQUEST_TIMEOUT, remaining))

    def _make_single_request(self, ctx: FetchContext, url: str, params: Dict[str, Any]) -> Any:
        """
        Acquire a token, issue one GET and decode one JSON body

        Raises:
            RateLimitCancelled: Context cancelled while waiting for a token
            TransportError: Connection failure or timeout
            StatusError: Any status other than 200
            DecodeError: Body is not valid JSON
        """
        self.rate_limiter.acquire(ctx)

        logger.debug(f"Making request to {url} with {params}")
        try:
            response = self.session.get(url, params=params, timeout=self._request_timeout(ctx))
        except requests.Timeout as e:
            raise TransportError(f"request timed out: {e}", cause=e) from e
        except requests.RequestException as e:
            raise TransportError(f"request failed: {e}", cause=e) from e

        if response.status_code != 200:
            raise StatusError(f"API returned status {response.status_code}", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"malformed JSON in response: {e}", cause=e) from e

    def get_json(self, ctx: FetchContext, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET an endpoint with retry; the backoff wait is cancelled with the context

        Args:
            ctx: Cancellation scope of the calling task
            endpoint: API endpoint path
            params: Query parameters

        Returns:
            Decoded JSON body
        """
        url: str = urljoin(self.base_url, endpoint)
        params = dict(params or {})

        return call_with_retry(
            lambda: self._make_single_request(ctx, url, params),
            self.retry_config,
            wait=ctx.wait,
            description=f"GET {endpoint}",
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "SetSmartClient":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit - cleanup session"""
        self.close()
