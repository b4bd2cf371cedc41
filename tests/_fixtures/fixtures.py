import pytest

from src.data_collector.config import CollectorConfig
from src.data_collector.setsmart.client import SetSmartClient
from src.data_collector.setsmart.context import FetchContext
from src.data_collector.setsmart.rate_limiter import NoOpRateLimiter
from src.data_collector.setsmart.record_fetcher import RecordFetcher
from src.utils.core.retry import RetryConfig
from tests._fixtures.factories import set_factory_seed
from tests._fixtures.remote_api_responses import FakeSetSmartApi


# Central deterministic seed fixture for all tests (Polyfactory + Faker)
@pytest.fixture(scope="session", autouse=True)
def factory_seed():
    """
    Set a single deterministic seed for Faker and the Python random module.

    Runs once per test session so factory-generated records are reproducible
    in CI. Returns the seed value used (42).
    """
    seed = 42
    set_factory_seed(seed)
    return seed


@pytest.fixture
def collector_config(tmp_path):
    """Configuration with a test key, fast retries and output under tmp_path"""
    return CollectorConfig(
        API_KEY="TEST",
        BASE_URL="https://setsmart.test",
        MAX_RETRIES=1,
        MAX_WORKERS=4,
        ENRICH_MAX_WORKERS=2,
        PER_SYMBOL_TIMEOUT=5.0,
        HISTORY_YEARS=1,
        OUTPUT_DIR=str(tmp_path),
        DISABLE_RATE_LIMITING=True,
    )


@pytest.fixture
def fast_retry():
    """Three attempts with zero backoff"""
    return RetryConfig(max_attempts=3, base_delay=0.0, max_delay=0.0, jitter=False)


@pytest.fixture
def setsmart_client(collector_config, fast_retry):
    """SetSmartClient with a no-op limiter; network is patched per test"""
    client = SetSmartClient(
        config=collector_config,
        rate_limiter=NoOpRateLimiter(),
        retry_config=fast_retry,
    )
    yield client
    client.close()


@pytest.fixture
def fake_api(mocker, setsmart_client, collector_config):
    """Route the client's session.get through an empty FakeSetSmartApi.

    Tests fill `fake_api.symbols`, `fake_api.statements` and `fake_api.prices`.
    """
    api = FakeSetSmartApi(config=collector_config)
    mocker.patch.object(setsmart_client.session, "get", side_effect=api)
    return api


@pytest.fixture
def record_fetcher(setsmart_client, collector_config):
    return RecordFetcher(setsmart_client, collector_config)


@pytest.fixture
def ctx():
    """A fresh background context with no deadline"""
    return FetchContext()
