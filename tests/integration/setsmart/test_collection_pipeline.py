from dataclasses import replace
from datetime import datetime

import pandas as pd
import pytest

from src.data_collector.config import CollectorConfig
from src.data_collector.setsmart import collection_pipeline
from src.data_collector.setsmart.collection_pipeline import CollectionResult, main, run_financial_collection
from src.data_collector.setsmart.errors import StatusError
from src.data_collector.setsmart.orchestrator import RunReport
from tests._fixtures import FakeResponse, FakeSetSmartApi, make_price_row, make_statement

NOW = datetime(2024, 5, 15, 10, 0, 0)


@pytest.fixture
def market_api(mocker, collector_config):
    """Three listed symbols: AAA fully priced, BBB missing one price, CCC failing statements"""
    api = FakeSetSmartApi(config=collector_config)
    api.symbols = {"data": [{"symbol": "CCC"}, {"symbol": "BBB"}, {"symbol": "AAA"}]}
    api.statements["AAA"] = [make_statement("AAA", "2023", "4"), make_statement("AAA", "2024", "1")]
    api.statements["BBB"] = [make_statement("BBB", "2023", "3"), make_statement("BBB", "2023", "4")]
    api.statements["CCC"] = FakeResponse(status=500)
    api.prices[("AAA", "2023-12-28")] = [make_price_row("AAA", "2023-12-28", close=10.0)]
    api.prices[("AAA", "2024-03-28")] = [make_price_row("AAA", "2024-03-28", close=11.0)]
    api.prices[("BBB", "2023-09-28")] = FakeResponse(status=503)
    api.prices[("BBB", "2023-12-28")] = [make_price_row("BBB", "2023-12-28", close=5.0)]
    mocker.patch("requests.Session.get", side_effect=api)
    return api


@pytest.mark.integration
def test_full_collection_writes_csv_and_error_log(market_api, collector_config, tmp_path):
    result = run_financial_collection(config=collector_config, now=NOW)

    report = result.report
    assert [r.key for r in report.records] == [
        ("AAA", "2024", "1"),
        ("AAA", "2023", "4"),
        ("BBB", "2023", "4"),
        ("BBB", "2023", "3"),
    ]
    assert set(report.errors) == {"CCC", "BBB-price"}

    (symbol_params,) = market_api.calls_to(collector_config.SYMBOLS_ENDPOINT)
    assert symbol_params["date"] == "2024-05-15"
    statement_params = market_api.calls_to(collector_config.STATEMENTS_ENDPOINT)[0]
    assert (statement_params["startYear"], statement_params["startQuarter"]) == ("2023", "2")
    assert (statement_params["endYear"], statement_params["endQuarter"]) == ("2024", "2")

    assert result.csv_path.parent == tmp_path
    df = pd.read_csv(result.csv_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    assert df["หุ้น"].tolist() == ["AAA", "AAA", "BBB", "BBB"]
    assert df["ราคาปิด"].tolist() == ["11.0000", "10.0000", "5.0000", ""]

    lines = result.error_log_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "--- Fetch errors on 2024-05-15 10:00:00 ---"
    assert sorted(line.split(":")[0] for line in lines[1:]) == ["BBB-price", "CCC"]


@pytest.mark.integration
def test_run_without_records_skips_csv(mocker, collector_config, tmp_path):
    api = FakeSetSmartApi(config=collector_config, symbols=[{"symbol": "AAA"}])
    mocker.patch("requests.Session.get", side_effect=api)

    result = run_financial_collection(config=collector_config, now=NOW)

    assert result.report.records == []
    assert result.csv_path is None
    assert result.error_log_path is None
    assert list(tmp_path.glob("*.csv")) == []


@pytest.mark.integration
def test_symbol_list_failure_aborts_run(mocker, collector_config, tmp_path):
    api = FakeSetSmartApi(config=collector_config, symbols=FakeResponse(status=401))
    mocker.patch("requests.Session.get", side_effect=api)

    with pytest.raises(StatusError):
        run_financial_collection(config=collector_config, now=NOW)

    assert api.calls_to(collector_config.STATEMENTS_ENDPOINT) == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.integration
def test_canonical_headers_when_not_localized(market_api, collector_config):
    result = run_financial_collection(config=replace(collector_config, LOCALIZE_HEADERS=False), now=NOW)

    df = pd.read_csv(result.csv_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    assert list(df.columns[:3]) == ["Symbol", "Year", "Quarter"]


@pytest.mark.integration
def test_main_returns_zero_and_writes_requested_file(mocker, market_api, collector_config, tmp_path):
    mocker.patch.object(collection_pipeline, "default_config", collector_config)
    output = tmp_path / "cli" / "financials.csv"

    assert main(["--output", str(output)]) == 0
    assert output.exists()


@pytest.mark.integration
def test_main_applies_command_line_overrides(mocker, collector_config):
    mocker.patch.object(collection_pipeline, "default_config", collector_config)
    run = mocker.patch.object(
        collection_pipeline, "run_financial_collection", return_value=CollectionResult(report=RunReport())
    )

    assert main(["--max-workers", "3", "--years", "2", "--no-localize", "--output", "x.csv"]) == 0

    kwargs = run.call_args.kwargs
    assert kwargs["output_file"] == "x.csv"
    assert kwargs["config"].MAX_WORKERS == 3
    assert kwargs["config"].HISTORY_YEARS == 2
    assert kwargs["config"].LOCALIZE_HEADERS is False
    assert kwargs["config"].API_KEY == "TEST"


@pytest.mark.integration
def test_main_fails_without_api_key(mocker, collector_config):
    mocker.patch.object(collection_pipeline, "default_config", replace(collector_config, API_KEY=""))

    assert main([]) == 1


@pytest.mark.integration
def test_main_fails_when_symbols_unavailable(mocker, collector_config):
    api = FakeSetSmartApi(config=collector_config, symbols=FakeResponse(status=503))
    mocker.patch("requests.Session.get", side_effect=api)
    mocker.patch.object(collection_pipeline, "default_config", collector_config)

    assert main([]) == 1


@pytest.mark.integration
def test_config_from_env(monkeypatch):
    monkeypatch.setenv("SETSMART_API_KEY", "abcd1234efgh")
    monkeypatch.setenv("MAX_WORKERS", "7")
    monkeypatch.setenv("RATE_LIMIT_INTERVAL_MS", "100")
    monkeypatch.setenv("DISABLE_RATE_LIMITING", "yes")
    monkeypatch.setenv("LOCALIZE_HEADERS", "false")

    cfg = CollectorConfig.from_env()

    assert cfg.MAX_WORKERS == 7
    assert cfg.rate_limit_interval == pytest.approx(0.1)
    assert cfg.DISABLE_RATE_LIMITING is True
    assert cfg.LOCALIZE_HEADERS is False
    assert cfg.masked_api_key == "abcd...efgh"
