import pytest
import sys
from pathlib import Path

# Load shared fixtures from tests._fixtures so pytest discovers them
pytest_plugins = [
    "tests._fixtures.fixtures",
]

# Ensure the project root is importable during pytest collection so that
# `src.*` imports resolve the same way as in an editable install.
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


@pytest.fixture(autouse=True)
def setsmart_env(monkeypatch, tmp_path):
    """Test API key and a throwaway logs directory for every test"""
    monkeypatch.setenv("SETSMART_API_KEY", "TEST")
    monkeypatch.setenv("LOG_TO_FILE", "false")
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))
    yield


@pytest.fixture(autouse=True)
def patch_setsmart_network(mocker):
    """Autouse fixture: prevent any test from performing real network calls"""
    # Use canonical canned response factory from fixtures
    from tests._fixtures.remote_api_responses import canned_api_factory

    # Default network behavior: every Session.get returns an empty array
    mocker.patch(
        "requests.Session.get",
        return_value=canned_api_factory("empty"),
    )

    yield
