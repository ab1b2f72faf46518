"""Shared fixtures for the transferwise_rates tests."""

import json
from unittest.mock import Mock

import pytest
import requests

from transferwise_rates import ExchangeBank, RateFetcher, get_settings

TEST_ACCESS_KEY = "test_access_key_12345"

EUR_RECORDS = [
    {"source": "USD", "target": "EUR", "rate": 0.85, "time": "2024-01-01T00:00:00Z"},
]

USD_RECORDS = [
    {"source": "USD", "target": "EUR", "rate": 0.8, "time": "2024-01-01T00:00:00+0000"},
    {"source": "USD", "target": "GBP", "rate": 0.75, "time": "2024-01-01T00:00:00+0000"},
    {"source": "USD", "target": "JPY", "rate": 150.0, "time": "2024-01-01T00:00:00+0000"},
]

NEWER_RECORDS = [
    {"source": "USD", "target": "EUR", "rate": 0.9, "time": "2024-01-02T00:00:00+0000"},
    {"source": "USD", "target": "CHF", "rate": 0.88, "time": "2024-01-02T00:00:00+0000"},
]


def payload(records):
    return json.dumps(records)


def make_response(text, status_code=200):
    response = Mock(spec=requests.Response)
    response.text = text
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real TRANSFERWISE_* variables and .env files out of the tests."""
    for name in ("ACCESS_KEY", "SOURCE", "TTL_IN_SECONDS", "USE_SANDBOX",
                 "SSL_VERSION", "RAISE_ON_FAILURE", "CACHE_PATH", "TIMEOUT"):
        monkeypatch.delenv(f"TRANSFERWISE_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def session():
    mock_session = Mock(spec=requests.Session)
    mock_session.get.return_value = make_response(payload(USD_RECORDS))
    return mock_session


@pytest.fixture
def fetcher(session):
    return RateFetcher(TEST_ACCESS_KEY, session=session)


@pytest.fixture
def cache_file(tmp_path):
    return tmp_path / "rates.json"


@pytest.fixture
def bank(fetcher, cache_file):
    return ExchangeBank(cache=cache_file, fetcher=fetcher, access_key=TEST_ACCESS_KEY)
