"""Pytest configuration and fixtures."""

import httpx
import pytest

from src.services.coingecko_client import CoinGeckoClient
from src.services.market_data_aggregator import MarketSnapshotAggregator
from src.utils.config import CoinGeckoConfig, Config, LoggingConfig, SnapshotConfig
from src.utils.event_store import EventStore
from tests.helpers import TEST_API_KEY, TEST_API_URL, FakeCoinGecko


@pytest.fixture
def test_config():
    """Explicit configuration object pointing at the fake API."""
    cfg = Config()
    cfg.coingecko = CoinGeckoConfig(api_url=TEST_API_URL, api_key=TEST_API_KEY)
    cfg.snapshot = SnapshotConfig()
    cfg.logging = LoggingConfig()
    return cfg


@pytest.fixture
def fake_api():
    return FakeCoinGecko()


@pytest.fixture
def event_store():
    return EventStore()


@pytest.fixture
def make_aggregator(test_config, event_store):
    """Factory building an aggregator whose HTTP traffic goes to a FakeCoinGecko."""

    def _make(fake: FakeCoinGecko) -> MarketSnapshotAggregator:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
        client = CoinGeckoClient(test_config.coingecko, http_client=http_client)
        return MarketSnapshotAggregator(test_config, client=client, event_store=event_store)

    return _make


@pytest.fixture
def test_client(make_aggregator, fake_api, event_store):
    """Create a test client wired to the fake API."""
    from fastapi.testclient import TestClient

    from main import app
    from src.api.dependencies import get_aggregator, get_event_store, get_metrics_calculator
    from src.utils.metrics import MetricsCalculator

    aggregator = make_aggregator(fake_api)
    calculator = MetricsCalculator(event_store)

    app.dependency_overrides[get_aggregator] = lambda: aggregator
    app.dependency_overrides[get_event_store] = lambda: event_store
    app.dependency_overrides[get_metrics_calculator] = lambda: calculator

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
