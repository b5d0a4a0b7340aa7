"""
Pytest configuration and shared fixtures for stream client tests.

The client is wired to an in-memory FakeServer through `connect_method`,
so no network access is needed.
"""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Configure test environment
os.environ['ENVIRONMENT'] = 'test'

from poloniex_stream.config import ExchangeCredentials, PoloniexConfig
from poloniex_stream.exchanges.poloniex import PoloniexWebsocketClient
from poloniex_stream.infrastructure.logging import LoggingConfig, configure_logging
from poloniex_stream.infrastructure.logging.factory import LoggerFactory

from tests.helpers import API_KEY, API_SECRET, SIGN_TIMESTAMP, FakeServer


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up test-appropriate logging configuration."""
    configure_logging(LoggingConfig.default_test())
    yield
    LoggerFactory.clear_cache()


@pytest.fixture
def server():
    """Provide connect factory with in-memory sockets."""
    return FakeServer()


@pytest.fixture
def config():
    """Provide client config with test credentials."""
    return PoloniexConfig(
        websocket_url="wss://ws.poloniex.com/ws/",
        symbol="BTC_USDT",
        credentials=ExchangeCredentials(api_key=API_KEY, secret_key=API_SECRET),
    )


@pytest.fixture
def client(config, server):
    """Provide client wired to the fake server."""
    return PoloniexWebsocketClient(
        config,
        connect_method=server.connect,
        timestamp_factory=lambda: SIGN_TIMESTAMP,
    )
