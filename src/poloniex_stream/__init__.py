"""
Poloniex realtime stream client.

Usage:
    from poloniex_stream import PoloniexWebsocketClient, load_config

    config, logging_config = load_config()
    async with PoloniexWebsocketClient(config) as client:
        await client.connect_public()
        await client.ping_public()
"""

from poloniex_stream.config import PoloniexConfig, load_config
from poloniex_stream.infrastructure.networking.websocket import CancelSignal, ConnectionState, StreamKind
from poloniex_stream.exchanges.poloniex import PoloniexWebsocketClient

__version__ = "0.1.0"

__all__ = [
    'PoloniexConfig',
    'load_config',
    'CancelSignal',
    'ConnectionState',
    'StreamKind',
    'PoloniexWebsocketClient',
]
