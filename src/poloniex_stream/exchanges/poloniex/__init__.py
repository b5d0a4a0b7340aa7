"""Poloniex realtime stream integration."""

from .ws.poloniex_ws_client import PoloniexWebsocketClient

__all__ = ['PoloniexWebsocketClient']
