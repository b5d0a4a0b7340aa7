from .message_parser import decode_frame, parse_message
from .dispatcher import CommandDispatcher
from .streams import EventStreamAdapter
from .auth import AuthHandshake
from .poloniex_ws_client import PoloniexWebsocketClient

__all__ = [
    'decode_frame',
    'parse_message',
    'CommandDispatcher',
    'EventStreamAdapter',
    'AuthHandshake',
    'PoloniexWebsocketClient',
]
