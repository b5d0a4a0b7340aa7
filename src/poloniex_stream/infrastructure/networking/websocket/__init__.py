from .structs import StreamKind, ConnectionState
from .cancellation import CancelSignal
from .correlation import CorrelationEngine, Waiter, Predicate
from .handlers import MessageHandlerRegistry
from .ws_client import ConnectionManager

__all__ = [
    'StreamKind',
    'ConnectionState',
    'CancelSignal',
    'CorrelationEngine',
    'Waiter',
    'Predicate',
    'MessageHandlerRegistry',
    'ConnectionManager',
]
