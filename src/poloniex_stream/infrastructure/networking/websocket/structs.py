from enum import Enum


class StreamKind(str, Enum):
    """Logical stream, also the path segment under the base stream URL."""
    PUBLIC = "public"
    PRIVATE = "private"


class ConnectionState(Enum):
    """WebSocket connection states"""
    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
