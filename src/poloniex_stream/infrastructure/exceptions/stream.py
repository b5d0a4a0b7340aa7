"""
Stream Exception Hierarchy

Errors raised by the realtime stream client. Every error carries the
stream it belongs to so callers can tell public from private failures.

Propagation:
- ConnectionStateError: invalid lifecycle transition, raised to the caller
- TransportError: socket failure / not connected, rejects every waiter on
  the affected stream
- ProtocolError: undecodable frame, reported to error handlers only
- ApplicationError: server error reply correlated to a pending command
- AbortError: caller supplied CancelSignal fired
- AuthError: auth reply reported failure
"""

from typing import Any, Dict, Optional


class StreamError(Exception):
    """Base exception for all stream client errors."""

    def __init__(self, message: str, stream: Optional[str] = None, **context) -> None:
        self.message = message
        self.stream = stream
        self.context: Dict[str, Any] = context
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConnectionStateError(StreamError):
    """Connect/disconnect attempted from a state that forbids it."""

    def __init__(self, operation: str, state: Any, stream: Optional[str] = None) -> None:
        self.operation = operation
        self.state = state
        state_name = getattr(state, "name", str(state))
        super().__init__(f"Could not {operation}. State: {state_name}", stream)


class TransportError(StreamError):
    """Socket level failure, or the stream is not connected / was closed."""
    pass


class ProtocolError(StreamError):
    """Inbound frame could not be decoded."""

    def __init__(self, message: str, raw: Any = None, stream: Optional[str] = None) -> None:
        super().__init__(message, stream)
        self.raw = raw


class ApplicationError(StreamError):
    """Server answered a pending command with an explicit error reply."""

    def __init__(self, message: str, reply: Any = None, stream: Optional[str] = None) -> None:
        super().__init__(message, stream)
        self.reply = reply


class AbortError(StreamError):
    """The caller cancelled the request."""

    def __init__(self, message: str = "The request has been aborted",
                 reason: Any = None, stream: Optional[str] = None) -> None:
        super().__init__(message, stream)
        self.reason = reason


class AuthError(StreamError):
    """Authentication was rejected by the server."""

    def __init__(self, message: str, reply: Any = None, stream: Optional[str] = None) -> None:
        super().__init__(message, stream)
        self.reply = reply


class CredentialsMissingError(AuthError):
    """Auth requested without api key / secret configured."""

    def __init__(self, message: str = "Auth credentials are missing") -> None:
        super().__init__(message, stream="private")
