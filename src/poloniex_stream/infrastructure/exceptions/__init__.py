from .stream import (
    StreamError,
    ConnectionStateError,
    TransportError,
    ProtocolError,
    ApplicationError,
    AbortError,
    AuthError,
    CredentialsMissingError,
)
from .system import ConfigurationError

__all__ = [
    'StreamError',
    'ConnectionStateError',
    'TransportError',
    'ProtocolError',
    'ApplicationError',
    'AbortError',
    'AuthError',
    'CredentialsMissingError',
    'ConfigurationError',
]
