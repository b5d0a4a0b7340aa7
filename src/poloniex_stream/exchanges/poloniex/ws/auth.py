"""
Private Stream Authentication

Sends the signed subscribe to the `auth` channel:

    {"event": "subscribe", "channel": ["auth"],
     "params": {"key", "signature", "signTimestamp",
                "signatureMethod", "signatureVersion"}}

The signature covers `GET\\n/ws\\nsignTimestamp=<ts>`. The reply is an
AuthResult whose `data.success` decides the outcome.
"""

import time
from typing import Callable, Optional

from poloniex_stream.config.structs import ExchangeCredentials
from poloniex_stream.infrastructure.exceptions import AuthError, CredentialsMissingError
from poloniex_stream.infrastructure.logging import get_exchange_logger, LoggerInterface
from poloniex_stream.infrastructure.networking.websocket import CancelSignal, StreamKind
from poloniex_stream.exchanges.poloniex.consts import AUTH_METHOD, AUTH_PATH, CHANNEL_AUTH, EVENT_SUBSCRIBE
from poloniex_stream.exchanges.poloniex.services.signature import Signer, sign, signed_params
from poloniex_stream.exchanges.poloniex.structs import AuthResult, WsMessage
from .dispatcher import CommandDispatcher

TimestampFactory = Callable[[], str]


def epoch_millis() -> str:
    return str(int(time.time() * 1000))


def is_auth_result(message: WsMessage) -> bool:
    return isinstance(message, AuthResult)


class AuthHandshake:
    """Authenticates the private stream."""

    def __init__(self, dispatcher: CommandDispatcher, credentials: ExchangeCredentials,
                 signer: Optional[Signer] = None, timestamp_factory: Optional[TimestampFactory] = None,
                 logger: Optional[LoggerInterface] = None):
        self._dispatcher = dispatcher
        self._credentials = credentials
        self._signer = signer or sign
        self._timestamp_factory = timestamp_factory or epoch_millis
        self.logger = logger or get_exchange_logger('poloniex', 'ws.auth')

    def build_command(self) -> dict:
        timestamp = self._timestamp_factory()
        params = signed_params(
            AUTH_METHOD,
            AUTH_PATH,
            {"signTimestamp": timestamp},
            self._credentials.api_key,
            self._credentials.secret_key,
            timestamp,
            signer=self._signer,
        )
        return {"event": EVENT_SUBSCRIBE, "channel": [CHANNEL_AUTH], "params": params}

    async def auth(self, cancel_signal: Optional[CancelSignal] = None) -> AuthResult:
        """
        Authenticate the private stream.

        Raises:
            CredentialsMissingError: api key / secret not configured
            AuthError: server reported failure, reply attached as `.reply`
        """
        if not self._credentials.has_private_api:
            raise CredentialsMissingError()

        stream = StreamKind.PRIVATE.value
        self.logger.debug("Authenticating", key=self._credentials.get_preview())
        reply = await self._dispatcher.send(stream, self.build_command(), is_auth_result, cancel_signal)

        if not reply.data.success:
            message = reply.data.message or "Authentication failed"
            self.logger.error("Authentication rejected", message=message)
            raise AuthError(message, reply, stream)

        self.logger.info("Authenticated", key=self._credentials.get_preview())
        return reply
