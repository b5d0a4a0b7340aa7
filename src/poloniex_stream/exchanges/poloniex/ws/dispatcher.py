"""
Poloniex Command Dispatcher

Builds outbound command frames, transmits them on the owning stream and
waits for the structurally matching reply:

    subscribe / unsubscribe   SubscriptionEvent with same event and channel
    ping                      Pong
    list_subscriptions        SubscriptionList
    unsubscribe_all           UnsubscribeAll

The reply waiter is registered only after the frame was transmitted. A
CancelSignal that fires before or during transmission aborts without
registering. An ErrorMessage on the stream settles any pending command
there with ApplicationError carrying the server message.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from poloniex_stream.infrastructure.exceptions import AbortError, ApplicationError, TransportError
from poloniex_stream.infrastructure.logging import get_exchange_logger, LoggerInterface
from poloniex_stream.infrastructure.networking.websocket import (
    CancelSignal,
    ConnectionManager,
    CorrelationEngine,
    Predicate,
)
from poloniex_stream.exchanges.poloniex.consts import (
    EVENT_LIST_SUBSCRIPTIONS,
    EVENT_PING,
    EVENT_SUBSCRIBE,
    EVENT_UNSUBSCRIBE,
    EVENT_UNSUBSCRIBE_ALL,
)
from poloniex_stream.exchanges.poloniex.structs import (
    ErrorMessage,
    Pong,
    SubscriptionEvent,
    SubscriptionList,
    UnsubscribeAll,
    WsMessage,
)

Symbols = Optional[Union[str, Sequence[str]]]


def normalize_symbols(symbols: Symbols) -> Optional[List[str]]:
    if symbols is None:
        return None
    if isinstance(symbols, str):
        return [symbols]
    return list(symbols)


def subscription_command(event: str, channel: str, symbols: Symbols = None,
                         extra: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    command: Dict[str, Any] = {"event": event, "channel": [channel]}
    if extra:
        command.update(extra)
    normalized = normalize_symbols(symbols)
    if normalized is not None:
        command["symbols"] = normalized
    return command


def subscription_reply(event: str, channel: str) -> Predicate:
    def predicate(message: WsMessage) -> bool:
        return (isinstance(message, SubscriptionEvent)
                and message.event == event
                and message.channel == channel)
    return predicate


def is_pong(message: WsMessage) -> bool:
    return isinstance(message, Pong)


def is_subscription_list(message: WsMessage) -> bool:
    return isinstance(message, SubscriptionList)


def is_unsubscribe_all(message: WsMessage) -> bool:
    return isinstance(message, UnsubscribeAll)


class CommandDispatcher:
    """Sends commands over ConnectionManagers and correlates their replies."""

    def __init__(self, connections: Mapping[str, ConnectionManager], engine: CorrelationEngine,
                 logger: Optional[LoggerInterface] = None):
        self._connections = connections
        self._engine = engine
        self.logger = logger or get_exchange_logger('poloniex', 'ws.dispatcher')

    async def send(self, stream: str, command: Optional[Mapping[str, Any]], predicate: Predicate,
                   cancel_signal: Optional[CancelSignal] = None) -> WsMessage:
        """
        Transmit `command` (if any) and wait for the reply accepted by `predicate`.

        With `command=None` nothing is sent and the call waits for the next
        matching message, which is how event streams pull.

        Raises:
            TransportError: stream not connected, or closed while waiting
            AbortError: `cancel_signal` fired
            ApplicationError: server answered with an error message
        """
        connection = self._connections[stream]

        if cancel_signal is not None and cancel_signal.cancelled:
            raise AbortError(reason=cancel_signal.reason, stream=stream)

        if command is not None:
            await connection.send(command)
            self.logger.debug("Command sent", stream=stream,
                              event=command.get("event"), channel=command.get("channel"))
            if cancel_signal is not None and cancel_signal.cancelled:
                raise AbortError(reason=cancel_signal.reason, stream=stream)
        elif not connection.is_connected:
            raise TransportError("WebSocket is not connected", stream)

        def accepts(message: WsMessage) -> bool:
            return isinstance(message, ErrorMessage) or predicate(message)

        reply = await self._engine.wait(stream, accepts, cancel_signal)

        if isinstance(reply, ErrorMessage) and not predicate(reply):
            self.logger.warning("Command rejected by server", stream=stream, message=reply.message)
            raise ApplicationError(reply.message, reply, stream)
        return reply

    async def send_raw(self, stream: str, payload: Any) -> None:
        """Fire-and-forget transmit."""
        await self._connections[stream].send(payload)

    async def subscribe(self, stream: str, channel: str, symbols: Symbols = None,
                        extra: Optional[Mapping[str, Any]] = None,
                        cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        command = subscription_command(EVENT_SUBSCRIBE, channel, symbols, extra)
        return await self.send(stream, command, subscription_reply(EVENT_SUBSCRIBE, channel), cancel_signal)

    async def unsubscribe(self, stream: str, channel: str, symbols: Symbols = None,
                          cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        command = subscription_command(EVENT_UNSUBSCRIBE, channel, symbols)
        return await self.send(stream, command, subscription_reply(EVENT_UNSUBSCRIBE, channel), cancel_signal)

    async def ping(self, stream: str, cancel_signal: Optional[CancelSignal] = None) -> Pong:
        return await self.send(stream, {"event": EVENT_PING}, is_pong, cancel_signal)

    async def list_subscriptions(self, stream: str,
                                 cancel_signal: Optional[CancelSignal] = None) -> SubscriptionList:
        return await self.send(stream, {"event": EVENT_LIST_SUBSCRIPTIONS}, is_subscription_list, cancel_signal)

    async def unsubscribe_all(self, stream: str,
                              cancel_signal: Optional[CancelSignal] = None) -> UnsubscribeAll:
        return await self.send(stream, {"event": EVENT_UNSUBSCRIBE_ALL}, is_unsubscribe_all, cancel_signal)
