"""
Event Stream Adapters

Turn "subscribe once, then wait for the next matching message" into an
async iterator:

    async for message in client.trades(symbols="BTC_USDT"):
        ...

The subscription is sent on the first pull. Each following pull waits
for exactly one matching message, so messages are yielded one at a time
in arrival order. Cancellation and stream failures are raised from the
pull. Iterators are infinite and not restartable; re-subscribing is up to
the caller.
"""

from typing import AsyncIterator, Awaitable, Callable, Optional, Tuple, Type

from poloniex_stream.infrastructure.logging import get_exchange_logger, LoggerInterface
from poloniex_stream.infrastructure.networking.websocket import CancelSignal, Predicate
from poloniex_stream.exchanges.poloniex.structs import WsMessage
from .dispatcher import CommandDispatcher

Subscribe = Callable[[], Awaitable[object]]


def channel_data(message_type: Type[WsMessage], channel: str) -> Predicate:
    """Data message of `message_type` published on `channel`."""
    def predicate(message: WsMessage) -> bool:
        return isinstance(message, message_type) and getattr(message, 'channel', None) == channel
    return predicate


def matching(types: Tuple[type, ...], where: Optional[Predicate] = None) -> Predicate:
    def predicate(message: WsMessage) -> bool:
        if types and not isinstance(message, types):
            return False
        return where is None or bool(where(message))
    return predicate


class EventStreamAdapter:
    """Pull-based sequences over CommandDispatcher waits."""

    def __init__(self, dispatcher: CommandDispatcher, logger: Optional[LoggerInterface] = None):
        self._dispatcher = dispatcher
        self.logger = logger or get_exchange_logger('poloniex', 'ws.streams')

    async def channel(self, stream: str, subscribe: Subscribe, predicate: Predicate,
                      cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[WsMessage]:
        """Subscribe via `subscribe()`, then yield every message accepted by `predicate`."""
        reply = await subscribe()
        self.logger.debug("Stream subscribed", stream=stream, channel=getattr(reply, 'channel', None))
        while True:
            yield await self._dispatcher.send(stream, None, predicate, cancel_signal)

    async def listen(self, stream: str, *types: type, where: Optional[Predicate] = None,
                     cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[WsMessage]:
        """Yield decoded messages of `types` (any when empty) without subscribing."""
        predicate = matching(types, where)
        while True:
            yield await self._dispatcher.send(stream, None, predicate, cancel_signal)
