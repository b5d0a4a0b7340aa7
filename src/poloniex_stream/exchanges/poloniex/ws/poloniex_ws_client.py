"""
Poloniex WebSocket Client

Client for the Poloniex realtime streams. Two independent connections
share one correlation engine keyed by stream:

- public:  market data (candles, trades, ticker, book, book_lv2)
- private: account data (orders, balances), requires auth()

Usage:
    async with PoloniexWebsocketClient(config) as client:
        await client.connect_public()
        async for message in client.trades():
            print(message.data)

Every request method accepts `cancel_signal` to abort the wait; timeouts
are composed with CancelSignal.after(seconds). Nothing reconnects or
resubscribes automatically.
"""

from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional, Type, Union

from poloniex_stream.config.structs import PoloniexConfig
from poloniex_stream.infrastructure.logging import get_exchange_logger, LoggerInterface
from poloniex_stream.infrastructure.networking.websocket import (
    CancelSignal,
    ConnectionManager,
    ConnectionState,
    CorrelationEngine,
    MessageHandlerRegistry,
    Predicate,
    StreamKind,
)
from poloniex_stream.exchanges.poloniex.consts import (
    BOOK_DEPTHS,
    CANDLE_CHANNELS,
    CHANNEL_BALANCES,
    CHANNEL_BOOK,
    CHANNEL_BOOK_LV2,
    CHANNEL_ORDERS,
    CHANNEL_TICKER,
    CHANNEL_TRADES,
    DEFAULT_BOOK_DEPTH,
    EXCHANGE_NAME,
)
from poloniex_stream.exchanges.poloniex.services.signature import Signer
from poloniex_stream.exchanges.poloniex.structs import (
    AuthResult,
    BalanceMessage,
    BookLv2Message,
    BookMessage,
    CandleMessage,
    OrderMessage,
    Pong,
    SubscriptionEvent,
    SubscriptionList,
    TickerMessage,
    TradeMessage,
    UnsubscribeAll,
    WsMessage,
)
from .auth import AuthHandshake, TimestampFactory
from .dispatcher import CommandDispatcher, Symbols
from .message_parser import decode_frame
from .streams import EventStreamAdapter, channel_data

StreamName = Union[StreamKind, str]

PUBLIC = StreamKind.PUBLIC.value
PRIVATE = StreamKind.PRIVATE.value


def _stream_name(stream: StreamName) -> str:
    return StreamKind(stream).value


def _validate_candle_channel(channel: str) -> None:
    if channel not in CANDLE_CHANNELS:
        raise ValueError(f"Unknown candle channel: {channel}")


def _validate_depth(depth: int) -> None:
    if depth not in BOOK_DEPTHS:
        raise ValueError(f"Book depth must be one of {BOOK_DEPTHS}, got {depth}")


class PoloniexWebsocketClient:
    """Public and private Poloniex streams behind one request/stream API."""

    def __init__(
        self,
        config: Optional[PoloniexConfig] = None,
        connect_method: Optional[Callable[..., Any]] = None,
        signer: Optional[Signer] = None,
        timestamp_factory: Optional[TimestampFactory] = None,
        logger: Optional[LoggerInterface] = None,
    ):
        self.config = config or PoloniexConfig()
        self.config.validate()
        self.logger = logger or get_exchange_logger(EXCHANGE_NAME, 'ws.client')

        self.engine = CorrelationEngine(get_exchange_logger(EXCHANGE_NAME, 'ws.correlation'))
        self.handlers = MessageHandlerRegistry(get_exchange_logger(EXCHANGE_NAME, 'ws.handlers'))
        self._connections: Dict[str, ConnectionManager] = {
            kind.value: ConnectionManager(
                kind.value,
                self.config.stream_url(kind.value),
                self.config.websocket,
                self.engine,
                self.handlers,
                decode_frame,
                connect_method=connect_method,
                logger=get_exchange_logger(EXCHANGE_NAME, f'ws.{kind.value}'),
            )
            for kind in StreamKind
        }
        self.dispatcher = CommandDispatcher(self._connections, self.engine)
        self.streams = EventStreamAdapter(self.dispatcher)
        self._auth = AuthHandshake(self.dispatcher, self.config.credentials,
                                   signer=signer, timestamp_factory=timestamp_factory)

        self.logger.info("Poloniex websocket client initialized",
                         url=self.config.websocket_url,
                         symbol=self.config.symbol,
                         credentials=self.config.credentials.get_preview())

    @property
    def symbol(self) -> str:
        return self.config.symbol

    # Connection lifecycle

    def connection(self, stream: StreamName) -> ConnectionManager:
        return self._connections[_stream_name(stream)]

    @property
    def public_state(self) -> ConnectionState:
        return self._connections[PUBLIC].state

    @property
    def private_state(self) -> ConnectionState:
        return self._connections[PRIVATE].state

    async def connect(self, stream: StreamName) -> None:
        await self.connection(stream).connect()

    async def disconnect(self, stream: StreamName) -> None:
        await self.connection(stream).disconnect()

    async def connect_public(self) -> None:
        await self.connect(PUBLIC)

    async def connect_private(self) -> None:
        await self.connect(PRIVATE)

    async def disconnect_public(self) -> None:
        await self.disconnect(PUBLIC)

    async def disconnect_private(self) -> None:
        await self.disconnect(PRIVATE)

    async def close(self) -> None:
        """Disconnect every open stream."""
        for connection in self._connections.values():
            if connection.state is ConnectionState.OPEN:
                await connection.disconnect()

    async def __aenter__(self) -> 'PoloniexWebsocketClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # Raw transmit and handlers

    async def send(self, payload: Mapping[str, Any], stream: StreamName) -> None:
        """Send `payload` without waiting for a reply."""
        await self.dispatcher.send_raw(_stream_name(stream), payload)

    def on_message(self, stream: StreamName, message_type: Union[Type, tuple],
                   handler: Callable) -> Callable[[], None]:
        return self.handlers.on_message(_stream_name(stream), message_type, handler)

    def on_raw(self, stream: StreamName, handler: Callable) -> Callable[[], None]:
        return self.handlers.on_raw(_stream_name(stream), handler)

    def on_open(self, stream: StreamName, handler: Callable) -> Callable[[], None]:
        return self.handlers.on_open(_stream_name(stream), handler)

    def on_close(self, stream: StreamName, handler: Callable) -> Callable[[], None]:
        return self.handlers.on_close(_stream_name(stream), handler)

    def on_error(self, stream: StreamName, handler: Callable) -> Callable[[], None]:
        return self.handlers.on_error(_stream_name(stream), handler)

    # Service commands

    async def ping(self, stream: StreamName, cancel_signal: Optional[CancelSignal] = None) -> Pong:
        return await self.dispatcher.ping(_stream_name(stream), cancel_signal)

    async def ping_public(self, cancel_signal: Optional[CancelSignal] = None) -> Pong:
        return await self.ping(PUBLIC, cancel_signal)

    async def ping_private(self, cancel_signal: Optional[CancelSignal] = None) -> Pong:
        return await self.ping(PRIVATE, cancel_signal)

    async def unsubscribe_all(self, stream: StreamName,
                              cancel_signal: Optional[CancelSignal] = None) -> UnsubscribeAll:
        return await self.dispatcher.unsubscribe_all(_stream_name(stream), cancel_signal)

    async def unsubscribe_public(self, cancel_signal: Optional[CancelSignal] = None) -> UnsubscribeAll:
        return await self.unsubscribe_all(PUBLIC, cancel_signal)

    async def unsubscribe_private(self, cancel_signal: Optional[CancelSignal] = None) -> UnsubscribeAll:
        return await self.unsubscribe_all(PRIVATE, cancel_signal)

    async def get_subscriptions(self, stream: StreamName,
                                cancel_signal: Optional[CancelSignal] = None) -> SubscriptionList:
        return await self.dispatcher.list_subscriptions(_stream_name(stream), cancel_signal)

    async def get_public_subscriptions(self, cancel_signal: Optional[CancelSignal] = None) -> SubscriptionList:
        return await self.get_subscriptions(PUBLIC, cancel_signal)

    async def get_private_subscriptions(self, cancel_signal: Optional[CancelSignal] = None) -> SubscriptionList:
        return await self.get_subscriptions(PRIVATE, cancel_signal)

    async def subscribe(self, stream: StreamName, channel: str, symbols: Symbols = None,
                        extra: Optional[Mapping[str, Any]] = None,
                        cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        """Generic subscribe; `symbols` are sent as given (omitted when None)."""
        return await self.dispatcher.subscribe(_stream_name(stream), channel, symbols, extra, cancel_signal)

    async def unsubscribe(self, stream: StreamName, channel: str, symbols: Symbols = None,
                          cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.dispatcher.unsubscribe(_stream_name(stream), channel, symbols, cancel_signal)

    # Public channels

    async def subscribe_candles(self, channel: str, symbols: Symbols = None,
                                cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        _validate_candle_channel(channel)
        return await self.subscribe(PUBLIC, channel, symbols or self.symbol, cancel_signal=cancel_signal)

    async def unsubscribe_candles(self, channel: str, symbols: Symbols = None,
                                  cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        _validate_candle_channel(channel)
        return await self.unsubscribe(PUBLIC, channel, symbols or self.symbol, cancel_signal)

    async def subscribe_trades(self, symbols: Symbols = None,
                               cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.subscribe(PUBLIC, CHANNEL_TRADES, symbols or self.symbol, cancel_signal=cancel_signal)

    async def unsubscribe_trades(self, symbols: Symbols = None,
                                 cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.unsubscribe(PUBLIC, CHANNEL_TRADES, symbols or self.symbol, cancel_signal)

    async def subscribe_ticker(self, symbols: Symbols = None,
                               cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.subscribe(PUBLIC, CHANNEL_TICKER, symbols or self.symbol, cancel_signal=cancel_signal)

    async def unsubscribe_ticker(self, symbols: Symbols = None,
                                 cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.unsubscribe(PUBLIC, CHANNEL_TICKER, symbols or self.symbol, cancel_signal)

    async def subscribe_book(self, symbols: Symbols = None, depth: int = DEFAULT_BOOK_DEPTH,
                             cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        _validate_depth(depth)
        return await self.subscribe(PUBLIC, CHANNEL_BOOK, symbols or self.symbol,
                                    extra={"depth": depth}, cancel_signal=cancel_signal)

    async def unsubscribe_book(self, symbols: Symbols = None,
                               cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.unsubscribe(PUBLIC, CHANNEL_BOOK, symbols or self.symbol, cancel_signal)

    async def subscribe_book_lv2(self, symbols: Symbols = None,
                                 cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.subscribe(PUBLIC, CHANNEL_BOOK_LV2, symbols or self.symbol, cancel_signal=cancel_signal)

    async def unsubscribe_book_lv2(self, symbols: Symbols = None,
                                   cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.unsubscribe(PUBLIC, CHANNEL_BOOK_LV2, symbols or self.symbol, cancel_signal)

    # Private channels

    async def auth(self, cancel_signal: Optional[CancelSignal] = None) -> AuthResult:
        return await self._auth.auth(cancel_signal)

    async def subscribe_orders(self, symbols: Symbols = None,
                               cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.subscribe(PRIVATE, CHANNEL_ORDERS, symbols or self.symbol, cancel_signal=cancel_signal)

    async def unsubscribe_orders(self, symbols: Symbols = None,
                                 cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.unsubscribe(PRIVATE, CHANNEL_ORDERS, symbols or self.symbol, cancel_signal)

    async def subscribe_balances(self, cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.subscribe(PRIVATE, CHANNEL_BALANCES, cancel_signal=cancel_signal)

    async def unsubscribe_balances(self, cancel_signal: Optional[CancelSignal] = None) -> SubscriptionEvent:
        return await self.unsubscribe(PRIVATE, CHANNEL_BALANCES, cancel_signal=cancel_signal)

    # Event streams

    def candles(self, channel: str, symbols: Symbols = None,
                cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[CandleMessage]:
        _validate_candle_channel(channel)
        return self.streams.channel(
            PUBLIC,
            lambda: self.subscribe_candles(channel, symbols, cancel_signal),
            channel_data(CandleMessage, channel),
            cancel_signal,
        )

    def trades(self, symbols: Symbols = None,
               cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[TradeMessage]:
        return self.streams.channel(
            PUBLIC,
            lambda: self.subscribe_trades(symbols, cancel_signal),
            channel_data(TradeMessage, CHANNEL_TRADES),
            cancel_signal,
        )

    def tickers(self, symbols: Symbols = None,
                cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[TickerMessage]:
        return self.streams.channel(
            PUBLIC,
            lambda: self.subscribe_ticker(symbols, cancel_signal),
            channel_data(TickerMessage, CHANNEL_TICKER),
            cancel_signal,
        )

    def books(self, symbols: Symbols = None, depth: int = DEFAULT_BOOK_DEPTH,
              cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[BookMessage]:
        _validate_depth(depth)
        return self.streams.channel(
            PUBLIC,
            lambda: self.subscribe_book(symbols, depth, cancel_signal),
            channel_data(BookMessage, CHANNEL_BOOK),
            cancel_signal,
        )

    def books_lv2(self, symbols: Symbols = None,
                  cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[BookLv2Message]:
        return self.streams.channel(
            PUBLIC,
            lambda: self.subscribe_book_lv2(symbols, cancel_signal),
            channel_data(BookLv2Message, CHANNEL_BOOK_LV2),
            cancel_signal,
        )

    def orders(self, symbols: Symbols = None,
               cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[OrderMessage]:
        return self.streams.channel(
            PRIVATE,
            lambda: self.subscribe_orders(symbols, cancel_signal),
            channel_data(OrderMessage, CHANNEL_ORDERS),
            cancel_signal,
        )

    def balances(self, cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[BalanceMessage]:
        return self.streams.channel(
            PRIVATE,
            lambda: self.subscribe_balances(cancel_signal),
            channel_data(BalanceMessage, CHANNEL_BALANCES),
            cancel_signal,
        )

    def listen(self, stream: StreamName, *types: type, where: Optional[Predicate] = None,
               cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[WsMessage]:
        """Pull decoded messages of `types` from `stream` without subscribing."""
        return self.streams.listen(_stream_name(stream), *types, where=where, cancel_signal=cancel_signal)
