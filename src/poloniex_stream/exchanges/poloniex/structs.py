"""
Poloniex Stream Message Structures

Closed set of decoded stream messages. Every message is a frozen
msgspec.Struct tagged on `subject`; `to_dict()` renders the wire-style
mapping (camelCase keys, exchange spelled names such as `channel_id`,
`epoch_ms`, `tradeID` and `total_trade` kept as-is).

Two families:
- positional feed (numeric channel ids): heartbeat, acknowledgements,
  ticker, volume, book items and account sub-messages
- keyed feed (event / channel objects): pong, error, subscription
  replies, auth result and channel data messages
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import msgspec
from msgspec import Struct, field

Channel = Union[int, str]
PriceLevel = Tuple[str, str]


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class BookSide(str, Enum):
    ASK = "ask"
    BID = "bid"


class Wallet(str, Enum):
    EXCHANGE = "exchange"
    MARGIN = "margin"
    LENDING = "lending"


class OrderUpdateType(str, Enum):
    CANCELED = "canceled"
    FILLED = "filled"
    SELF_TRADE = "self-trade"


class WsMessage(Struct, kw_only=True, frozen=True, tag_field="subject", rename="camel"):
    """Base for every decoded stream message."""

    @property
    def subject(self) -> str:
        return self.__struct_config__.tag

    def to_dict(self) -> Dict[str, Any]:
        return msgspec.to_builtins(self)


class WsRecord(Struct, kw_only=True, frozen=True, rename="camel"):
    """Base for records nested in keyed channel messages."""

    def to_dict(self) -> Dict[str, Any]:
        return msgspec.to_builtins(self)


# Positional feed

class ChannelMessage(WsMessage, kw_only=True):
    channel_id: Channel = field(name="channel_id")


class Heartbeat(ChannelMessage, kw_only=True, tag="heartbeat"):
    pass


class Subscribed(ChannelMessage, kw_only=True, tag="subscribed"):
    pass


class Unsubscribed(ChannelMessage, kw_only=True, tag="unsubscribed"):
    pass


class Ticker(ChannelMessage, kw_only=True, tag="ticker"):
    currency_pair_id: int
    currency_pair: Optional[str] = None
    last: Optional[str] = None
    lowest_ask: Optional[str] = None
    highest_bid: Optional[str] = None
    percent_change: Optional[str] = None
    base_volume: Optional[str] = None
    quote_volume: Optional[str] = None
    is_frozen: bool = False
    high24hr: Optional[str] = None
    low24hr: Optional[str] = None


class Volume(ChannelMessage, kw_only=True, tag="volume"):
    time: Optional[str] = None
    users: Optional[int] = None
    volume: Dict[str, str] = {}


class BookItem(ChannelMessage, kw_only=True):
    """Item of an aggregated book envelope, sharing its channel and sequence."""
    sequence: Optional[Union[int, str]] = None
    currency_pair: Optional[str] = None
    epoch_ms: Optional[str] = field(default=None, name="epoch_ms")


class BookSnapshot(BookItem, kw_only=True, tag="snapshot"):
    asks: Dict[str, str] = {}
    bids: Dict[str, str] = {}


class PublicTrade(BookItem, kw_only=True, tag="publicTrade"):
    trade_id: Optional[str] = field(default=None, name="tradeID")
    side: Side = field(name="type")
    price: Optional[str] = None
    size: Optional[str] = None
    timestamp: Optional[int] = None


class BookUpdate(BookItem, kw_only=True, tag="update"):
    side: BookSide = field(name="type")
    price: Optional[str] = None
    size: Optional[str] = None


class AccountMessage(ChannelMessage, kw_only=True):
    """Sub-message of the account notification envelope."""
    pass


class PendingOrder(AccountMessage, kw_only=True, tag="pending"):
    order_number: int
    currency_pair_id: Optional[int] = None
    currency_pair: Optional[str] = None
    rate: Optional[str] = None
    amount: Optional[str] = None
    side: Side = field(name="type")
    client_order_id: Optional[str] = None
    epoch_ms: Optional[str] = field(default=None, name="epoch_ms")


class NewOrder(AccountMessage, kw_only=True, tag="new"):
    currency_pair_id: Optional[int] = None
    currency_pair: Optional[str] = None
    order_number: int
    side: Side = field(name="type")
    rate: Optional[str] = None
    amount: Optional[str] = None
    date: Optional[str] = None
    original_amount: Optional[str] = None
    client_order_id: Optional[str] = None


class BalanceUpdate(AccountMessage, kw_only=True, tag="balance"):
    currency_id: int
    currency: Optional[str] = None
    wallet: Wallet
    amount: Optional[str] = None


class OrderUpdate(AccountMessage, kw_only=True, tag="order"):
    order_number: int
    new_amount: Optional[str] = None
    order_type: OrderUpdateType
    client_order_id: Optional[str] = None


class MarginUpdate(AccountMessage, kw_only=True, tag="margin"):
    order_number: int
    currency: str
    amount: Optional[str] = None
    client_order_id: Optional[str] = None


class PrivateTrade(AccountMessage, kw_only=True, tag="trade"):
    trade_id: int = field(name="tradeID")
    rate: Optional[str] = None
    amount: Optional[str] = None
    fee_multiplier: Optional[str] = None
    funding_type: Optional[int] = None
    order_number: Optional[int] = None
    fee: Optional[str] = None
    date: Optional[str] = None
    client_order_id: Optional[str] = None
    total_trade: Optional[str] = field(default=None, name="total_trade")
    epoch_ms: Optional[str] = field(default=None, name="epoch_ms")


class Kill(AccountMessage, kw_only=True, tag="killed"):
    order_number: int
    client_order_id: Optional[str] = None


# Keyed feed: command replies

class Pong(WsMessage, kw_only=True, tag="pong"):
    event: str = "pong"


class ErrorMessage(WsMessage, kw_only=True, tag="error"):
    event: str = "error"
    message: str = ""


class SubscriptionEvent(WsMessage, kw_only=True, tag="subscription"):
    """Subscribe / unsubscribe acknowledgement."""
    event: str
    channel: str
    symbols: Optional[List[str]] = None


class UnsubscribeAll(WsMessage, kw_only=True, tag="unsubscribe_all"):
    event: str = "unsubscribe_all"
    channel: str = "all"


class SubscriptionList(WsMessage, kw_only=True, tag="subscriptions"):
    subscriptions: List[str] = []


class AuthData(WsRecord, kw_only=True):
    success: bool
    ts: Optional[int] = None
    message: Optional[str] = None


class AuthResult(WsMessage, kw_only=True, tag="auth"):
    channel: str = "auth"
    data: AuthData


# Keyed feed: channel data records

class CandleData(WsRecord, kw_only=True):
    symbol: str
    amount: str
    high: str
    quantity: str
    trade_count: int
    low: str
    close_time: int
    start_time: int
    close: str
    open: str
    ts: int


class TradeData(WsRecord, kw_only=True):
    symbol: str
    amount: str
    taker_side: str
    quantity: str
    create_time: int
    price: str
    id: int
    ts: int


class TickerData(WsRecord, kw_only=True):
    symbol: str
    daily_change: str
    high: str
    amount: str
    quantity: str
    trade_count: int
    low: str
    close_time: int
    start_time: int
    close: str
    open: str
    ts: int
    mark_price: Optional[str] = None


class BookData(WsRecord, kw_only=True):
    symbol: str
    create_time: int
    asks: List[PriceLevel]
    bids: List[PriceLevel]
    id: int
    ts: int


class BookLv2Data(BookData, kw_only=True):
    last_id: int


class OrderData(WsRecord, kw_only=True):
    symbol: str
    type: str
    quantity: str
    order_id: str
    trade_fee: str
    client_order_id: str
    account_type: str
    fee_currency: str
    event_type: str
    source: str
    side: str
    filled_quantity: str
    filled_amount: str
    match_role: str
    state: str
    trade_time: int
    trade_amount: str
    order_amount: str
    create_time: int
    price: str
    trade_qty: str
    trade_price: str
    trade_id: str
    ts: int


class BalanceData(WsRecord, kw_only=True):
    change_time: int
    account_id: str
    account_type: str
    event_type: str
    available: str
    currency: str
    id: int
    user_id: int
    hold: str
    ts: int


# Keyed feed: channel data messages

class CandleMessage(WsMessage, kw_only=True, tag="candles"):
    channel: str
    data: List[CandleData]


class TradeMessage(WsMessage, kw_only=True, tag="trades"):
    channel: str = "trades"
    data: List[TradeData]


class TickerMessage(WsMessage, kw_only=True, tag="tickers"):
    channel: str = "ticker"
    data: List[TickerData]


class BookMessage(WsMessage, kw_only=True, tag="book"):
    channel: str = "book"
    data: List[BookData]


class BookLv2Message(WsMessage, kw_only=True, tag="book_lv2"):
    channel: str = "book_lv2"
    action: str
    data: List[BookLv2Data]


class OrderMessage(WsMessage, kw_only=True, tag="orders"):
    channel: str = "orders"
    data: List[OrderData]


class BalanceMessage(WsMessage, kw_only=True, tag="balances"):
    channel: str = "balances"
    data: List[BalanceData]


ChannelDataMessage = Union[
    CandleMessage, TradeMessage, TickerMessage, BookMessage,
    BookLv2Message, OrderMessage, BalanceMessage,
]
