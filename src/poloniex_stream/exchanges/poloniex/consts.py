from typing import FrozenSet, Tuple

EXCHANGE_NAME = "poloniex"

# Stream command events
EVENT_SUBSCRIBE = "subscribe"
EVENT_UNSUBSCRIBE = "unsubscribe"
EVENT_PING = "ping"
EVENT_PONG = "pong"
EVENT_ERROR = "error"
EVENT_LIST_SUBSCRIPTIONS = "list_subscriptions"
EVENT_UNSUBSCRIBE_ALL = "unsubscribe_all"

# Channels
CHANNEL_AUTH = "auth"
CHANNEL_TRADES = "trades"
CHANNEL_TICKER = "ticker"
CHANNEL_BOOK = "book"
CHANNEL_BOOK_LV2 = "book_lv2"
CHANNEL_ORDERS = "orders"
CHANNEL_BALANCES = "balances"

CANDLE_CHANNELS: FrozenSet[str] = frozenset({
    "candles_minute_1",
    "candles_minute_5",
    "candles_minute_10",
    "candles_minute_15",
    "candles_minute_30",
    "candles_hour_1",
    "candles_hour_2",
    "candles_hour_4",
    "candles_hour_6",
    "candles_hour_12",
    "candles_day_1",
    "candles_day_3",
    "candles_week_1",
    "candles_month_1",
})

BOOK_DEPTHS: Tuple[int, ...] = (5, 10, 20)
DEFAULT_BOOK_DEPTH = 5

# Auth signature
AUTH_METHOD = "GET"
AUTH_PATH = "/ws"
SIGNATURE_METHOD = "HmacSHA256"
SIGNATURE_VERSION = "1"
