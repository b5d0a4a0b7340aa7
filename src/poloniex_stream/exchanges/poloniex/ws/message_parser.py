"""
Poloniex Message Parser

Stateless decoding of inbound frames into WsMessage structs.

Keyed frames (JSON objects) are classified by `event`, then by
`subscriptions`, then by `channel`. Positional frames (JSON arrays) are
classified by length and leading elements:

    [channel]                        heartbeat
    [channel, 0|1]                   unsubscribed / subscribed
    [1002, null, [...]]              ticker
    [channel, null, [...]]           volume
    [channel, "", [[tag, ...], ...]] account notifications
    [channel, sequence, [...]]       aggregated book items (i / t / o)

A frame decodes to a list because book and account envelopes batch
several items. Any shape failure raises ProtocolError.
"""

from typing import Any, Callable, Dict, List, Sequence

import msgspec

from poloniex_stream.infrastructure.exceptions import ProtocolError
from poloniex_stream.infrastructure.logging import get_exchange_logger
from poloniex_stream.exchanges.poloniex.consts import (
    CANDLE_CHANNELS,
    CHANNEL_AUTH,
    CHANNEL_BALANCES,
    CHANNEL_BOOK,
    CHANNEL_BOOK_LV2,
    CHANNEL_ORDERS,
    CHANNEL_TICKER,
    CHANNEL_TRADES,
    EVENT_ERROR,
    EVENT_PONG,
    EVENT_SUBSCRIBE,
    EVENT_UNSUBSCRIBE,
    EVENT_UNSUBSCRIBE_ALL,
)
from poloniex_stream.exchanges.poloniex.services.mappings import (
    PoloniexMappings,
    book_update_side,
    currency,
    currency_pair,
    order_side,
    order_update_type,
    public_trade_side,
    wallet,
)
from poloniex_stream.exchanges.poloniex.structs import (
    AccountMessage,
    AuthResult,
    BalanceMessage,
    BalanceUpdate,
    BookItem,
    BookLv2Message,
    BookMessage,
    BookSnapshot,
    BookUpdate,
    CandleMessage,
    ErrorMessage,
    Heartbeat,
    Kill,
    MarginUpdate,
    NewOrder,
    OrderMessage,
    OrderUpdate,
    PendingOrder,
    Pong,
    PrivateTrade,
    PublicTrade,
    SubscriptionEvent,
    SubscriptionList,
    Subscribed,
    Ticker,
    TickerMessage,
    TradeMessage,
    Unsubscribed,
    UnsubscribeAll,
    Volume,
    WsMessage,
)

_logger = get_exchange_logger('poloniex', 'ws.parser')

CHANNEL_MESSAGE_TYPES: Dict[str, type] = {
    CHANNEL_TRADES: TradeMessage,
    CHANNEL_TICKER: TickerMessage,
    CHANNEL_BOOK: BookMessage,
    CHANNEL_BOOK_LV2: BookLv2Message,
    CHANNEL_ORDERS: OrderMessage,
    CHANNEL_BALANCES: BalanceMessage,
}


def _at(values: Sequence[Any], index: int) -> Any:
    """Positional field or None when the tuple is short."""
    return values[index] if len(values) > index else None


def _convert(payload: Dict[str, Any], message_type: type) -> WsMessage:
    tagged = {**payload, "subject": message_type.__struct_config__.tag}
    return msgspec.convert(tagged, type=message_type)


# Keyed frames

def parse_keyed(payload: Dict[str, Any]) -> WsMessage:
    event = payload.get("event")

    if event == EVENT_ERROR:
        return _convert(payload, ErrorMessage)
    if event is None and "error" in payload:
        return ErrorMessage(message=str(payload["error"]))
    if event == EVENT_PONG:
        return _convert(payload, Pong)
    if event == EVENT_UNSUBSCRIBE_ALL:
        return _convert(payload, UnsubscribeAll)
    if event in (EVENT_SUBSCRIBE, EVENT_UNSUBSCRIBE):
        return _convert(payload, SubscriptionEvent)
    if "subscriptions" in payload:
        return _convert(payload, SubscriptionList)

    channel = payload.get("channel")
    if channel == CHANNEL_AUTH:
        return _convert(payload, AuthResult)

    if "data" in payload:
        message_type = CHANNEL_MESSAGE_TYPES.get(channel)
        if message_type is None and channel in CANDLE_CHANNELS:
            message_type = CandleMessage
        if message_type is not None:
            return _convert(payload, message_type)
        raise ProtocolError(f"Unknown channel: {channel}", payload)

    raise ProtocolError("Unrecognized message", payload)


# Positional frames

def parse_heartbeat(message: Sequence[Any]) -> Heartbeat:
    return Heartbeat(channel_id=message[0])


def parse_acknowledgement(message: Sequence[Any]) -> WsMessage:
    if message[1]:
        return Subscribed(channel_id=message[0])
    return Unsubscribed(channel_id=message[0])


def parse_ticker(message: Sequence[Any]) -> Ticker:
    channel_id, body = message[0], message[2]
    pair_id = body[0]
    return Ticker(
        channel_id=channel_id,
        currency_pair_id=pair_id,
        currency_pair=currency_pair(pair_id),
        last=_at(body, 1),
        lowest_ask=_at(body, 2),
        highest_bid=_at(body, 3),
        percent_change=_at(body, 4),
        base_volume=_at(body, 5),
        quote_volume=_at(body, 6),
        is_frozen=bool(_at(body, 7)),
        high24hr=_at(body, 8),
        low24hr=_at(body, 9),
    )


def parse_volume(message: Sequence[Any]) -> Volume:
    body = message[2]
    return Volume(
        channel_id=message[0],
        time=_at(body, 0),
        users=_at(body, 1),
        volume=_at(body, 2) or {},
    )


def parse_book(message: Sequence[Any]) -> List[BookItem]:
    """Aggregated book envelope; every item inherits channel and sequence."""
    channel_id, sequence, items = message[0], message[1], message[2]
    pair = currency_pair(channel_id)
    output: List[BookItem] = []

    for item in items:
        tag = item[0]
        if tag == "i":
            info = item[1]
            asks, bids = info["orderBook"]
            output.append(BookSnapshot(
                channel_id=channel_id,
                sequence=sequence,
                currency_pair=info.get("currencyPair"),
                asks=asks,
                bids=bids,
                epoch_ms=_at(item, 2),
            ))
        elif tag == "t":
            output.append(PublicTrade(
                channel_id=channel_id,
                sequence=sequence,
                currency_pair=pair,
                trade_id=item[1],
                side=public_trade_side(item[2]),
                price=_at(item, 3),
                size=_at(item, 4),
                timestamp=_at(item, 5),
                epoch_ms=_at(item, 6),
            ))
        else:
            output.append(BookUpdate(
                channel_id=channel_id,
                sequence=sequence,
                currency_pair=pair,
                side=book_update_side(item[1]),
                price=_at(item, 2),
                size=_at(item, 3),
                epoch_ms=_at(item, 4),
            ))

    return output


def parse_pending(channel_id: Any, item: Sequence[Any]) -> PendingOrder:
    pair_id = _at(item, 2)
    return PendingOrder(
        channel_id=channel_id,
        order_number=item[1],
        currency_pair_id=pair_id,
        currency_pair=currency_pair(pair_id),
        rate=_at(item, 3),
        amount=_at(item, 4),
        side=order_side(_at(item, 5)),
        client_order_id=_at(item, 6),
        epoch_ms=_at(item, 7),
    )


def parse_new(channel_id: Any, item: Sequence[Any]) -> NewOrder:
    pair_id = item[1]
    return NewOrder(
        channel_id=channel_id,
        currency_pair_id=pair_id,
        currency_pair=currency_pair(pair_id),
        order_number=_at(item, 2),
        side=order_side(_at(item, 3)),
        rate=_at(item, 4),
        amount=_at(item, 5),
        date=_at(item, 6),
        original_amount=_at(item, 7),
        client_order_id=_at(item, 8),
    )


def parse_balance(channel_id: Any, item: Sequence[Any]) -> BalanceUpdate:
    currency_id = item[1]
    return BalanceUpdate(
        channel_id=channel_id,
        currency_id=currency_id,
        currency=currency(currency_id),
        wallet=wallet(_at(item, 2)),
        amount=_at(item, 3),
    )


def parse_order_update(channel_id: Any, item: Sequence[Any]) -> OrderUpdate:
    return OrderUpdate(
        channel_id=channel_id,
        order_number=item[1],
        new_amount=_at(item, 2),
        order_type=order_update_type(_at(item, 3)),
        client_order_id=_at(item, 4),
    )


def parse_margin(channel_id: Any, item: Sequence[Any]) -> MarginUpdate:
    currency_id = _at(item, 2)
    resolved = currency(currency_id)
    return MarginUpdate(
        channel_id=channel_id,
        order_number=item[1],
        currency=resolved if resolved is not None else str(currency_id),
        amount=_at(item, 3),
        client_order_id=_at(item, 4),
    )


def parse_private_trade(channel_id: Any, item: Sequence[Any]) -> PrivateTrade:
    return PrivateTrade(
        channel_id=channel_id,
        trade_id=item[1],
        rate=_at(item, 2),
        amount=_at(item, 3),
        fee_multiplier=_at(item, 4),
        funding_type=_at(item, 5),
        order_number=_at(item, 6),
        fee=_at(item, 7),
        date=_at(item, 8),
        client_order_id=_at(item, 9),
        total_trade=_at(item, 10),
        epoch_ms=_at(item, 11),
    )


def parse_kill(channel_id: Any, item: Sequence[Any]) -> Kill:
    return Kill(
        channel_id=channel_id,
        order_number=item[1],
        client_order_id=_at(item, 2),
    )


ACCOUNT_PARSERS: Dict[str, Callable[[Any, Sequence[Any]], AccountMessage]] = {
    "p": parse_pending,
    "n": parse_new,
    "b": parse_balance,
    "o": parse_order_update,
    "m": parse_margin,
    "t": parse_private_trade,
    "k": parse_kill,
}


def parse_account(message: Sequence[Any]) -> List[AccountMessage]:
    """Account envelope; sub-messages with an unknown tag are skipped."""
    channel_id, items = message[0], message[2]
    output: List[AccountMessage] = []

    for item in items:
        parser = ACCOUNT_PARSERS.get(item[0])
        if parser is None:
            _logger.debug("Skipping account message", tag=item[0])
            continue
        output.append(parser(channel_id, item))

    return output


def parse_positional(message: Sequence[Any]) -> List[WsMessage]:
    if not message:
        raise ProtocolError("Empty message", message)
    if len(message) == 1:
        return [parse_heartbeat(message)]
    if len(message) == 2:
        return [parse_acknowledgement(message)]

    channel_id, sequence = message[0], message[1]
    if sequence is None and channel_id == PoloniexMappings.TICKER_CHANNEL:
        return [parse_ticker(message)]
    if sequence is None:
        return [parse_volume(message)]
    if sequence == "":
        return parse_account(message)
    return parse_book(message)


def parse_message(payload: Any) -> List[WsMessage]:
    """Decode an already JSON-decoded payload."""
    try:
        if isinstance(payload, dict):
            return [parse_keyed(payload)]
        if isinstance(payload, list):
            return parse_positional(payload)
    except ProtocolError:
        raise
    except (msgspec.ValidationError, AttributeError, IndexError, KeyError, TypeError, ValueError) as e:
        raise ProtocolError(f"Message has an unexpected shape: {e}", payload) from e

    raise ProtocolError(f"Unsupported message type: {type(payload).__name__}", payload)


def decode_frame(raw: Any) -> List[WsMessage]:
    """Decode one raw text/binary frame into messages."""
    if isinstance(raw, (str, bytes, bytearray, memoryview)):
        try:
            payload = msgspec.json.decode(raw)
        except msgspec.DecodeError as e:
            raise ProtocolError("Message could not be parsed as JSON", raw) from e
    else:
        payload = raw
    return parse_message(payload)
