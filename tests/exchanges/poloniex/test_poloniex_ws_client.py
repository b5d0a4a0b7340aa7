"""
Poloniex WebSocket Client Tests

End-to-end behaviour of PoloniexWebsocketClient against in-memory sockets:
- command / reply correlation without request ids
- cancellation and transport failure isolation
- private stream authentication
- pull-based event streams
"""

import asyncio

import pytest

from poloniex_stream.config import PoloniexConfig
from poloniex_stream.infrastructure.exceptions import (
    AbortError,
    ApplicationError,
    AuthError,
    CredentialsMissingError,
    TransportError,
)
from poloniex_stream.infrastructure.networking.websocket import CancelSignal, ConnectionState
from poloniex_stream.exchanges.poloniex import PoloniexWebsocketClient
from poloniex_stream.exchanges.poloniex.structs import (
    AuthResult,
    BalanceMessage,
    CandleMessage,
    ErrorMessage,
    Heartbeat,
    Pong,
    SubscriptionEvent,
    SubscriptionList,
    Ticker,
    TradeMessage,
    UnsubscribeAll,
)

from tests.helpers import API_KEY, AUTH_SIGNATURE, FakeServer, settle


def trade_message(trade_id: int, price: str = "104") -> dict:
    return {
        "channel": "trades",
        "data": [{
            "symbol": "BTC_USDT", "amount": "70", "takerSide": "buy", "quantity": "4",
            "createTime": 1648059516810, "price": price, "id": trade_id, "ts": 1648059516832,
        }],
    }


def candle_message(channel: str, close: str) -> dict:
    return {
        "channel": channel,
        "data": [{
            "symbol": "BTC_USDT", "amount": "0", "high": close, "quantity": "0", "tradeCount": 0,
            "low": close, "closeTime": 1648057199999, "startTime": 1648057140000,
            "close": close, "open": close, "ts": 1648057141081,
        }],
    }


def balance_message(available: str) -> dict:
    return {
        "channel": "balances",
        "data": [{
            "changeTime": 1657312008411, "accountId": "1234", "accountType": "SPOT",
            "eventType": "place_order", "available": available, "currency": "BTC",
            "id": 60018450912695040, "userId": 12345, "hold": "16.332", "ts": 1657312008443,
        }],
    }


async def start(coro):
    """Run `coro` as a task and let it reach its reply wait."""
    task = asyncio.create_task(coro)
    await settle()
    return task


async def next_message(stream):
    return await stream.__anext__()


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_streams_connect_independently(self, client, server):
        await client.connect_public()

        assert client.public_state is ConnectionState.OPEN
        assert client.private_state is ConnectionState.CLOSED
        assert server.socket("public").url == "wss://ws.poloniex.com/ws/public"

        await client.connect_private()
        assert server.socket("private").url == "wss://ws.poloniex.com/ws/private"

        await client.disconnect_public()
        assert client.public_state is ConnectionState.CLOSED
        assert client.private_state is ConnectionState.OPEN
        await client.close()
        assert client.private_state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_context_manager_closes_streams(self, config, server):
        async with PoloniexWebsocketClient(config, connect_method=server.connect) as client:
            await client.connect_public()
            await client.connect_private()

        assert client.public_state is ConnectionState.CLOSED
        assert client.private_state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_command_requires_connection(self, client):
        with pytest.raises(TransportError, match="WebSocket is not connected"):
            await client.ping_public()

    @pytest.mark.asyncio
    async def test_raw_send(self, client, server):
        await client.connect_public()
        await client.send({"event": "ping"}, "public")

        assert server.socket("public").sent == [{"event": "ping"}]
        await client.close()


class TestCommands:

    @pytest.mark.asyncio
    async def test_ping(self, client, server):
        await client.connect_public()
        ws = server.socket("public")

        task = await start(client.ping_public())
        assert ws.sent == [{"event": "ping"}]
        ws.push({"event": "pong"})

        assert isinstance(await task, Pong)
        assert client.engine.pending() == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_subscribe_uses_default_symbol(self, client, server):
        await client.connect_public()
        ws = server.socket("public")

        task = await start(client.subscribe_trades())
        assert ws.sent == [{"event": "subscribe", "channel": ["trades"], "symbols": ["BTC_USDT"]}]
        ws.push({"event": "subscribe", "channel": "trades", "symbols": ["BTC_USDT"]})

        reply = await task
        assert isinstance(reply, SubscriptionEvent)
        assert reply.channel == "trades"
        await client.close()

    @pytest.mark.asyncio
    async def test_out_of_order_acknowledgements(self, client, server):
        await client.connect_public()
        ws = server.socket("public")

        ticker = await start(client.subscribe_ticker("ETH_USDT"))
        trades = await start(client.subscribe_trades(["BTC_USDT", "ETH_USDT"]))

        ws.push({"event": "subscribe", "channel": "trades", "symbols": ["BTC_USDT", "ETH_USDT"]})
        await settle()
        assert trades.done()
        assert not ticker.done()

        ws.push({"event": "subscribe", "channel": "ticker", "symbols": ["ETH_USDT"]})

        assert (await ticker).channel == "ticker"
        assert (await trades).channel == "trades"
        await client.close()

    @pytest.mark.asyncio
    async def test_unsubscribe_is_not_confused_with_subscribe(self, client, server):
        await client.connect_public()
        ws = server.socket("public")

        task = await start(client.unsubscribe_trades())
        ws.push({"event": "subscribe", "channel": "trades", "symbols": ["BTC_USDT"]})
        await settle()
        assert not task.done()

        ws.push({"event": "unsubscribe", "channel": "trades", "symbols": ["BTC_USDT"]})
        assert (await task).event == "unsubscribe"
        await client.close()

    @pytest.mark.asyncio
    async def test_book_subscription_carries_depth(self, client, server):
        await client.connect_public()
        ws = server.socket("public")

        task = await start(client.subscribe_book(depth=10))
        assert ws.sent == [{"event": "subscribe", "channel": ["book"], "depth": 10, "symbols": ["BTC_USDT"]}]
        ws.push({"event": "subscribe", "channel": "book", "symbols": ["BTC_USDT"]})

        await task
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_rejected_before_sending(self, client, server):
        await client.connect_public()

        with pytest.raises(ValueError, match="depth"):
            await client.subscribe_book(depth=7)
        with pytest.raises(ValueError, match="depth"):
            client.books(depth=7)
        with pytest.raises(ValueError, match="candle channel"):
            await client.subscribe_candles("candles_minute_2")

        assert server.socket("public").sent == []
        await client.close()

    @pytest.mark.asyncio
    async def test_service_commands(self, client, server):
        await client.connect_private()
        ws = server.socket("private")

        listing = await start(client.get_private_subscriptions())
        assert ws.sent[-1] == {"event": "list_subscriptions"}
        ws.push({"subscriptions": ["orders"]})
        reply = await listing
        assert isinstance(reply, SubscriptionList)
        assert reply.subscriptions == ["orders"]

        cleared = await start(client.unsubscribe_private())
        assert ws.sent[-1] == {"event": "unsubscribe_all"}
        ws.push({"event": "unsubscribe_all", "channel": "all"})
        assert isinstance(await cleared, UnsubscribeAll)
        await client.close()

    @pytest.mark.asyncio
    async def test_balances_subscription_has_no_symbols(self, client, server):
        await client.connect_private()
        ws = server.socket("private")

        task = await start(client.subscribe_balances())
        assert ws.sent == [{"event": "subscribe", "channel": ["balances"]}]
        ws.push({"event": "subscribe", "channel": "balances"})

        await task
        await client.close()

    @pytest.mark.asyncio
    async def test_error_reply_rejects_pending_command(self, client, server):
        await client.connect_public()
        ws = server.socket("public")

        task = await start(client.subscribe("public", "bogus", "BTC_USDT"))
        ws.push({"event": "error", "message": "Subscription failed"})

        with pytest.raises(ApplicationError) as exc_info:
            await task
        assert str(exc_info.value) == "Subscription failed"
        assert isinstance(exc_info.value.reply, ErrorMessage)
        assert exc_info.value.stream == "public"
        await client.close()


class TestCancellation:

    @pytest.mark.asyncio
    async def test_signal_fired_before_send(self, client, server):
        await client.connect_public()
        signal = CancelSignal()
        signal.cancel("not needed")

        with pytest.raises(AbortError) as exc_info:
            await client.ping_public(cancel_signal=signal)

        assert exc_info.value.reason == "not needed"
        assert server.socket("public").sent == []
        assert client.engine.pending() == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_signal_fired_during_send(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        ws.block_sends()
        signal = CancelSignal()

        task = await start(client.ping_public(cancel_signal=signal))
        signal.cancel()
        ws.release_sends()

        with pytest.raises(AbortError, match="The request has been aborted"):
            await task
        assert client.engine.pending() == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_cancel_affects_only_its_request(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        signal = CancelSignal()

        cancelled = await start(client.ping_public(cancel_signal=signal))
        survivor = await start(client.ping_public())

        signal.cancel()
        with pytest.raises(AbortError):
            await cancelled

        ws.push({"event": "pong"})
        assert isinstance(await survivor, Pong)
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_signal(self, client, server):
        await client.connect_public()

        with pytest.raises(AbortError) as exc_info:
            await client.ping_public(cancel_signal=CancelSignal.after(0.01))

        assert "Timed out" in exc_info.value.reason
        assert client.public_state is ConnectionState.OPEN
        await client.close()


class TestTransportFailure:

    @pytest.mark.asyncio
    async def test_public_failure_leaves_private_pending(self, client, server):
        await client.connect_public()
        await client.connect_private()

        public_tasks = [
            await start(client.ping_public()),
            await start(client.get_public_subscriptions()),
            await start(client.subscribe_trades()),
        ]
        private_task = await start(client.ping_private())

        server.socket("public").fail()
        await settle()

        for task in public_tasks:
            with pytest.raises(TransportError) as exc_info:
                await task
            assert exc_info.value.stream == "public"
        assert client.public_state is ConnectionState.CLOSED
        assert not private_task.done()

        server.socket("private").push({"event": "pong"})
        assert isinstance(await private_task, Pong)
        await client.close()

    @pytest.mark.asyncio
    async def test_reconnect_is_caller_driven(self, client, server):
        await client.connect_public()
        server.socket("public").fail()
        await settle()
        assert client.public_state is ConnectionState.CLOSED
        assert len(server.sockets) == 1

        await client.connect_public()
        assert client.public_state is ConnectionState.OPEN
        assert len(server.sockets) == 2
        await client.close()


class TestAuth:

    @pytest.mark.asyncio
    async def test_auth_success(self, client, server):
        await client.connect_private()
        ws = server.socket("private")

        task = await start(client.auth())
        assert ws.sent == [{
            "event": "subscribe",
            "channel": ["auth"],
            "params": {
                "key": API_KEY,
                "signature": AUTH_SIGNATURE,
                "signTimestamp": "1",
                "signatureMethod": "HmacSHA256",
                "signatureVersion": "1",
            },
        }]
        ws.push({"channel": "auth", "data": {"success": True, "ts": 1645597033915}})

        reply = await task
        assert isinstance(reply, AuthResult)
        assert reply.data.success
        await client.close()

    @pytest.mark.asyncio
    async def test_auth_failure(self, client, server):
        await client.connect_private()
        ws = server.socket("private")

        task = await start(client.auth())
        ws.push({"channel": "auth", "data": {"success": False, "message": "Authentication failed!",
                                             "ts": 1645597033915}})

        with pytest.raises(AuthError) as exc_info:
            await task
        assert str(exc_info.value) == "Authentication failed!"
        assert isinstance(exc_info.value.reply, AuthResult)
        assert client.private_state is ConnectionState.OPEN
        await client.close()

    @pytest.mark.asyncio
    async def test_auth_without_credentials(self, server):
        client = PoloniexWebsocketClient(PoloniexConfig(), connect_method=server.connect)
        await client.connect_private()

        with pytest.raises(CredentialsMissingError, match="Auth credentials are missing"):
            await client.auth()

        assert server.socket("private").sent == []
        await client.close()

    @pytest.mark.asyncio
    async def test_custom_signer(self, config, server):
        calls = []

        def signer(method, path, query, key, secret, timestamp):
            calls.append((method, path, query))
            return "custom-signature"

        client = PoloniexWebsocketClient(config, connect_method=server.connect, signer=signer,
                                         timestamp_factory=lambda: "1700000000000")
        await client.connect_private()

        task = await start(client.auth())
        sent = server.socket("private").sent[0]
        assert sent["params"]["signature"] == "custom-signature"
        assert calls == [("GET", "/ws", "signTimestamp=1700000000000")]

        task.cancel()
        await client.close()


class TestEventStreams:

    @pytest.mark.asyncio
    async def test_trades_yield_in_arrival_order(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        stream = client.trades()

        first = await start(next_message(stream))
        assert ws.sent == [{"event": "subscribe", "channel": ["trades"], "symbols": ["BTC_USDT"]}]
        ws.push({"event": "subscribe", "channel": "trades", "symbols": ["BTC_USDT"]})
        await settle()
        ws.push(trade_message(1))
        message = await first
        assert isinstance(message, TradeMessage)
        assert message.data[0].id == 1

        for trade_id in (2, 3):
            pull = await start(next_message(stream))
            ws.push(trade_message(trade_id))
            assert (await pull).data[0].id == trade_id

        assert len(ws.sent) == 1
        await stream.aclose()
        await client.close()

    @pytest.mark.asyncio
    async def test_candles_filter_by_channel(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        stream = client.candles("candles_minute_5")

        pull = await start(next_message(stream))
        ws.push({"event": "subscribe", "channel": "candles_minute_5", "symbols": ["BTC_USDT"]})
        await settle()
        ws.push(candle_message("candles_minute_1", "1.0"))
        await settle()
        assert not pull.done()

        ws.push(candle_message("candles_minute_5", "5.0"))
        message = await pull
        assert isinstance(message, CandleMessage)
        assert message.data[0].close == "5.0"

        await stream.aclose()
        await client.close()

    @pytest.mark.asyncio
    async def test_balances_stream(self, client, server):
        await client.connect_private()
        ws = server.socket("private")
        stream = client.balances()

        pull = await start(next_message(stream))
        ws.push({"event": "subscribe", "channel": "balances"})
        await settle()
        ws.push(balance_message("10.5"))

        message = await pull
        assert isinstance(message, BalanceMessage)
        assert message.data[0].available == "10.5"
        await stream.aclose()
        await client.close()

    @pytest.mark.asyncio
    async def test_stream_fails_on_transport_error(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        stream = client.trades()

        pull = await start(next_message(stream))
        ws.push({"event": "subscribe", "channel": "trades", "symbols": ["BTC_USDT"]})
        await settle()
        ws.fail()

        with pytest.raises(TransportError):
            await pull
        await client.close()

    @pytest.mark.asyncio
    async def test_stream_cancellation(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        signal = CancelSignal()
        stream = client.trades(cancel_signal=signal)

        pull = await start(next_message(stream))
        ws.push({"event": "subscribe", "channel": "trades", "symbols": ["BTC_USDT"]})
        await settle()
        signal.cancel("stop")

        with pytest.raises(AbortError):
            await pull
        assert client.public_state is ConnectionState.OPEN
        await client.close()

    @pytest.mark.asyncio
    async def test_listen_positional_feed(self, client, server):
        await client.connect_public()
        ws = server.socket("public")
        stream = client.listen("public", Ticker, where=lambda ticker: ticker.currency_pair == "BTC_SC")

        pull = await start(next_message(stream))
        ws.push([1010])
        ws.push([1002, None, [150, "0.00000098", "0.00000099", "0.00000098", "0.01030927",
                              "23.24910068", "23685243.40788439", 0, "0.00000100", "0.00000096"]])

        ticker = await pull
        assert ticker.currency_pair == "BTC_SC"
        assert ws.sent == []
        await stream.aclose()
        await client.close()

    @pytest.mark.asyncio
    async def test_listen_requires_connection(self, client):
        with pytest.raises(TransportError, match="WebSocket is not connected"):
            await client.listen("private").__anext__()


class TestHandlers:

    @pytest.mark.asyncio
    async def test_message_handlers_receive_decoded_messages(self, client, server):
        heartbeats = []
        trades = []
        client.on_message("public", Heartbeat, heartbeats.append)
        unregister = client.on_message("public", TradeMessage, trades.append)
        await client.connect_public()
        ws = server.socket("public")

        ws.push([1010])
        ws.push(trade_message(1))
        await settle()
        unregister()
        ws.push(trade_message(2))
        await settle()

        assert [heartbeat.channel_id for heartbeat in heartbeats] == [1010]
        assert [message.data[0].id for message in trades] == [1]
        await client.close()

    @pytest.mark.asyncio
    async def test_lifecycle_handlers(self, client, server):
        events = []
        client.on_open("private", lambda: events.append("open"))
        client.on_close("private", lambda: events.append("close"))
        client.on_error("private", lambda error: events.append(type(error).__name__))

        await client.connect_private()
        server.socket("private").push("not json")
        await settle()
        await client.disconnect_private()

        assert events == ["open", "ProtocolError", "close"]
