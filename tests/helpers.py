"""
Test doubles for the stream client.

FakeWebSocket records sent frames and serves frames pushed by the test.
FakeServer is injected as `connect_method` and hands out FakeWebSockets.
"""

import asyncio
from typing import Any, List, Optional

import msgspec
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

API_KEY = "<POLONIEX_API_KEY>"
API_SECRET = "<POLONIEX_API_SECRET>"
SIGN_TIMESTAMP = "1"
AUTH_SIGNATURE = "H3U+62hjPu3cbAsuFz4gYa/r2HBU92kW4j4M4RZQ9Jo="


class FakeWebSocket:
    """WebSocket double: records sent frames, serves pushed frames from a queue."""

    def __init__(self, url: str, **kwargs):
        self.url = url
        self.kwargs = kwargs
        self.sent: List[Any] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._send_gate: Optional[asyncio.Event] = None
        self._close_gate: Optional[asyncio.Event] = None

    async def send(self, data: str) -> None:
        if self._send_gate is not None:
            await self._send_gate.wait()
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(msgspec.json.decode(data))

    async def recv(self) -> str:
        item = await self._inbox.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        if self._close_gate is not None:
            await self._close_gate.wait()
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(ConnectionClosedOK(None, None))

    # Test controls

    def push(self, payload: Any) -> None:
        """Deliver one inbound frame; non-strings are JSON encoded."""
        if not isinstance(payload, str):
            payload = msgspec.json.encode(payload).decode("utf-8")
        self._inbox.put_nowait(payload)

    def fail(self, error: Optional[BaseException] = None) -> None:
        """Make the next receive fail like a dropped connection."""
        self._inbox.put_nowait(error or ConnectionClosedError(None, None))

    def block_sends(self) -> None:
        self._send_gate = asyncio.Event()

    def release_sends(self) -> None:
        if self._send_gate is not None:
            self._send_gate.set()

    def block_close(self) -> None:
        self._close_gate = asyncio.Event()

    def release_close(self) -> None:
        if self._close_gate is not None:
            self._close_gate.set()


class FakeServer:
    """Connect factory handing out FakeWebSocket instances."""

    def __init__(self):
        self.sockets: List[FakeWebSocket] = []
        self.connect_error: Optional[BaseException] = None
        self.connect_gate: Optional[asyncio.Event] = None

    async def connect(self, url: str, **kwargs) -> FakeWebSocket:
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        ws = FakeWebSocket(url, **kwargs)
        self.sockets.append(ws)
        return ws

    def socket(self, kind: str) -> FakeWebSocket:
        """Most recent socket opened for the `kind` stream."""
        for ws in reversed(self.sockets):
            if ws.url.endswith(f"/{kind}"):
                return ws
        raise LookupError(f"No {kind} socket connected")


async def settle(rounds: int = 10) -> None:
    """Let pending tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)

