"""
Connection Manager

Owns one WebSocket handle for one logical stream and its lifecycle:

    CLOSED -> CONNECTING -> OPEN -> CLOSING -> CLOSED

connect() while OPEN and disconnect() while CLOSED are no-ops. Either call
while CONNECTING or CLOSING raises ConnectionStateError naming the state.

Inbound frames are decoded in arrival order. Each decoded message is
offered to the CorrelationEngine first and then to the typed handlers.
Undecodable frames are reported to error handlers and skipped. Socket
failures close the stream and reject every waiter of this stream only.
No reconnection is attempted; recovery is driven by the caller.
"""

import asyncio
from typing import Any, Callable, List, Optional

import msgspec
from websockets import connect
from websockets.exceptions import ConnectionClosed

from poloniex_stream.config.structs import WebSocketConfig
from poloniex_stream.infrastructure.exceptions import (
    ConnectionStateError,
    ProtocolError,
    TransportError,
)
from poloniex_stream.infrastructure.logging import get_logger, LoggerInterface, LoggingTimer
from .correlation import CorrelationEngine
from .handlers import MessageHandlerRegistry, EVENT_OPEN, EVENT_CLOSE, EVENT_ERROR, EVENT_RAW
from .structs import ConnectionState

Decoder = Callable[[Any], List[Any]]


class ConnectionManager:
    """Single-handle WebSocket connection with a strict four-state lifecycle."""

    __slots__ = (
        'stream', 'url', 'config', 'logger',
        '_engine', '_handlers', '_decode', '_connect_method',
        '_state', '_ws', '_reader_task',
    )

    def __init__(
        self,
        stream: str,
        url: str,
        config: WebSocketConfig,
        engine: CorrelationEngine,
        handlers: MessageHandlerRegistry,
        decoder: Decoder,
        connect_method: Optional[Callable[..., Any]] = None,
        logger: Optional[LoggerInterface] = None,
    ):
        self.stream = stream
        self.url = url
        self.config = config
        self.logger = logger or get_logger(f'ws.{stream}')

        self._engine = engine
        self._handlers = handlers
        self._decode = decoder
        self._connect_method = connect_method or connect

        self._state = ConnectionState.CLOSED
        self._ws = None
        self._reader_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ConnectionState:
        """Current connection state"""
        return self._state

    @property
    def is_connected(self) -> bool:
        """True if WebSocket is open and ready"""
        return self._state is ConnectionState.OPEN and self._ws is not None

    async def connect(self) -> None:
        """Open the stream. No-op when already open."""
        if self._state is ConnectionState.OPEN:
            return
        if self._state is not ConnectionState.CLOSED:
            raise ConnectionStateError("connect", self._state, self.stream)

        self._state = ConnectionState.CONNECTING
        self.logger.info("Connecting to WebSocket", url=self.url)

        try:
            with LoggingTimer(self.logger, "ws_connect", stream=self.stream):
                ws = await self._connect_method(
                    self.url,
                    open_timeout=self.config.connect_timeout,
                    ping_interval=self.config.ping_interval,
                    ping_timeout=self.config.ping_timeout,
                    close_timeout=self.config.close_timeout,
                    max_size=self.config.max_message_size,
                    max_queue=self.config.max_queue_size,
                    # Disable compression for CPU optimization
                    compression=None,
                )
        except asyncio.CancelledError:
            self._state = ConnectionState.CLOSED
            raise
        except Exception as e:
            self._state = ConnectionState.CLOSED
            self.logger.error("Failed to connect to WebSocket", url=self.url, error=str(e))
            raise TransportError(f"WebSocket connection failed: {e}", self.stream) from e

        self._ws = ws
        self._state = ConnectionState.OPEN
        self._reader_task = asyncio.create_task(self._read_loop(ws))
        self.logger.info("WebSocket connected", url=self.url)

        await self._handlers.emit(self.stream, EVENT_OPEN)

    async def disconnect(self) -> None:
        """Close the stream. No-op when already closed."""
        if self._state is ConnectionState.CLOSED:
            return
        if self._state is not ConnectionState.OPEN:
            raise ConnectionStateError("disconnect", self._state, self.stream)

        self._state = ConnectionState.CLOSING
        self.logger.info("Disconnecting WebSocket", url=self.url)

        ws, reader = self._ws, self._reader_task
        failure: Optional[Exception] = None
        try:
            await asyncio.wait_for(ws.close(), timeout=self.config.close_timeout)
        except asyncio.TimeoutError:
            self.logger.warning("WebSocket close timeout", timeout=self.config.close_timeout)
        except ConnectionClosed:
            pass
        except Exception as e:
            self.logger.error("WebSocket close failed", url=self.url, error=str(e))
            failure = e
        finally:
            # Always leave CLOSING, also when the close itself is cancelled
            if reader is not None and reader is not asyncio.current_task():
                reader.cancel()
                await asyncio.gather(reader, return_exceptions=True)
            await self._finalize(TransportError("Connection closed", self.stream))

        if failure is not None:
            raise TransportError(f"WebSocket close failed: {failure}", self.stream) from failure
        self.logger.info("WebSocket disconnected", url=self.url)

    async def send(self, payload: Any) -> None:
        """Transmit one frame; dicts and structs are JSON encoded."""
        ws = self._ws
        if ws is None or self._state is not ConnectionState.OPEN:
            raise TransportError("WebSocket is not connected", self.stream)

        data = payload if isinstance(payload, (str, bytes)) else msgspec.json.encode(payload).decode("utf-8")
        try:
            await ws.send(data)
        except ConnectionClosed as e:
            raise TransportError(f"Send failed, connection closed: {e}", self.stream) from e
        except Exception as e:
            raise TransportError(f"Send failed: {e}", self.stream) from e

        self.logger.debug("Frame sent", size=len(data))

    async def _read_loop(self, ws) -> None:
        try:
            while True:
                frame = await ws.recv()
                await self._handle_frame(frame)
        except ConnectionClosed as e:
            error = TransportError(f"Connection closed: {e}", self.stream)
        except Exception as e:
            error = TransportError(f"WebSocket read failed: {e}", self.stream)

        # Caller-driven close finalizes in disconnect()
        if self._ws is ws and self._state is ConnectionState.OPEN:
            self.logger.error("WebSocket failed", url=self.url, error=str(error))
            await self._finalize(error, report=True)

    async def _handle_frame(self, frame: Any) -> None:
        await self._handlers.emit(self.stream, EVENT_RAW, frame)

        try:
            messages = self._decode(frame)
        except ProtocolError as e:
            e.stream = self.stream
            self.logger.warning("Failed to decode frame", error=str(e))
            await self._handlers.emit(self.stream, EVENT_ERROR, e)
            return

        for message in messages:
            self._engine.dispatch(self.stream, message)
            await self._handlers.emit_message(self.stream, message)

    async def _finalize(self, error: TransportError, report: bool = False) -> None:
        self._ws = None
        self._reader_task = None
        self._state = ConnectionState.CLOSED

        self._engine.reject_all(self.stream, error)
        if report:
            await self._handlers.emit(self.stream, EVENT_ERROR, error)
        await self._handlers.emit(self.stream, EVENT_CLOSE)
