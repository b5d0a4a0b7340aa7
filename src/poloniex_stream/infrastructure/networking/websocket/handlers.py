"""
WebSocket Handler Registry

Typed registration of consumer callbacks per stream:

    unregister = handlers.on_message("public", Ticker, handle_ticker)
    handlers.on_error("public", handle_error)

Handlers may be plain functions or coroutine functions. They run in
registration order for each inbound frame, and frames are processed in
arrival order. A failing handler is logged and does not stop the others.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, Union

from poloniex_stream.infrastructure.logging import get_logger, LoggerInterface

Handler = Callable[..., Union[None, Awaitable[None]]]
Unregister = Callable[[], None]

EVENT_OPEN = "open"
EVENT_CLOSE = "close"
EVENT_ERROR = "error"
EVENT_RAW = "raw"


class MessageHandlerRegistry:
    """Per-stream message, raw frame and lifecycle handlers."""

    def __init__(self, logger: Optional[LoggerInterface] = None):
        self._message_handlers: Dict[str, List[Tuple[Tuple[type, ...], Handler]]] = {}
        self._event_handlers: Dict[Tuple[str, str], List[Handler]] = {}
        self.logger = logger or get_logger('ws.handlers')

    def on_message(self, stream: str, message_type: Union[Type, Tuple[Type, ...]],
                   handler: Handler) -> Unregister:
        """Call `handler(message)` for decoded messages of `message_type`."""
        types = message_type if isinstance(message_type, tuple) else (message_type,)
        entry = (types, handler)
        handlers = self._message_handlers.setdefault(stream, [])
        handlers.append(entry)
        return self._remover(handlers, entry)

    def on_raw(self, stream: str, handler: Handler) -> Unregister:
        """Call `handler(raw_frame)` before decoding."""
        return self._add_event(stream, EVENT_RAW, handler)

    def on_open(self, stream: str, handler: Handler) -> Unregister:
        """Call `handler()` after the stream opened."""
        return self._add_event(stream, EVENT_OPEN, handler)

    def on_close(self, stream: str, handler: Handler) -> Unregister:
        """Call `handler()` after the stream closed."""
        return self._add_event(stream, EVENT_CLOSE, handler)

    def on_error(self, stream: str, handler: Handler) -> Unregister:
        """Call `handler(error)` for ProtocolError / TransportError."""
        return self._add_event(stream, EVENT_ERROR, handler)

    async def emit_message(self, stream: str, message: Any) -> None:
        for types, handler in list(self._message_handlers.get(stream, ())):
            if isinstance(message, types):
                await self._invoke(stream, handler, message)

    async def emit(self, stream: str, event: str, *args: Any) -> None:
        for handler in list(self._event_handlers.get((stream, event), ())):
            await self._invoke(stream, handler, *args)

    def clear(self) -> None:
        self._message_handlers.clear()
        self._event_handlers.clear()

    def _add_event(self, stream: str, event: str, handler: Handler) -> Unregister:
        handlers = self._event_handlers.setdefault((stream, event), [])
        handlers.append(handler)
        return self._remover(handlers, handler)

    @staticmethod
    def _remover(handlers: list, entry: Any) -> Unregister:
        def unregister() -> None:
            if entry in handlers:
                handlers.remove(entry)
        return unregister

    async def _invoke(self, stream: str, handler: Handler, *args: Any) -> None:
        try:
            result = handler(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.error("Handler failed", stream=stream,
                              handler=getattr(handler, '__name__', repr(handler)),
                              error_type=type(e).__name__, error=str(e))
