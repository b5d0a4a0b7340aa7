"""
Correlation Engine

Matches inbound messages to outstanding requests without request ids.
Each request registers a Waiter holding a predicate; every decoded
message on a stream is offered to all outstanding Waiters of that
stream, in registration order, and every Waiter whose predicate accepts
it is resolved with that message.

A Waiter settles at most once and leaves the outstanding set as soon as
it settles: on match, on CancelSignal, on stream failure, or when the
awaiting task is cancelled.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from poloniex_stream.infrastructure.exceptions import AbortError
from poloniex_stream.infrastructure.logging import get_logger, LoggerInterface
from .cancellation import CancelSignal

Predicate = Callable[[Any], bool]


class Waiter:
    """Outstanding request for the first message accepted by `predicate`."""

    __slots__ = ('stream', 'predicate', 'future', 'cancel_signal', '_on_cancel')

    def __init__(self, stream: str, predicate: Predicate, future: asyncio.Future,
                 cancel_signal: Optional[CancelSignal] = None):
        self.stream = stream
        self.predicate = predicate
        self.future = future
        self.cancel_signal = cancel_signal
        self._on_cancel = None

    @property
    def done(self) -> bool:
        return self.future.done()

    def __await__(self):
        return self.future.__await__()

    def __repr__(self) -> str:
        return f"Waiter(stream={self.stream}, done={self.done})"


class CorrelationEngine:
    """Per-stream ordered collections of predicate waiters."""

    def __init__(self, logger: Optional[LoggerInterface] = None):
        self._waiters: Dict[str, List[Waiter]] = {}
        self.logger = logger or get_logger('ws.correlation')

    def register(self, stream: str, predicate: Predicate,
                 cancel_signal: Optional[CancelSignal] = None) -> Waiter:
        """
        Register a waiter and return it without suspending.

        A signal that has already fired yields a waiter rejected with
        AbortError that never enters the outstanding set.
        """
        future = asyncio.get_running_loop().create_future()
        waiter = Waiter(stream, predicate, future, cancel_signal)

        if cancel_signal is not None and cancel_signal.cancelled:
            future.set_exception(AbortError(reason=cancel_signal.reason, stream=stream))
            return waiter

        self._waiters.setdefault(stream, []).append(waiter)
        # Awaiting task cancelled: future is cancelled under us
        future.add_done_callback(lambda _: self._discard(waiter))

        if cancel_signal is not None:
            def on_cancel(reason: Any) -> None:
                if self._settle(waiter, error=AbortError(reason=reason, stream=stream)):
                    self.logger.debug("Waiter aborted", stream=stream, reason=reason)

            waiter._on_cancel = on_cancel
            cancel_signal.add_callback(on_cancel)

        return waiter

    async def wait(self, stream: str, predicate: Predicate,
                   cancel_signal: Optional[CancelSignal] = None) -> Any:
        """Suspend until a message on `stream` satisfies `predicate`."""
        return await self.register(stream, predicate, cancel_signal)

    def dispatch(self, stream: str, message: Any) -> int:
        """Offer `message` to every outstanding waiter of `stream`; returns matches."""
        waiters = self._waiters.get(stream)
        if not waiters:
            return 0

        matched = 0
        for waiter in list(waiters):
            if waiter.done:
                continue
            try:
                accepted = waiter.predicate(message)
            except Exception as e:
                self.logger.warning("Waiter predicate failed", stream=stream, error=str(e))
                self._settle(waiter, error=e)
                continue
            if accepted:
                self._settle(waiter, result=message)
                matched += 1

        if matched:
            self.logger.debug("Waiters resolved", stream=stream, count=matched,
                              subject=getattr(message, 'subject', None))
        return matched

    def reject_all(self, stream: str, error: BaseException) -> int:
        """Reject every outstanding waiter of `stream` with `error`."""
        waiters = self._waiters.pop(stream, [])
        rejected = 0
        for waiter in waiters:
            if self._settle(waiter, error=error):
                rejected += 1
        if rejected:
            self.logger.debug("Waiters rejected", stream=stream, count=rejected,
                              error=type(error).__name__)
        return rejected

    def pending(self, stream: Optional[str] = None) -> int:
        """Number of outstanding waiters, for one stream or all."""
        if stream is not None:
            return len(self._waiters.get(stream, ()))
        return sum(len(waiters) for waiters in self._waiters.values())

    def _settle(self, waiter: Waiter, result: Any = None,
                error: Optional[BaseException] = None) -> bool:
        if waiter.done:
            return False
        self._discard(waiter)
        if error is not None:
            waiter.future.set_exception(error)
        else:
            waiter.future.set_result(result)
        return True

    def _discard(self, waiter: Waiter) -> None:
        waiters = self._waiters.get(waiter.stream)
        if waiters is not None:
            try:
                waiters.remove(waiter)
            except ValueError:
                pass
            if not waiters:
                del self._waiters[waiter.stream]

        if waiter._on_cancel is not None and waiter.cancel_signal is not None:
            waiter.cancel_signal.remove_callback(waiter._on_cancel)
            waiter._on_cancel = None
