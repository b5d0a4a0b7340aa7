"""
Cancellation Signal

Caller-owned token used to abort a pending request. Timeouts are composed
from it:

    signal = CancelSignal.after(5.0)
    await client.ping_public(cancel_signal=signal)
"""

import asyncio
from typing import Any, Callable, List, Optional

CancelCallback = Callable[[Any], None]


class CancelSignal:
    """One-shot cancellation token with synchronous callbacks."""

    __slots__ = ('_cancelled', '_reason', '_callbacks', '_timer')

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: Any = None
        self._callbacks: List[CancelCallback] = []
        self._timer: Optional[asyncio.TimerHandle] = None

    @classmethod
    def after(cls, delay: float) -> 'CancelSignal':
        """Signal that fires on the running loop after `delay` seconds."""
        signal = cls()
        loop = asyncio.get_running_loop()
        signal._timer = loop.call_later(delay, signal.cancel, f"Timed out after {delay}s")
        return signal

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Any:
        return self._reason

    def cancel(self, reason: Any = None) -> None:
        """Fire the signal. Firing twice is a no-op."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(self, callback: CancelCallback) -> None:
        """Register `callback(reason)`; runs immediately if already fired."""
        if self._cancelled:
            callback(self._reason)
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: CancelCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def __repr__(self) -> str:
        return f"CancelSignal(cancelled={self._cancelled}, reason={self._reason!r})"
