"""
Structured Logger Implementation

Thin keyword-context logger over the stdlib `logging` module. Context
passed as keyword arguments is rendered after the message:

    logger.info("Connected", stream="public")
    # Connected | stream=public
"""

import logging
import time
from typing import Any, Dict, Optional

from .interfaces import LoggerInterface, LogLevel


class StructuredLogger(LoggerInterface):
    """Stdlib-backed logger with persistent and per-call context."""

    __slots__ = ('name', 'context', '_py_logger', '_include_context', '_max_length')

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None,
                 include_context: bool = True, max_message_length: int = 1000):
        self.name = name
        self.context = context or {}
        self._py_logger = logging.getLogger(name)
        self._include_context = include_context
        self._max_length = max_message_length

    def _format(self, msg: str, context: Dict[str, Any]) -> str:
        if len(msg) > self._max_length:
            msg = msg[:self._max_length] + "..."
        if not self._include_context:
            return msg
        full_context = {**self.context, **context}
        if not full_context:
            return msg
        rendered = " ".join(f"{key}={value}" for key, value in full_context.items())
        return f"{msg} | {rendered}"

    def _log(self, level: LogLevel, msg: str, **context) -> None:
        if not self._py_logger.isEnabledFor(level):
            return
        exc_info = context.pop('exc_info', None)
        self._py_logger.log(level, self._format(msg, context), exc_info=exc_info)

    def debug(self, msg: str, **context) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, msg, **context)

    def info(self, msg: str, **context) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, msg, **context)

    def warning(self, msg: str, **context) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, msg, **context)

    def error(self, msg: str, **context) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, msg, **context)

    def metric(self, name: str, value: float, **tags) -> None:
        """Log metric value at debug level."""
        self._log(LogLevel.DEBUG, f"metric {name}={value}", **tags)

    def bind(self, **context) -> 'StructuredLogger':
        return StructuredLogger(
            self.name,
            {**self.context, **context},
            include_context=self._include_context,
            max_message_length=self._max_length,
        )

    def is_enabled_for(self, level: LogLevel) -> bool:
        return self._py_logger.isEnabledFor(level)


class LoggingTimer:
    """Context manager for timing operations with automatic logging."""

    def __init__(self, logger: LoggerInterface, operation: str, **tags):
        self.logger = logger
        self.operation = operation
        self.tags = tags
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        self.logger.metric(f"{self.operation}_ms", round(self.elapsed_ms, 3), **self.tags)
        if exc_type is not None:
            self.logger.error(f"{self.operation} failed",
                              error_type=exc_type.__name__,
                              **self.tags)

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.start_time is None:
            return 0.0
        end_time = self.end_time or time.perf_counter()
        return (end_time - self.start_time) * 1000
