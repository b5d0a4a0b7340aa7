"""
Core Logging Interfaces

Defines the logger contract used by every component. Components receive
a logger through their constructor and fall back to the factory.
"""

from abc import ABC, abstractmethod
from enum import IntEnum


class LogLevel(IntEnum):
    """Log levels with numeric values matching the stdlib."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LoggerInterface(ABC):
    """Keyword-context logger contract."""

    @abstractmethod
    def debug(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def info(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def warning(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def metric(self, name: str, value: float, **tags) -> None:
        pass

    @abstractmethod
    def bind(self, **context) -> 'LoggerInterface':
        """Return a logger that adds `context` to every record."""
        pass

    @abstractmethod
    def is_enabled_for(self, level: LogLevel) -> bool:
        pass
