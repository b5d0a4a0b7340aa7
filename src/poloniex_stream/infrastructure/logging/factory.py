"""
Logging Factory

Creates and caches logger instances and installs stdlib handlers from a
LoggingConfig struct. All package loggers live under the `poloniex_stream`
root so one configure call covers the whole client.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Dict, Optional

from .logger import StructuredLogger
from .structs import LoggingConfig

ROOT_LOGGER_NAME = "poloniex_stream"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class LoggerFactory:
    """Logging factory - trust config, fail fast."""

    _cached_loggers: Dict[str, StructuredLogger] = {}
    _config: Optional[LoggingConfig] = None
    _handlers: list = []

    @classmethod
    def create_logger(cls, name: str) -> StructuredLogger:
        """Create logger instance, cached by name."""
        if name in cls._cached_loggers:
            return cls._cached_loggers[name]

        config = cls.get_config()
        console = config.console
        qualified = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
        logger = StructuredLogger(
            qualified,
            include_context=console.include_context if console else True,
            max_message_length=console.max_message_length if console else 1000,
        )
        cls._cached_loggers[name] = logger
        return logger

    @classmethod
    def configure(cls, config: LoggingConfig) -> None:
        """Install handlers for `config` on the package root logger."""
        config.validate()
        root = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []

        formatter = logging.Formatter(LOG_FORMAT)
        levels = []

        if config.console and config.console.enabled:
            handler = logging.StreamHandler()
            handler.setLevel(config.console.min_level.upper())
            handler.setFormatter(formatter)
            cls._handlers.append(handler)
            levels.append(handler.level)

        if config.file and config.file.enabled:
            directory = os.path.dirname(config.file.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            handler = RotatingFileHandler(
                config.file.path,
                maxBytes=config.file.max_size_mb * 1024 * 1024,
                backupCount=config.file.backup_count,
            )
            handler.setLevel(config.file.min_level.upper())
            handler.setFormatter(formatter)
            cls._handlers.append(handler)
            levels.append(handler.level)

        for handler in cls._handlers:
            root.addHandler(handler)
        root.setLevel(min(levels) if levels else logging.WARNING)

        cls._config = config
        # Loggers created under the previous config keep stale formatting flags
        cls._cached_loggers.clear()

    @classmethod
    def get_config(cls) -> LoggingConfig:
        if cls._config is None:
            environment = os.getenv('ENVIRONMENT', 'dev').lower()
            if environment == 'prod':
                cls._config = LoggingConfig.default_production()
            elif environment == 'test':
                cls._config = LoggingConfig.default_test()
            else:
                cls._config = LoggingConfig.default_development()
        return cls._config

    @classmethod
    def clear_cache(cls) -> None:
        """Clear cached logger instances."""
        cls._cached_loggers.clear()
        cls._config = None


def get_logger(name: str) -> StructuredLogger:
    """Get logger instance."""
    return LoggerFactory.create_logger(name)


def get_exchange_logger(exchange: str, component: str = None) -> StructuredLogger:
    """Get exchange logger with optional component."""
    name = f"{exchange}.{component}" if component else exchange
    return get_logger(name)


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure handlers from struct, or from the environment default."""
    LoggerFactory.configure(config or LoggerFactory.get_config())
