"""
Logging System

Usage:
    from poloniex_stream.infrastructure.logging import get_logger

    logger = get_logger('ws.public')
    logger.info("Connected", stream="public")

    # Exchange logger with component
    logger = get_exchange_logger('poloniex', 'ws.dispatcher')
"""

from .interfaces import LogLevel, LoggerInterface
from .logger import StructuredLogger, LoggingTimer
from .factory import (
    LoggerFactory,
    get_logger,
    get_exchange_logger,
    configure_logging,
)
from .structs import (
    LoggingConfig,
    BackendConfig,
    ConsoleBackendConfig,
    FileBackendConfig,
)

__all__ = [
    'LogLevel',
    'LoggerInterface',
    'StructuredLogger',
    'LoggingTimer',
    'LoggerFactory',
    'get_logger',
    'get_exchange_logger',
    'configure_logging',
    'LoggingConfig',
    'BackendConfig',
    'ConsoleBackendConfig',
    'FileBackendConfig',
]
