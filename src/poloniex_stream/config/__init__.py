from .structs import (
    WebSocketConfig,
    ExchangeCredentials,
    PoloniexConfig,
    DEFAULT_WEBSOCKET_URL,
    DEFAULT_SYMBOL,
)
from .config_manager import load_config, substitute_env_vars

__all__ = [
    'WebSocketConfig',
    'ExchangeCredentials',
    'PoloniexConfig',
    'DEFAULT_WEBSOCKET_URL',
    'DEFAULT_SYMBOL',
    'load_config',
    'substitute_env_vars',
]
