from typing import Optional
from msgspec import Struct

DEFAULT_WEBSOCKET_URL = "wss://ws.poloniex.com/ws/"
DEFAULT_SYMBOL = "BTC_USDT"


class WebSocketConfig(Struct, frozen=True):
    """
    WebSocket connection settings.

    Attributes:
        connect_timeout: WebSocket connection timeout in seconds
        ping_interval: Transport-level ping interval in seconds (None disables)
        ping_timeout: Transport-level ping timeout in seconds
        close_timeout: Close handshake timeout in seconds
        max_message_size: Maximum inbound message size in bytes
        max_queue_size: Maximum inbound frame queue size
    """
    connect_timeout: float = 10.0
    ping_interval: Optional[float] = 20.0
    ping_timeout: Optional[float] = 10.0
    close_timeout: float = 5.0
    max_message_size: int = 1048576  # 1MB
    max_queue_size: int = 1000

    def validate(self) -> None:
        """Validate websocket configuration."""
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.ping_interval is not None and self.ping_interval <= 0:
            raise ValueError("ping_interval must be positive")
        if self.ping_timeout is not None and self.ping_timeout <= 0:
            raise ValueError("ping_timeout must be positive")
        if self.close_timeout <= 0:
            raise ValueError("close_timeout must be positive")
        if self.max_message_size <= 0:
            raise ValueError("max_message_size must be positive")
        if self.max_queue_size <= 0:
            raise ValueError("max_queue_size must be positive")


class ExchangeCredentials(Struct, frozen=True):
    """Exchange API credentials."""
    api_key: str = ""
    secret_key: str = ""

    @property
    def has_private_api(self) -> bool:
        """Check if both credentials are provided."""
        return bool(self.api_key) and bool(self.secret_key)

    def get_preview(self) -> str:
        """Get safe preview of credentials for logging."""
        if not self.api_key:
            return "Not configured"
        if len(self.api_key) > 8:
            return f"{self.api_key[:4]}...{self.api_key[-4:]}"
        return "***"

    def validate(self) -> None:
        """Validate credentials (allows empty for public-only mode)."""
        if not self.api_key and not self.secret_key:
            return

        if bool(self.api_key) != bool(self.secret_key):
            raise ValueError("Both api_key and secret_key must be provided together or both empty")


class PoloniexConfig(Struct, frozen=True):
    """
    Complete stream client configuration.

    Attributes:
        websocket_url: Base stream URL, public/private paths are resolved against it
        symbol: Default symbol for subscriptions without explicit symbols
        credentials: API credentials for the private stream
        websocket: Connection settings
    """
    websocket_url: str = DEFAULT_WEBSOCKET_URL
    symbol: str = DEFAULT_SYMBOL
    credentials: ExchangeCredentials = ExchangeCredentials()
    websocket: WebSocketConfig = WebSocketConfig()

    def stream_url(self, kind: str) -> str:
        """Resolve the URL of the `kind` stream ("public" or "private")."""
        base = self.websocket_url
        authority_and_path = base.partition("://")[2]
        if "/" not in authority_and_path:
            base += "/"
        elif not base.endswith("/"):
            # Last path segment is a file, not a directory
            base = base.rsplit("/", 1)[0] + "/"
        return f"{base}{kind}"

    def validate(self) -> None:
        if not self.websocket_url.startswith(("ws://", "wss://")):
            raise ValueError(f"websocket_url must be a ws:// or wss:// URL: {self.websocket_url}")
        if not self.symbol:
            raise ValueError("symbol is required")
        self.credentials.validate()
        self.websocket.validate()
