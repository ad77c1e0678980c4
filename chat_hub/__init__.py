"""
Chat Hub

Room-scoped real-time chat over WebSocket with per-event token authorization
"""

__version__ = "1.0.0"
__description__ = "Room-scoped real-time chat hub"

# Protocol core
from .protocol import (
    ClientEvent,
    ServerEvent,
    Status,
    Frame,
    ChatMessage,
    JoinRoom,
    SendMessage,
    ProtocolException,
    ValidationException,
    SerializationException,
)

# Hub server
from .hub import (
    HubServer,
    start_hub_server,
    run_server,
    AuthGate,
    AuthResult,
    Claims,
    TokenVerifier,
    RoomRegistry,
    BroadcastEngine,
    PresenceNotifier,
    ConnectionManager,
    Connection,
    EventRouter,
)

# Client
from .client import ChatClient

# Utilities
from .utils import HubConfig, get_config, configure_logging, get_logger

# Exceptions
from .exceptions import (
    ChatHubError,
    AuthError,
    MissingTokenError,
    MalformedTokenError,
    TokenExpiredError,
    InvalidSignatureError,
    MalformedEventError,
    PresenceDecodeError,
    ConfigError,
)

__all__ = [
    # Version info
    "__version__",
    "__description__",
    # Protocol core
    "ClientEvent",
    "ServerEvent",
    "Status",
    "Frame",
    "ChatMessage",
    "JoinRoom",
    "SendMessage",
    "ProtocolException",
    "ValidationException",
    "SerializationException",
    # Hub server
    "HubServer",
    "start_hub_server",
    "run_server",
    "AuthGate",
    "AuthResult",
    "Claims",
    "TokenVerifier",
    "RoomRegistry",
    "BroadcastEngine",
    "PresenceNotifier",
    "ConnectionManager",
    "Connection",
    "EventRouter",
    # Client
    "ChatClient",
    # Utils
    "HubConfig",
    "get_config",
    "configure_logging",
    "get_logger",
    # Exceptions
    "ChatHubError",
    "AuthError",
    "MissingTokenError",
    "MalformedTokenError",
    "TokenExpiredError",
    "InvalidSignatureError",
    "MalformedEventError",
    "PresenceDecodeError",
    "ConfigError",
]


def get_version() -> str:
    """Get the current version of the Chat Hub package."""
    return __version__


def create_hub_server(host: str = "localhost", port: int = 3001) -> HubServer:
    """Create a new Hub server instance from the environment configuration."""
    config = HubConfig.from_env()
    config.update(host=host, port=port)
    return HubServer(config)


# Aliases
Hub = HubServer
