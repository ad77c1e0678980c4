"""
Hub 服务器模块

实时房间广播：
- 服务器实现
- 授权闸门与令牌校验
- 房间注册表、广播与在线状态通知
- 连接管理
"""

from .server import HubServer, start_hub_server, run_server, extract_token
from .router import EventRouter
from .manager import ConnectionManager, Connection
from .auth import AuthGate, AuthResult, Claims, TokenVerifier
from .rooms import RoomRegistry
from .broadcast import BroadcastEngine
from .presence import PresenceNotifier

__all__ = [
    "HubServer",
    "start_hub_server",
    "run_server",
    "extract_token",
    "EventRouter",
    "ConnectionManager",
    "Connection",
    "AuthGate",
    "AuthResult",
    "Claims",
    "TokenVerifier",
    "RoomRegistry",
    "BroadcastEngine",
    "PresenceNotifier",
]
