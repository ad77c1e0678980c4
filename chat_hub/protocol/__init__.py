"""Chat Hub 协议核心模块"""

from .exceptions import (
    ProtocolException,
    ValidationException,
    SerializationException,
)
from .types import ClientEvent, ServerEvent, Status
from .messages import (
    # 帧
    Frame,
    ChatMessage,
    # 命令变体
    JoinRoom,
    SendMessage,
    Command,
    # 工厂函数
    command_from_frame,
    status_frame,
    presence_frame,
    join_room_frame,
    send_message_frame,
    presence_time,
)

__all__ = [
    # 异常类
    "ProtocolException",
    "ValidationException",
    "SerializationException",
    # 类型枚举
    "ClientEvent",
    "ServerEvent",
    "Status",
    # 帧
    "Frame",
    "ChatMessage",
    # 命令变体
    "JoinRoom",
    "SendMessage",
    "Command",
    # 工厂函数
    "command_from_frame",
    "status_frame",
    "presence_frame",
    "join_room_frame",
    "send_message_frame",
    "presence_time",
]
