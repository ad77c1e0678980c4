"""Chat Hub 类型定义

本模块定义了双向事件名称的枚举。
"""

from enum import Enum


class ClientEvent(Enum):
    """客户端 -> 服务器 事件"""

    JOIN_ROOM = "join_room"
    SEND_MESSAGE = "send_message"


class ServerEvent(Enum):
    """服务器 -> 客户端 事件"""

    STATUS = "status"
    USER_CONNECTED = "user_connected"
    RECEIVE_MESSAGE = "receive_message"
    USER_DISCONNECTED = "user_disconnected"


class Status(Enum):
    """status 事件携带的状态值"""

    UNAUTHORIZED = "unauthorized"
