"""Chat Hub 帧格式定义

本模块定义了线上帧结构以及各事件的载荷类型。
所有帧都以 JSON 文本传输：

    {"event": "<事件名>", "data": <载荷>}

客户端事件会被解码为带标签的命令变体（JoinRoom / SendMessage），
由路由器按类型分派，而不是按事件名注册回调。
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union

from .types import ClientEvent, ServerEvent, Status
from .exceptions import SerializationException, ValidationException


def presence_time(now: Optional[datetime] = None) -> str:
    """生成在线状态通知使用的本地时间字符串 (HH:MM:SS)"""
    return (now or datetime.now()).strftime("%H:%M:%S")


@dataclass
class Frame:
    """线上帧

    外层只包含事件名和载荷，载荷原样透传。
    """

    event: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event, "data": self.data}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Frame":
        """从字典反序列化

        Raises:
            ValidationException: 缺少 event 字段或 event 不是字符串
        """
        if not isinstance(data, dict):
            raise ValidationException("Frame must be a JSON object")
        event = data.get("event")
        if not isinstance(event, str) or not event:
            raise ValidationException("Frame is missing a string 'event' field")
        return cls(event=event, data=data.get("data"))

    def to_json(self) -> str:
        """序列化为JSON字符串"""
        try:
            return json.dumps(self.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationException(f"Failed to serialize frame: {e}")

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "Frame":
        """从JSON字符串反序列化"""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationException(f"Invalid JSON format: {e}")
        return cls.from_dict(data)


@dataclass
class ChatMessage:
    """聊天消息

    time 是客户端提供的时间字符串，服务器不做解析。
    """

    room: str
    author: str = ""
    message: str = ""
    time: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room": self.room,
            "author": self.author,
            "message": self.message,
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        try:
            return cls(
                room=data["room"],
                author=data.get("author", ""),
                message=data.get("message", ""),
                time=data.get("time", ""),
            )
        except (KeyError, TypeError) as e:
            raise ValidationException(f"Invalid ChatMessage format: {e}")


# === 客户端命令（带标签的变体）===


@dataclass
class JoinRoom:
    """加入房间命令"""

    room_id: str


@dataclass
class SendMessage:
    """发送消息命令

    payload 保留客户端发送的原始字典，广播时原样转发。
    """

    room_id: str
    payload: Dict[str, Any] = field(default_factory=dict)


Command = Union[JoinRoom, SendMessage]


def _require_room(value: Any, event: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationException(f"'{event}' requires a non-empty string room id")
    return value


def command_from_frame(frame: Frame) -> Command:
    """从帧创建命令（工厂函数）

    Raises:
        ValidationException: 未知事件或载荷不合法
    """
    try:
        event = ClientEvent(frame.event)
    except ValueError:
        raise ValidationException(f"Unknown event: {frame.event}")

    if event == ClientEvent.JOIN_ROOM:
        return JoinRoom(room_id=_require_room(frame.data, event.value))

    if not isinstance(frame.data, dict):
        raise ValidationException("'send_message' payload must be an object")
    room_id = _require_room(frame.data.get("room"), event.value)
    return SendMessage(room_id=room_id, payload=frame.data)


# === 服务器事件构建 ===


def status_frame(status: Status) -> Frame:
    """构建 status 帧"""
    return Frame(event=ServerEvent.STATUS.value, data={"status": status.value})


def presence_frame(
    event: ServerEvent, room: str, username: str, now: Optional[datetime] = None
) -> Frame:
    """构建 user_connected / user_disconnected 帧"""
    return Frame(
        event=event.value,
        data={"room": room, "username": username, "time": presence_time(now)},
    )


def join_room_frame(room_id: str) -> Frame:
    """构建 join_room 帧（客户端使用）"""
    return Frame(event=ClientEvent.JOIN_ROOM.value, data=room_id)


def send_message_frame(message: ChatMessage) -> Frame:
    """构建 send_message 帧（客户端使用）"""
    return Frame(event=ClientEvent.SEND_MESSAGE.value, data=message.to_dict())
