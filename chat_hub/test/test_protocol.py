"""测试帧编解码和命令变体"""

import json
import re
from datetime import datetime

import pytest

from chat_hub.protocol import (
    ChatMessage,
    Frame,
    JoinRoom,
    SendMessage,
    SerializationException,
    ServerEvent,
    Status,
    ValidationException,
    command_from_frame,
    join_room_frame,
    presence_frame,
    send_message_frame,
    status_frame,
)


def test_frame_wire_format():
    frame = Frame(event="join_room", data="r1")
    assert json.loads(frame.to_json()) == {"event": "join_room", "data": "r1"}
    assert Frame.from_json('{"event": "join_room", "data": "r1"}') == frame


def test_frame_from_invalid_json():
    with pytest.raises(SerializationException):
        Frame.from_json("not json")


@pytest.mark.parametrize("raw", ['{"data": "r1"}', '["join_room"]', '{"event": ""}'])
def test_frame_requires_event_name(raw):
    with pytest.raises(ValidationException):
        Frame.from_json(raw)


def test_join_room_command():
    assert command_from_frame(join_room_frame("r1")) == JoinRoom(room_id="r1")


@pytest.mark.parametrize("data", [None, "", 42, {"room": "r1"}])
def test_join_room_requires_string_room(data):
    with pytest.raises(ValidationException):
        command_from_frame(Frame(event="join_room", data=data))


def test_send_message_keeps_payload_verbatim():
    payload = {"room": "r1", "author": "Alice", "message": "hi", "time": "10:00", "extra": 1}
    command = command_from_frame(Frame(event="send_message", data=payload))
    assert command == SendMessage(room_id="r1", payload=payload)
    assert command.payload is payload


@pytest.mark.parametrize(
    "data",
    [
        {"author": "Alice", "message": "hi", "time": "10:00"},
        {"room": "", "message": "hi"},
        {"room": None},
        "r1",
        None,
    ],
)
def test_send_message_without_room_is_rejected(data):
    with pytest.raises(ValidationException):
        command_from_frame(Frame(event="send_message", data=data))


def test_unknown_event_is_rejected():
    with pytest.raises(ValidationException, match="Unknown event"):
        command_from_frame(Frame(event="leave_room", data="r1"))


def test_send_message_frame_from_chat_message():
    message = ChatMessage(room="r1", author="Alice", message="hi", time="10:00")
    frame = send_message_frame(message)
    assert frame.event == "send_message"
    assert frame.data == {"room": "r1", "author": "Alice", "message": "hi", "time": "10:00"}
    assert ChatMessage.from_dict(frame.data) == message


def test_status_frame():
    assert status_frame(Status.UNAUTHORIZED).to_dict() == {
        "event": "status",
        "data": {"status": "unauthorized"},
    }


def test_presence_frame():
    frame = presence_frame(
        ServerEvent.USER_DISCONNECTED, "r2", "Bob", datetime(2024, 1, 1, 9, 5, 7)
    )
    assert frame.event == "user_disconnected"
    assert frame.data == {"room": "r2", "username": "Bob", "time": "09:05:07"}


def test_presence_frame_defaults_to_now():
    frame = presence_frame(ServerEvent.USER_CONNECTED, "r1", "Alice")
    assert re.fullmatch(r"\d{2}:\d{2}:\d{2}", frame.data["time"])
