"""Chat Hub 客户端

提供事件处理装饰器和一个收件队列，便于脚本和测试按顺序读取服务器事件。
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from ..protocol import (
    ChatMessage,
    Frame,
    ProtocolException,
    join_room_frame,
    send_message_frame,
)
from ..utils import get_logger


class ChatClient:
    """聊天客户端

    令牌在握手时通过 Authorization: Bearer 头发送。

    用户装饰器：
    - @event(): 注册服务器事件处理器，可按事件名过滤
    """

    def __init__(self, hub_url: str, token: Optional[str] = None):
        self.hub_url = hub_url
        self.token = token
        self.websocket: Optional[websockets.ClientConnection] = None
        self.connected = False

        # 收到的帧按顺序进入队列
        self.inbox: "asyncio.Queue[Frame]" = asyncio.Queue()
        self._event_handlers: List[Callable] = []
        self._receive_task: Optional[asyncio.Task] = None

        self.logger = get_logger("chat_hub.client")

    def event(self, event_name: Optional[str] = None):
        """服务器事件处理器装饰器

        Args:
            event_name: 可选的事件名称过滤，如果指定则只处理该事件

        Usage:
            @client.event("receive_message")
            async def handle_message(data):
                print(data["message"])
        """

        def decorator(func: Callable):
            async def wrapper(frame: Frame):
                if event_name is None or frame.event == event_name:
                    if inspect.iscoroutinefunction(func):
                        await func(frame.data)
                    else:
                        func(frame.data)

            self._event_handlers.append(wrapper)
            return func

        return decorator

    # ===========================================
    # 连接和消息发送
    # ===========================================

    async def connect(self) -> None:
        """连接到 Hub"""
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            self.logger.info(f"连接到 Hub: {self.hub_url}")
            self.websocket = await websockets.connect(
                self.hub_url, additional_headers=headers
            )
            self.connected = True
            self._receive_task = asyncio.create_task(self.receive_loop())
            self.logger.info("连接成功")

        except Exception as e:
            self.logger.error(f"连接失败: {e}")
            self.connected = False
            raise

    async def disconnect(self) -> None:
        """断开连接"""
        if self.websocket:
            try:
                await self.websocket.close()
            except Exception as e:
                self.logger.error(f"断开连接时出错: {e}")
            finally:
                self.connected = False
                if self._receive_task:
                    await asyncio.gather(self._receive_task, return_exceptions=True)
                    self._receive_task = None
                self.logger.info("连接已断开")

    async def send_frame(self, frame: Frame) -> None:
        """发送帧"""
        if not self.connected or not self.websocket:
            raise RuntimeError("客户端未连接")
        await self.websocket.send(frame.to_json())
        self.logger.debug(f"发送事件: {frame.event}")

    async def send_raw(self, raw: str) -> None:
        """发送原始文本（不经过编码）"""
        if not self.connected or not self.websocket:
            raise RuntimeError("客户端未连接")
        await self.websocket.send(raw)

    async def join_room(self, room_id: str) -> None:
        await self.send_frame(join_room_frame(room_id))

    async def send_message(
        self, room: str, author: str, message: str, time: str = ""
    ) -> None:
        await self.send_frame(
            send_message_frame(
                ChatMessage(room=room, author=author, message=message, time=time)
            )
        )

    async def next_event(self, timeout: Optional[float] = 5.0) -> Frame:
        """等待下一个服务器事件

        Raises:
            asyncio.TimeoutError: 超时未收到事件
        """
        return await asyncio.wait_for(self.inbox.get(), timeout)

    async def wait_closed(self, timeout: Optional[float] = 5.0) -> None:
        """等待服务器关闭连接"""
        if self._receive_task:
            await asyncio.wait_for(asyncio.shield(self._receive_task), timeout)

    @property
    def close_code(self) -> Optional[int]:
        if self.websocket is None:
            return None
        return self.websocket.close_code

    async def receive_loop(self) -> None:
        """消息监听循环"""
        try:
            async for raw_message in self.websocket:
                try:
                    frame = Frame.from_json(raw_message)
                except ProtocolException as e:
                    self.logger.error(f"无法解析服务器帧: {e}")
                    continue

                self.inbox.put_nowait(frame)
                await self._dispatch(frame)

        except ConnectionClosed:
            self.logger.info("WebSocket 连接已关闭")
        finally:
            self.connected = False

    async def _dispatch(self, frame: Frame) -> None:
        for handler in self._event_handlers:
            try:
                await handler(frame)
            except Exception as e:
                self.logger.error(f"事件处理器出错: {e}")

    async def __aenter__(self) -> "ChatClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()
