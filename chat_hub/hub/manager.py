"""Hub 连接管理器（连接网关）"""

import asyncio
import uuid
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from ..protocol import Frame
from ..utils import get_logger

DisconnectHandler = Callable[["Connection"], Awaitable[None]]

# 关闭码
CLOSE_POLICY_VIOLATION = 1008
CLOSE_TRY_AGAIN_LATER = 1013
CLOSE_GOING_AWAY = 1001


class Connection:
    """客户端连接

    token 是握手时提供的原始令牌，每个事件都会重新校验，
    连接本身从不保存身份信息。
    """

    def __init__(
        self,
        websocket: websockets.ServerConnection,
        token: Optional[str],
        connection_id: Optional[str] = None,
        send_timeout: Optional[float] = None,
    ):
        self.connection_id = connection_id or str(uuid.uuid4())
        self.websocket = websocket
        self.token = token
        self.send_timeout = send_timeout
        self.connected = True
        self.connected_at = datetime.now()
        self._send_lock = asyncio.Lock()
        self._close_task: Optional[asyncio.Task] = None
        self.logger = get_logger("chat_hub.hub.connection")

    async def send_frame(self, frame: Frame) -> bool:
        """发送帧到客户端

        发送失败或超时都只返回 False，不向调用方抛出异常。
        超时的慢消费者会被关闭。

        Args:
            frame: 要发送的帧

        Returns:
            发送是否成功
        """
        if not self.connected:
            return False

        json_str = frame.to_json()
        try:
            if self.send_timeout:
                await asyncio.wait_for(self._send(json_str), self.send_timeout)
            else:
                await self._send(json_str)
            return True
        except asyncio.TimeoutError:
            self.logger.warning(
                f"连接 {self.connection_id} 发送超时 ({self.send_timeout}s)，断开慢消费者"
            )
            self.connected = False
            self._close_task = asyncio.create_task(
                self.close(CLOSE_TRY_AGAIN_LATER, "Slow consumer")
            )
            return False
        except ConnectionClosed:
            self.logger.debug(f"连接 {self.connection_id} 已关闭，丢弃帧 {frame.event}")
            self.connected = False
            return False

    async def _send(self, json_str: str) -> None:
        async with self._send_lock:
            await self.websocket.send(json_str)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """关闭底层 WebSocket"""
        self.connected = False
        try:
            await self.websocket.close(code=code, reason=reason)
        except Exception as e:
            self.logger.debug(f"关闭连接 {self.connection_id} 失败: {e}")


class ConnectionManager:
    """连接管理器

    负责连接的生命周期：分配 ID、登记、断开时按顺序执行清理处理器，
    最后才让连接 ID 失效。这里不做任何授权判断。
    """

    def __init__(
        self, max_connections: Optional[int] = None, send_timeout: Optional[float] = None
    ):
        self.max_connections = max_connections
        self.send_timeout = send_timeout

        # 连接映射：connection_id -> Connection
        self._connections: Dict[str, Connection] = {}

        # 断开处理器：connection_id -> [handler]
        self._disconnect_handlers: Dict[str, List[DisconnectHandler]] = {}

        # 正在断开的连接
        self._closing: Set[str] = set()

        self.logger = get_logger("chat_hub.hub.manager")

    def accept(
        self, websocket: websockets.ServerConnection, token: Optional[str]
    ) -> Optional[Connection]:
        """接受新连接

        Args:
            websocket: WebSocket 连接
            token: 握手时提供的令牌（可以为空）

        Returns:
            连接对象；超过最大连接数时返回 None
        """
        if self.max_connections and len(self._connections) >= self.max_connections:
            self.logger.warning(f"拒绝连接: 超过最大连接数 {self.max_connections}")
            return None

        connection = Connection(websocket, token, send_timeout=self.send_timeout)
        self._connections[connection.connection_id] = connection
        self._disconnect_handlers[connection.connection_id] = []

        self.logger.info(f"客户端连接: {connection.connection_id}")
        return connection

    def on_disconnect(self, connection_id: str, handler: DisconnectHandler) -> None:
        """登记断开处理器

        处理器按登记顺序执行，接收 Connection 作为参数。
        """
        if connection_id not in self._connections:
            raise KeyError(f"Unknown connection: {connection_id}")
        self._disconnect_handlers[connection_id].append(handler)

    async def disconnect(self, connection_id: str) -> bool:
        """断开连接

        先执行全部断开处理器，再移除连接。单个处理器失败只记录日志，
        不会阻止后续清理。

        Returns:
            是否执行了断开（重复调用返回 False）
        """
        connection = self._connections.get(connection_id)
        if not connection or connection_id in self._closing:
            return False

        self._closing.add(connection_id)
        connection.connected = False
        try:
            for handler in self._disconnect_handlers.get(connection_id, []):
                try:
                    await handler(connection)
                except Exception as e:
                    self.logger.error(
                        f"连接 {connection_id} 的断开处理器执行失败: {e}", exc_info=True
                    )
        finally:
            self._disconnect_handlers.pop(connection_id, None)
            self._connections.pop(connection_id, None)
            self._closing.discard(connection_id)

        self.logger.info(f"客户端断开: {connection_id}")
        return True

    async def close(self, connection: Connection, code: int, reason: str = "") -> None:
        """强制关闭连接的传输层

        清理由连接处理任务在退出时调用 disconnect() 完成。
        """
        self.logger.debug(f"强制关闭连接 {connection.connection_id}: {code} {reason}")
        await connection.close(code, reason)

    async def close_all(self, code: int = CLOSE_GOING_AWAY, reason: str = "") -> None:
        """关闭所有连接"""
        connections = list(self._connections.values())
        if connections:
            await asyncio.gather(
                *(conn.close(code, reason) for conn in connections),
                return_exceptions=True,
            )

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        """获取连接"""
        return self._connections.get(connection_id)

    def get_all_connections(self) -> Dict[str, Connection]:
        """获取所有连接的副本"""
        return self._connections.copy()

    def get_stats(self) -> Dict[str, int]:
        """获取连接统计"""
        return {
            "total": len(self._connections),
            "closing": len(self._closing),
        }
