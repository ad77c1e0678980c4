"""Hub 事件路由器"""

from typing import Union

from ..exceptions import AuthError, MalformedEventError
from ..protocol import (
    Command,
    Frame,
    JoinRoom,
    ProtocolException,
    SendMessage,
    ServerEvent,
    Status,
    command_from_frame,
    status_frame,
)
from ..utils import get_logger
from .auth import AuthGate, Claims
from .broadcast import BroadcastEngine
from .manager import CLOSE_POLICY_VIOLATION, Connection, ConnectionManager
from .presence import PresenceNotifier
from .rooms import RoomRegistry


class EventRouter:
    """事件路由器

    每个入站帧依次经过：授权闸门 -> 解码为命令变体 -> 分派到
    房间注册表（加入）或广播引擎（消息）。
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        auth_gate: AuthGate,
        registry: RoomRegistry,
        broadcaster: BroadcastEngine,
        presence: PresenceNotifier,
    ):
        self.connection_manager = connection_manager
        self.auth_gate = auth_gate
        self.registry = registry
        self.broadcaster = broadcaster
        self.presence = presence
        self.logger = get_logger("chat_hub.hub.router")

    async def route(self, connection: Connection, raw: Union[str, bytes]) -> bool:
        """路由一个入站帧

        Args:
            connection: 发送者连接
            raw: 原始帧文本

        Returns:
            连接是否可以继续处理后续帧；授权失败时返回 False
        """
        result = self.auth_gate.authorize(connection)
        if not result.ok:
            await self.reject(connection, result.error)
            return False

        try:
            command = self.decode(raw)
            await self.dispatch(connection, command, result.claims)
        except MalformedEventError as e:
            self.logger.warning(
                f"忽略连接 {connection.connection_id} 的非法事件: {e.message}"
            )
        return True

    def decode(self, raw: Union[str, bytes]) -> Command:
        """解码原始帧为命令

        Raises:
            MalformedEventError: 帧无法解析或事件不合法
        """
        try:
            return command_from_frame(Frame.from_json(raw))
        except ProtocolException as e:
            raise MalformedEventError(str(e))

    async def dispatch(self, connection: Connection, command: Command, claims: Claims) -> None:
        """按命令类型分派"""
        if isinstance(command, JoinRoom):
            await self._handle_join(connection, command, claims)
        elif isinstance(command, SendMessage):
            await self._handle_send(connection, command)
        else:
            raise MalformedEventError(f"Unsupported command: {type(command).__name__}")

    async def _handle_join(self, connection: Connection, command: JoinRoom, claims: Claims) -> None:
        joined = await self.registry.join(connection.connection_id, command.room_id)
        if not joined:
            return
        await self.presence.user_joined(connection, command.room_id, claims)

    async def _handle_send(self, connection: Connection, command: SendMessage) -> None:
        delivered = await self.broadcaster.broadcast(
            command.room_id,
            connection.connection_id,
            ServerEvent.RECEIVE_MESSAGE,
            command.payload,
        )
        self.logger.info(
            f"房间 {command.room_id} 收到 {command.payload.get('author')} 的消息，"
            f"投递 {delivered} 个连接"
        )

    async def reject(self, connection: Connection, error: AuthError) -> None:
        """拒绝未授权的连接：发送一次 status 后强制断开"""
        self.logger.info(
            f"连接 {connection.connection_id} 未授权 ({error.error_code})，断开连接"
        )
        await connection.send_frame(status_frame(Status.UNAUTHORIZED))
        await self.connection_manager.close(
            connection, CLOSE_POLICY_VIOLATION, Status.UNAUTHORIZED.value
        )
