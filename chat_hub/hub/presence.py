"""Hub 在线状态通知"""

from datetime import datetime
from typing import Callable, Iterable

from ..exceptions import AuthError, PresenceDecodeError
from ..protocol import ServerEvent, presence_frame
from ..utils import get_logger
from .auth import Claims, TokenVerifier
from .broadcast import BroadcastEngine
from .manager import Connection


class PresenceNotifier:
    """在加入房间和断开连接时向房间内其他成员广播带身份的通知"""

    def __init__(
        self,
        broadcaster: BroadcastEngine,
        verifier: TokenVerifier,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.broadcaster = broadcaster
        self.verifier = verifier
        self.clock = clock
        self.logger = get_logger("chat_hub.hub.presence")

    def _identity(self, connection: Connection) -> Claims:
        try:
            return self.verifier.verify_access_token(connection.token)
        except AuthError as e:
            raise PresenceDecodeError(
                details={"connection_id": connection.connection_id, "reason": e.error_code}
            )

    async def user_joined(self, connection: Connection, room_id: str, claims: Claims) -> int:
        """广播 user_connected（加入者本人不会收到）"""
        frame = presence_frame(
            ServerEvent.USER_CONNECTED, room_id, claims.name, self.clock()
        )
        return await self.broadcaster.broadcast(
            room_id, connection.connection_id, ServerEvent.USER_CONNECTED, frame.data
        )

    async def user_left(self, connection: Connection, rooms: Iterable[str]) -> int:
        """为每个离开的房间广播 user_disconnected

        身份从连接最后提供的令牌重新推导；推导失败时不发送通知，
        只记录日志，不影响断开流程。

        Returns:
            成功投递的总数
        """
        rooms = sorted(rooms)
        if not rooms:
            return 0

        try:
            claims = self._identity(connection)
        except PresenceDecodeError as e:
            self.logger.debug(
                f"无法为连接 {connection.connection_id} 推导身份，跳过断开通知: {e.details}"
            )
            return 0

        delivered = 0
        for room_id in rooms:
            if room_id == connection.connection_id:
                continue
            frame = presence_frame(
                ServerEvent.USER_DISCONNECTED, room_id, claims.name, self.clock()
            )
            delivered += await self.broadcaster.broadcast(
                room_id,
                connection.connection_id,
                ServerEvent.USER_DISCONNECTED,
                frame.data,
            )
        return delivered
