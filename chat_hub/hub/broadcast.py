"""Hub 广播引擎"""

from typing import Any

from ..exceptions import MalformedEventError
from ..protocol import Frame, ServerEvent
from ..utils import get_logger
from .manager import ConnectionManager
from .rooms import RoomRegistry


class BroadcastEngine:
    """无状态扇出：把载荷原样投递给房间内除发送者以外的所有成员"""

    def __init__(self, registry: RoomRegistry, connection_manager: ConnectionManager):
        self.registry = registry
        self.connection_manager = connection_manager
        self.logger = get_logger("chat_hub.hub.broadcast")

    async def broadcast(
        self, room_id: str, sender_id: str, event: ServerEvent, payload: Any
    ) -> int:
        """广播到房间

        Args:
            room_id: 房间ID
            sender_id: 发送者连接ID（不会收到自己的事件）
            event: 服务器事件
            payload: 事件载荷，不做修改

        Returns:
            成功投递的数量

        Raises:
            MalformedEventError: 缺少房间ID
        """
        if not isinstance(room_id, str) or not room_id:
            raise MalformedEventError(
                f"Cannot broadcast '{event.value}' without a room id",
                details={"sender": sender_id},
            )

        frame = Frame(event=event.value, data=payload)

        async def deliver(connection_id: str) -> bool:
            connection = self.connection_manager.get_connection(connection_id)
            if not connection:
                return False
            return await connection.send_frame(frame)

        delivered = await self.registry.fan_out(room_id, deliver, exclude=(sender_id,))
        self.logger.debug(f"广播 {event.value} 到房间 {room_id}: 成功 {delivered}")
        return delivered
