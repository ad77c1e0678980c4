"""Hub 房间注册表

维护 房间 <-> 连接 的双向映射。每个房间一把 asyncio.Lock：
成员变更（join / leave_all）与广播的读取-投递在同一房间上互斥，
因此广播既不会漏掉已完成加入的成员，也不会投递给已完成移除的成员。

房间锁只在房间有成员或有协程正在使用时存在，空房间不占用内存。
"""

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional, Set

from ..utils import get_logger

Deliver = Callable[[str], Awaitable[bool]]


class RoomRegistry:
    """房间注册表"""

    def __init__(self):
        # 房间索引：room_id -> {connection_id}
        self._members: Dict[str, Set[str]] = {}

        # 连接索引：connection_id -> {room_id}
        self._memberships: Dict[str, Set[str]] = {}

        # 房间锁：room_id -> Lock
        self._locks: Dict[str, asyncio.Lock] = {}

        # 锁的使用者数量（持有者加等待者）：room_id -> int
        self._lock_users: Dict[str, int] = {}

        self.logger = get_logger("chat_hub.hub.rooms")

    @asynccontextmanager
    async def _room_lock(self, room_id: str) -> AsyncIterator[None]:
        """持有房间锁

        最后一个使用者退出且房间已无成员时回收锁；等待者仍在时
        不回收，保证同一房间始终只有一把锁。
        """
        lock = self._locks.get(room_id)
        if lock is None:
            lock = self._locks[room_id] = asyncio.Lock()
        self._lock_users[room_id] = self._lock_users.get(room_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            users = self._lock_users[room_id] - 1
            if users:
                self._lock_users[room_id] = users
            else:
                del self._lock_users[room_id]
                if room_id not in self._members:
                    del self._locks[room_id]

    async def join(self, connection_id: str, room_id: str) -> bool:
        """加入房间（幂等）

        Returns:
            是否发生了实际的成员变化；已经是成员时返回 False
        """
        async with self._room_lock(room_id):
            members = self._members.setdefault(room_id, set())
            if connection_id in members:
                self.logger.debug(f"连接 {connection_id} 已在房间 {room_id} 中")
                return False
            members.add(connection_id)
            self._memberships.setdefault(connection_id, set()).add(room_id)

        self.logger.info(f"连接 {connection_id} 加入房间: {room_id}")
        return True

    async def leave_all(self, connection_id: str) -> Set[str]:
        """移除连接的全部成员关系

        按房间名排序依次获取所有相关房间锁，全部持有后再一次性移除，
        避免与并发广播交错。等锁期间加入的新房间会触发重新获取。

        Returns:
            离开的房间集合（不含与连接 ID 同名的自身房间）
        """
        while True:
            rooms = sorted(self._memberships.get(connection_id, set()))
            async with AsyncExitStack() as stack:
                for room_id in rooms:
                    await stack.enter_async_context(self._room_lock(room_id))

                current = self._memberships.get(connection_id, set())
                if not current.issubset(rooms):
                    continue

                left = self._memberships.pop(connection_id, set())
                for room_id in left:
                    members = self._members.get(room_id)
                    if members is not None:
                        members.discard(connection_id)
                        if not members:
                            del self._members[room_id]
                break

        if left:
            self.logger.info(f"连接 {connection_id} 离开房间: {sorted(left)}")
        return {room_id for room_id in left if room_id != connection_id}

    async def fan_out(
        self, room_id: str, deliver: Deliver, exclude: Optional[Iterable[str]] = None
    ) -> int:
        """在持有房间锁期间向成员并发投递

        每个接收者的发送各自受超时约束，因此持锁时间上限是单次
        发送超时，而不是成员数乘以超时。

        Args:
            room_id: 房间ID
            deliver: 投递函数，接收成员连接ID，返回是否成功
            exclude: 不投递的连接ID

        Returns:
            成功投递的数量
        """
        # 没有成员的房间不创建锁
        if room_id not in self._members:
            return 0

        excluded = set(exclude or ())
        async with self._room_lock(room_id):
            targets = sorted(self._members.get(room_id, set()) - excluded)
            results = await asyncio.gather(*(deliver(c) for c in targets))
        return sum(1 for ok in results if ok)

    def members(self, room_id: str) -> Set[str]:
        """获取房间成员的副本"""
        return set(self._members.get(room_id, set()))

    def rooms_of(self, connection_id: str) -> Set[str]:
        """获取连接所在房间的副本"""
        return set(self._memberships.get(connection_id, set()))

    def is_member(self, connection_id: str, room_id: str) -> bool:
        return connection_id in self._members.get(room_id, set())

    def get_stats(self) -> Dict[str, int]:
        """获取房间统计"""
        return {
            "rooms": len(self._members),
            "memberships": sum(len(rooms) for rooms in self._memberships.values()),
        }
