"""测试房间注册表"""

import asyncio

from chat_hub.hub import RoomRegistry


async def test_join_is_idempotent():
    registry = RoomRegistry()
    assert await registry.join("c1", "r1") is True
    assert await registry.join("c1", "r1") is False
    assert registry.members("r1") == {"c1"}
    assert registry.rooms_of("c1") == {"r1"}


async def test_no_membership_without_join():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    assert not registry.is_member("c2", "r1")
    assert registry.rooms_of("c2") == set()
    assert registry.members("unknown") == set()


async def test_leave_all_returns_joined_rooms():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    await registry.join("c1", "r2")
    await registry.join("c2", "r1")

    assert await registry.leave_all("c1") == {"r1", "r2"}
    assert registry.members("r1") == {"c2"}
    assert registry.members("r2") == set()
    assert registry.rooms_of("c1") == set()
    assert await registry.leave_all("c1") == set()


async def test_leave_all_filters_self_room():
    registry = RoomRegistry()
    await registry.join("c1", "c1")
    await registry.join("c1", "r1")

    assert await registry.leave_all("c1") == {"r1"}
    assert registry.members("c1") == set()


async def test_empty_room_stays_addressable():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    await registry.leave_all("c1")

    assert await registry.join("c2", "r1") is True
    assert registry.members("r1") == {"c2"}


async def test_fan_out_excludes_sender():
    registry = RoomRegistry()
    for connection_id in ("c1", "c2", "c3"):
        await registry.join(connection_id, "r1")
    await registry.join("c4", "r2")

    delivered = []

    async def deliver(connection_id):
        delivered.append(connection_id)
        return connection_id != "c3"

    assert await registry.fan_out("r1", deliver, exclude=("c1",)) == 1
    assert sorted(delivered) == ["c2", "c3"]


async def test_join_waits_for_in_flight_fan_out():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    await registry.join("c2", "r1")

    started = asyncio.Event()
    release = asyncio.Event()
    delivered = []

    async def deliver(connection_id):
        delivered.append(connection_id)
        started.set()
        await release.wait()
        return True

    fan_out = asyncio.create_task(registry.fan_out("r1", deliver, exclude=("c1",)))
    await started.wait()

    join = asyncio.create_task(registry.join("c3", "r1"))
    leave = asyncio.create_task(registry.leave_all("c2"))
    await asyncio.sleep(0.01)
    assert not join.done()
    assert not leave.done()
    assert registry.members("r1") == {"c1", "c2"}

    release.set()
    assert await fan_out == 1
    assert await join is True
    assert await leave == {"r1"}
    assert delivered == ["c2"]
    assert registry.members("r1") == {"c1", "c3"}
    assert list(registry._locks) == ["r1"]

    await registry.leave_all("c1")
    await registry.leave_all("c3")
    assert registry._locks == {}
    assert registry._lock_users == {}


async def test_fan_out_after_leave_skips_removed_member():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    await registry.join("c2", "r1")
    await registry.leave_all("c2")

    delivered = []

    async def deliver(connection_id):
        delivered.append(connection_id)
        return True

    assert await registry.fan_out("r1", deliver, exclude=("c1",)) == 0
    assert delivered == []


async def test_stats():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    await registry.join("c1", "r2")
    await registry.join("c2", "r1")
    assert registry.get_stats() == {"rooms": 2, "memberships": 3}


async def test_fan_out_to_empty_rooms_keeps_no_locks():
    registry = RoomRegistry()

    async def deliver(connection_id):
        return True

    for i in range(1000):
        assert await registry.fan_out(f"x{i}", deliver, exclude=("c1",)) == 0
    assert registry._locks == {}


async def test_locks_released_when_rooms_empty():
    registry = RoomRegistry()
    for i in range(100):
        await registry.join("c1", f"r{i}")
    await registry.join("c2", "r0")
    assert len(registry._locks) == 100

    await registry.leave_all("c1")
    assert list(registry._locks) == ["r0"]

    await registry.leave_all("c2")
    assert registry._locks == {}
    assert registry._lock_users == {}


async def test_emptied_room_keeps_lock_for_waiting_join():
    registry = RoomRegistry()
    await registry.join("c1", "r1")
    await registry.join("c2", "r1")

    started = asyncio.Event()
    release = asyncio.Event()

    async def deliver(connection_id):
        started.set()
        await release.wait()
        return True

    fan_out = asyncio.create_task(registry.fan_out("r1", deliver, exclude=("c1",)))
    await started.wait()
    lock = registry._locks["r1"]

    leave_c1 = asyncio.create_task(registry.leave_all("c1"))
    leave_c2 = asyncio.create_task(registry.leave_all("c2"))
    join = asyncio.create_task(registry.join("c3", "r1"))
    await asyncio.sleep(0.01)

    release.set()
    await asyncio.gather(fan_out, leave_c1, leave_c2, join)

    assert registry.members("r1") == {"c3"}
    assert registry._locks["r1"] is lock


async def test_fan_out_delivers_concurrently():
    registry = RoomRegistry()
    for connection_id in ("c1", "c2", "c3"):
        await registry.join(connection_id, "r1")

    c3_started = asyncio.Event()

    async def deliver(connection_id):
        if connection_id == "c2":
            await c3_started.wait()
        else:
            c3_started.set()
        return True

    delivered = await asyncio.wait_for(
        registry.fan_out("r1", deliver, exclude=("c1",)), timeout=1.0
    )
    assert delivered == 2
