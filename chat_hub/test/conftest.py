"""测试公共夹具"""

import asyncio
import json

import pytest
from websockets.exceptions import ConnectionClosedOK

from chat_hub.hub import HubServer, TokenVerifier
from chat_hub.utils import HubConfig

SECRET = "chat-hub-test-secret-0123456789abcdef"


class FakeWebSocket:
    """记录发送帧的假 WebSocket"""

    def __init__(self, send_delay: float = 0.0):
        self.sent = []
        self.closed = False
        self.close_code = None
        self.close_reason = None
        self.send_delay = send_delay

    async def send(self, data):
        if self.closed:
            raise ConnectionClosedOK(None, None)
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        self.sent.append(json.loads(data))

    async def close(self, code=1000, reason=""):
        self.closed = True
        self.close_code = code
        self.close_reason = reason

    def events(self, name=None):
        return [f for f in self.sent if name is None or f["event"] == name]


@pytest.fixture
def config():
    return HubConfig(
        host="127.0.0.1",
        port=0,
        jwt_secret=SECRET,
        send_timeout=1.0,
        enable_rich_logging=False,
    )


@pytest.fixture
def verifier():
    return TokenVerifier(SECRET)


@pytest.fixture
def make_token(verifier):
    return verifier.issue_token


@pytest.fixture
def hub(config, verifier):
    """未启动的服务器，用于直接驱动路由器"""
    return HubServer(config, verifier=verifier)


@pytest.fixture
def open_connection(hub):
    """在 hub 上接受一个假连接，并登记与服务器相同的断开清理"""

    def _open(token):
        connection = hub.connection_manager.accept(FakeWebSocket(), token)
        hub.connection_manager.on_disconnect(connection.connection_id, hub.teardown)
        return connection

    return _open


@pytest.fixture
async def running_hub(config, verifier):
    server = HubServer(config, verifier=verifier)
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def hub_url(running_hub):
    return f"ws://127.0.0.1:{running_hub.bound_port}"


@pytest.fixture
def eventually():
    """轮询直到条件成立"""

    async def _eventually(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.01)

    return _eventually
