"""Hub WebSocket 服务器"""

import asyncio
import signal
import sys
from typing import Optional
from urllib.parse import parse_qs, urlsplit

import websockets
from websockets.exceptions import ConnectionClosed

from ..utils import HubConfig, get_config, get_logger
from .auth import AuthGate, TokenVerifier
from .broadcast import BroadcastEngine
from .manager import CLOSE_TRY_AGAIN_LATER, Connection, ConnectionManager
from .presence import PresenceNotifier
from .rooms import RoomRegistry
from .router import EventRouter


def extract_token(request) -> Optional[str]:
    """从握手请求中提取令牌

    先读查询参数 token，再读 Authorization: Bearer 头。

    Args:
        request: websockets 的握手请求（带 path 和 headers）

    Returns:
        令牌字符串，没有时返回 None
    """
    if request is None:
        return None

    query = parse_qs(urlsplit(request.path).query)
    tokens = query.get("token")
    if tokens and tokens[0]:
        return tokens[0]

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


class HubServer:
    """Hub WebSocket 服务器

    持有房间注册表、连接网关和路由器；每个连接由 websockets
    在独立任务中处理，帧按到达顺序逐个路由。
    """

    def __init__(
        self,
        config: Optional[HubConfig] = None,
        verifier: Optional[TokenVerifier] = None,
    ):
        self.config = config or get_config()
        self.host = self.config.host
        self.port = self.config.port

        # 核心组件
        self.verifier = verifier or TokenVerifier(
            self.config.require_secret(),
            algorithms=self.config.jwt_algorithms,
            leeway=self.config.jwt_leeway,
        )
        self.connection_manager = ConnectionManager(
            max_connections=self.config.max_connections,
            send_timeout=self.config.send_timeout,
        )
        self.registry = RoomRegistry()
        self.auth_gate = AuthGate(self.verifier)
        self.broadcaster = BroadcastEngine(self.registry, self.connection_manager)
        self.presence = PresenceNotifier(self.broadcaster, self.verifier)
        self.router = EventRouter(
            self.connection_manager,
            self.auth_gate,
            self.registry,
            self.broadcaster,
            self.presence,
        )

        # 服务器状态
        self.server: Optional[websockets.Server] = None
        self.running = False

        self.logger = get_logger("chat_hub.hub.server")

    @property
    def bound_port(self) -> Optional[int]:
        """实际监听的端口（port 为 0 时由系统分配）"""
        if not self.server:
            return None
        for sock in self.server.sockets:
            return sock.getsockname()[1]
        return None

    async def start(self) -> None:
        """启动服务器"""
        if self.running:
            self.logger.warning("服务器已经在运行")
            return

        try:
            self.logger.info(f"启动聊天服务器: {self.host}:{self.port}")

            self.server = await websockets.serve(
                self._handle_client,
                self.host,
                self.port,
                max_size=self.config.ws_max_size,
                ping_interval=self.config.ws_ping_interval,
                ping_timeout=self.config.ws_ping_timeout,
                close_timeout=self.config.ws_close_timeout,
            )

            self.running = True
            self.logger.info(f"聊天服务器启动成功，端口 {self.bound_port}")

        except Exception as e:
            self.logger.error(f"启动服务器失败: {e}")
            raise

    async def stop(self) -> None:
        """停止服务器"""
        if not self.running:
            return

        self.logger.info("停止聊天服务器")
        self.running = False

        try:
            # 首先断开所有客户端连接
            await self.connection_manager.close_all(reason="Server shutdown")

            if self.server:
                self.server.close()
                await self.server.wait_closed()
                self.server = None

            self.logger.info("聊天服务器已停止")

        except Exception as e:
            self.logger.error(f"停止服务器时出错: {e}")

    async def _handle_client(self, websocket: websockets.ServerConnection) -> None:
        """处理客户端连接

        Args:
            websocket: WebSocket 连接
        """
        token = extract_token(getattr(websocket, "request", None))
        connection = self.connection_manager.accept(websocket, token)
        if not connection:
            await websocket.close(code=CLOSE_TRY_AGAIN_LATER, reason="Server overloaded")
            return

        connection_id = connection.connection_id
        self.connection_manager.on_disconnect(connection_id, self.teardown)

        try:
            # 进入消息循环
            async for raw_message in websocket:
                if not connection.connected:
                    break
                try:
                    if not await self.router.route(connection, raw_message):
                        break
                except Exception as e:
                    self.logger.error(
                        f"处理连接 {connection_id} 的事件失败: {e}", exc_info=True
                    )

        except ConnectionClosed:
            self.logger.debug(f"连接 {connection_id} 已关闭")
        except Exception as e:
            self.logger.error(f"处理连接 {connection_id} 失败: {e}", exc_info=True)

        finally:
            await self.connection_manager.disconnect(connection_id)

    async def teardown(self, connection: Connection) -> None:
        """断开时清理房间成员关系并通知在线状态"""
        rooms = await self.registry.leave_all(connection.connection_id)
        await self.presence.user_left(connection, rooms)

    def get_stats(self) -> dict:
        """获取服务器统计信息"""
        return {
            "server": {
                "running": self.running,
                "host": self.host,
                "port": self.bound_port or self.port,
                "max_connections": self.config.max_connections,
            },
            "connections": self.connection_manager.get_stats(),
            "rooms": self.registry.get_stats(),
        }


# 便捷的启动函数
async def start_hub_server(config: Optional[HubConfig] = None) -> HubServer:
    """启动 Hub 服务器

    Args:
        config: 服务器配置，默认从环境变量读取

    Returns:
        Hub 服务器实例
    """
    server = HubServer(config)
    await server.start()
    return server


async def run_server(config: Optional[HubConfig] = None) -> None:
    """启动服务器并运行到收到 SIGINT/SIGTERM"""
    server = await start_hub_server(config)
    logger = server.logger

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                logger.warning(f"当前平台不支持信号处理（{sig}），请使用 Ctrl+C 退出")

    try:
        await stop_event.wait()
        logger.info("收到停止信号，正在关闭服务器...")
    finally:
        await server.stop()
