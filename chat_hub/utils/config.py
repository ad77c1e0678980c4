"""Chat Hub 配置管理

本模块提供统一的配置管理接口，支持环境变量、默认值和运行时配置。
配置优先级：环境变量 > 运行时设置 > 默认值
"""

import os
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from ..exceptions import ConfigError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    if raw.lower() == "none":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.lower() in ("1", "true", "yes", "on")


@dataclass
class HubConfig:
    """Chat Hub 配置类

    包含聊天服务器、令牌校验和日志的所有配置选项。
    """

    # Hub 服务器配置
    host: str = "localhost"
    port: int = 3001
    max_connections: int = 1000

    # 令牌配置
    jwt_secret: Optional[str] = None
    jwt_algorithms: List[str] = field(default_factory=lambda: ["HS256"])
    jwt_leeway: float = 0.0

    # 投递配置（单个接收者的发送超时）
    send_timeout: float = 5.0

    # WebSocket 配置
    ws_ping_interval: Optional[float] = 20.0
    ws_ping_timeout: Optional[float] = 20.0
    ws_close_timeout: float = 10.0
    ws_max_size: Optional[int] = 64 * 1024

    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = None
    enable_rich_logging: bool = True

    # 自定义配置
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "HubConfig":
        """从环境变量创建配置

        读取环境变量并创建配置实例。环境变量格式：CHAT_HUB_<配置名>

        Returns:
            从环境变量读取的配置实例

        Raises:
            ConfigError: 数值类环境变量无法解析
        """
        config = cls()

        # Hub 配置
        config.host = os.getenv("CHAT_HUB_HOST", config.host)
        config.port = _env_int("CHAT_HUB_PORT", config.port)
        config.max_connections = _env_int(
            "CHAT_HUB_MAX_CONNECTIONS", config.max_connections
        )

        # 令牌配置
        config.jwt_secret = os.getenv("CHAT_HUB_JWT_SECRET", config.jwt_secret)
        algorithms = os.getenv("CHAT_HUB_JWT_ALGORITHMS")
        if algorithms:
            config.jwt_algorithms = [a.strip() for a in algorithms.split(",") if a.strip()]
        config.jwt_leeway = _env_float("CHAT_HUB_JWT_LEEWAY", config.jwt_leeway)

        config.send_timeout = _env_float("CHAT_HUB_SEND_TIMEOUT", config.send_timeout)

        # WebSocket 配置
        config.ws_ping_interval = _env_float(
            "CHAT_HUB_WS_PING_INTERVAL", config.ws_ping_interval
        )
        config.ws_ping_timeout = _env_float(
            "CHAT_HUB_WS_PING_TIMEOUT", config.ws_ping_timeout
        )
        config.ws_close_timeout = _env_float(
            "CHAT_HUB_WS_CLOSE_TIMEOUT", config.ws_close_timeout
        )
        config.ws_max_size = _env_int("CHAT_HUB_WS_MAX_SIZE", config.ws_max_size)

        # 日志配置
        config.log_level = os.getenv("CHAT_HUB_LOG_LEVEL", config.log_level)
        config.log_file = os.getenv("CHAT_HUB_LOG_FILE", config.log_file)
        config.enable_rich_logging = _env_bool(
            "CHAT_HUB_ENABLE_RICH_LOGGING", config.enable_rich_logging
        )

        return config

    def require_secret(self) -> str:
        """获取 JWT 密钥，未配置时抛出 ConfigError"""
        if not self.jwt_secret:
            raise ConfigError("CHAT_HUB_JWT_SECRET is not set")
        return self.jwt_secret

    def update(self, **kwargs) -> None:
        """更新配置项

        Args:
            **kwargs: 要更新的配置项
        """
        for key, value in kwargs.items():
            if key != "custom" and hasattr(self, key):
                setattr(self, key, value)
            else:
                self.custom[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置项"""
        if key != "custom" and hasattr(self, key):
            return getattr(self, key)
        return self.custom.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（密钥会被遮蔽）"""
        result = {
            # Hub 配置
            "host": self.host,
            "port": self.port,
            "max_connections": self.max_connections,
            # 令牌配置
            "jwt_secret": "***" if self.jwt_secret else None,
            "jwt_algorithms": list(self.jwt_algorithms),
            "jwt_leeway": self.jwt_leeway,
            "send_timeout": self.send_timeout,
            # WebSocket 配置
            "ws_ping_interval": self.ws_ping_interval,
            "ws_ping_timeout": self.ws_ping_timeout,
            "ws_close_timeout": self.ws_close_timeout,
            "ws_max_size": self.ws_max_size,
            # 日志配置
            "log_level": self.log_level,
            "log_file": self.log_file,
            "enable_rich_logging": self.enable_rich_logging,
        }

        # 添加自定义配置
        result.update(self.custom)
        return result


# 全局配置实例
_global_config: Optional[HubConfig] = None


def get_config() -> HubConfig:
    """获取全局配置

    如果配置尚未初始化，则从环境变量创建默认配置。
    """
    global _global_config
    if _global_config is None:
        _global_config = HubConfig.from_env()
    return _global_config


def set_config(config: HubConfig) -> None:
    """设置全局配置"""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """重置全局配置

    清除当前配置，下次调用 get_config() 时会重新从环境变量读取。
    """
    global _global_config
    _global_config = None
