"""Chat Hub 工具模块

提供基础设施支持：
- 配置管理 (HubConfig, get_config, set_config, reset_config)
- 日志系统 (configure_logging, get_logger)
"""

from .config import (
    HubConfig,
    get_config,
    set_config,
    reset_config,
)

from .logger import (
    configure_logging,
    get_logger,
)

__all__ = [
    # 配置管理
    "HubConfig",
    "get_config",
    "set_config",
    "reset_config",
    # 日志系统
    "configure_logging",
    "get_logger",
]
