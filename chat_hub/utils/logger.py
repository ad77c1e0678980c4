"""Chat Hub 日志系统

本模块提供统一的日志接口，支持 rich 富文本日志和标准日志。
只有根日志器 "chat_hub" 挂载 handler，子日志器通过继承获得配置。
"""

import logging
import sys
from typing import Optional

from rich.logging import RichHandler

ROOT_LOGGER = "chat_hub"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: Optional[str] = "info",
    log_file: Optional[str] = None,
    enable_rich: Optional[bool] = True,
) -> logging.Logger:
    """设置根日志器

    Args:
        level: 日志级别
        log_file: 日志文件路径，None 表示不写文件
        enable_rich: 是否启用 rich 日志

    Returns:
        配置好的根日志器
    """
    level = (level or "INFO").upper()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # 清除现有处理器
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if enable_rich:
        rich_handler = RichHandler(
            rich_tracebacks=True, show_time=True, show_level=True, show_path=True
        )
        rich_handler.setLevel(level)
        logger.addHandler(rich_handler)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(console_handler)

    # 文件处理器（如果指定了日志文件）
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """获取日志器

    名称不在 "chat_hub" 命名空间下时会自动加上前缀。
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
