"""
客户端 SDK 模块
"""

from .base import ChatClient

__all__ = ["ChatClient"]
