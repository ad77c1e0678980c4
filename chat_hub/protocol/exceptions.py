"""Chat Hub 协议异常定义

本模块定义了帧编解码层面的异常，为协议错误提供明确的分类。
"""


class ProtocolException(Exception):
    """协议基础异常

    所有帧编解码相关异常的基类。
    """

    pass


class ValidationException(ProtocolException):
    """帧验证错误

    当帧内容不符合事件约定时抛出（未知事件、缺少字段等）。
    """

    pass


class SerializationException(ProtocolException):
    """序列化/反序列化错误

    当帧无法编码为 JSON 或无法从 JSON 解码时抛出。
    """

    pass
