"""
Chat Hub Exceptions

Custom exception classes for error handling
"""


class ChatHubError(Exception):
    """Base Chat Hub exception"""

    def __init__(self, message: str, error_code: str = "HUB000", details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Authentication errors
class AuthError(ChatHubError):
    """Authentication error"""

    def __init__(self, message: str = "Unauthorized", details: dict = None):
        super().__init__(message, "AUTH001", details)


class MissingTokenError(AuthError):
    """No token in the handshake"""

    def __init__(self, message: str = "Missing token", details: dict = None):
        super().__init__(message, details)
        self.error_code = "AUTH002"


class MalformedTokenError(AuthError):
    """Token is not a decodable JWT or lacks required claims"""

    def __init__(self, message: str = "Malformed token", details: dict = None):
        super().__init__(message, details)
        self.error_code = "AUTH003"


class TokenExpiredError(AuthError):
    """Token expired error"""

    def __init__(self, message: str = "Token expired", details: dict = None):
        super().__init__(message, details)
        self.error_code = "AUTH004"


class InvalidSignatureError(AuthError):
    """Token signature does not verify"""

    def __init__(self, message: str = "Invalid token signature", details: dict = None):
        super().__init__(message, details)
        self.error_code = "AUTH005"


# Event errors
class MalformedEventError(ChatHubError):
    """Inbound event could not be decoded or routed"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "EVT001", details)


# Presence errors
class PresenceDecodeError(ChatHubError):
    """Identity unavailable when emitting a presence notice"""

    def __init__(self, message: str = "Could not derive identity", details: dict = None):
        super().__init__(message, "PRS001", details)


# Configuration errors
class ConfigError(ChatHubError):
    """Configuration error"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CFG001", details)


# Error code mapping
ERROR_CODE_MAP = {
    "HUB000": ChatHubError,
    "AUTH001": AuthError,
    "AUTH002": MissingTokenError,
    "AUTH003": MalformedTokenError,
    "AUTH004": TokenExpiredError,
    "AUTH005": InvalidSignatureError,
    "EVT001": MalformedEventError,
    "PRS001": PresenceDecodeError,
    "CFG001": ConfigError,
}
