"""
Chat Hub 令牌校验与授权闸门

提供 JWT 校验（TokenVerifier）以及逐事件授权（AuthGate）。
授权结果以 AuthResult 返回，不抛异常。
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt

from ..exceptions import (
    AuthError,
    InvalidSignatureError,
    MalformedTokenError,
    MissingTokenError,
    TokenExpiredError,
)
from ..utils import get_logger
from .manager import Connection


@dataclass
class Claims:
    """令牌声明

    name 是显示名称，raw 是完整的解码载荷。
    """

    name: str
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Claims":
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            raise MalformedTokenError("Token has no 'name' claim")
        return cls(name=name, raw=dict(payload))


@dataclass
class AuthResult:
    """授权结果：claims 与 error 二者必有其一"""

    claims: Optional[Claims] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.claims is not None

    @classmethod
    def success(cls, claims: Claims) -> "AuthResult":
        return cls(claims=claims)

    @classmethod
    def failure(cls, error: AuthError) -> "AuthResult":
        return cls(error=error)


class TokenVerifier:
    """JWT 令牌校验器"""

    def __init__(
        self,
        secret: str,
        algorithms: Optional[List[str]] = None,
        leeway: float = 0.0,
    ):
        if not secret:
            raise ValueError("TokenVerifier requires a non-empty secret")
        self.secret = secret
        self.algorithms = algorithms or ["HS256"]
        self.leeway = leeway
        self.logger = get_logger("chat_hub.hub.auth")

    def verify_access_token(self, token: Optional[str]) -> Claims:
        """校验令牌并返回声明

        Raises:
            MissingTokenError: 令牌为空
            MalformedTokenError: 不是合法 JWT，或缺少 name 声明
            TokenExpiredError: 令牌已过期
            InvalidSignatureError: 签名无效
        """
        if not token or not isinstance(token, str):
            raise MissingTokenError()

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                leeway=self.leeway,
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidSignatureError:
            raise InvalidSignatureError()
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Malformed token: {e}")

        return Claims.from_payload(payload)

    def issue_token(self, name: str, expires_in: int = 3600, **claims: Any) -> str:
        """签发令牌（用于命令行工具和测试）

        Args:
            name: 显示名称
            expires_in: 有效期（秒），小于等于 0 时签发已过期的令牌
            **claims: 额外声明
        """
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "name": name,
            "iat": now,
            "exp": now + timedelta(seconds=expires_in),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithms[0])


class AuthGate:
    """授权闸门

    每个入站事件都从连接携带的令牌重新推导身份，从不缓存。
    """

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier
        self.logger = get_logger("chat_hub.hub.auth")

    def authorize(self, connection: Connection) -> AuthResult:
        """校验连接的令牌

        Args:
            connection: 发出事件的连接

        Returns:
            AuthResult，失败时 error 为 AuthError
        """
        try:
            claims = self.verifier.verify_access_token(connection.token)
        except AuthError as e:
            self.logger.debug(
                f"连接 {connection.connection_id} 授权失败: {e.error_code} {e.message}"
            )
            return AuthResult.failure(e)
        return AuthResult.success(claims)
