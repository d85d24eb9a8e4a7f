"""Identity Gate + Token Service

TokenService 签发/校验 HS256 bearer token（claims: sub=owner_id, exp, iat）。
IdentityGate.resolve 是凭证的纯函数：只依赖 token 与构造时注入的密钥，
不访问任何 store；拒绝时抛出 AuthFailureError，请求在此短路。
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import BaseModel, Field, SecretStr

from .config import IdentityConfig
from .exceptions import AuthFailureError
from .models.enums import AuthFailureReason
from .store.sqlite_init import fits_integer

BEARER_SCHEME = "bearer"


def utc_now() -> datetime:
    return datetime.now(UTC)


class IssuedToken(BaseModel):
    """签发结果"""

    token: str
    token_type: str = Field(default="bearer")
    expires_at: datetime


class TokenService:
    """bearer token 签发与校验"""

    def __init__(
        self,
        secret: SecretStr,
        ttl_s: int,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._secret = secret
        self._ttl = timedelta(seconds=ttl_s)
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_config(cls, config: IdentityConfig) -> "TokenService":
        return cls(
            secret=config.token_secret,
            ttl_s=config.token_ttl_s,
            algorithm=config.token_algorithm,
        )

    def issue(self, owner_id: int) -> IssuedToken:
        """为 owner 签发 token"""
        now = self._clock()
        expires_at = now + self._ttl
        payload = {
            "sub": str(owner_id),
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(
            payload,
            self._secret.get_secret_value(),
            algorithm=self._algorithm,
        )
        return IssuedToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> int:
        """校验 token 并返回 owner_id

        Raises:
            AuthFailureError: EXPIRED（已过期）或 INVALID（签名/格式错误）
        """
        try:
            claims = jwt.decode(
                token,
                self._secret.get_secret_value(),
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthFailureError(AuthFailureReason.EXPIRED) from e
        except jwt.InvalidTokenError as e:
            raise AuthFailureError(AuthFailureReason.INVALID) from e

        try:
            owner_id = int(claims["sub"])
        except (TypeError, ValueError) as e:
            raise AuthFailureError(AuthFailureReason.INVALID) from e
        if not fits_integer(owner_id):
            raise AuthFailureError(AuthFailureReason.INVALID)
        return owner_id


class IdentityGate:
    """请求入口的身份解析"""

    def __init__(self, token_service: TokenService) -> None:
        self._token_service = token_service

    def resolve(self, credential: str | None) -> int:
        """将 Authorization 头解析为 owner_id

        接受裸 token 或 "Bearer <token>"。

        Raises:
            AuthFailureError: MISSING / INVALID / EXPIRED
        """
        if credential is None:
            raise AuthFailureError(AuthFailureReason.MISSING)

        token = credential.strip()
        scheme, _, rest = token.partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            token = rest.strip()
        if not token:
            raise AuthFailureError(AuthFailureReason.MISSING)

        return self._token_service.verify(token)
