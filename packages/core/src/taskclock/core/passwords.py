"""密码哈希 -- argon2id（argon2-cffi）

哈希串为 argon2 标准 PHC 格式，自带算法参数与盐；
调整成本参数后，旧哈希仍可校验。
"""

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from .config import IdentityConfig


class PasswordManager:
    """owner 密码的哈希与校验"""

    def __init__(self, time_cost: int, memory_cost: int, parallelism: int) -> None:
        """
        Args:
            time_cost: argon2 迭代轮数
            memory_cost: argon2 内存开销（KiB）
            parallelism: argon2 并行度
        """
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        self._placeholder_hash: str | None = None

    @classmethod
    def from_config(cls, config: IdentityConfig) -> "PasswordManager":
        return cls(
            time_cost=config.password_time_cost,
            memory_cost=config.password_memory_cost,
            parallelism=config.password_parallelism,
        )

    def hash(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password: str, encoded: str) -> bool:
        """校验明文密码（哈希串损坏视为不匹配）"""
        try:
            return self._hasher.verify(encoded, password)
        except (VerificationError, InvalidHashError):
            return False

    def verify_unknown(self, password: str) -> bool:
        """用户不存在时执行一次同等代价的校验，结果恒为 False

        登录耗时因此不随用户名是否存在而变化。
        """
        if self._placeholder_hash is None:
            self._placeholder_hash = self._hasher.hash(secrets.token_urlsafe(16))
        self.verify(password, self._placeholder_hash)
        return False
