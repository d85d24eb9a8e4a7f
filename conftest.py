"""全局 pytest 配置 -- gateway 与集成测试共用的身份认证配置"""

import pytest
from pydantic import SecretStr
from taskclock.core.config import IdentityConfig

# HS256 密钥至少 32 字节
TEST_TOKEN_SECRET = "taskclock-test-token-secret-0123456789"


@pytest.fixture
def identity_config() -> IdentityConfig:
    """测试用身份认证配置：argon2 取最低成本，避免拖慢用例"""
    return IdentityConfig(
        token_secret=SecretStr(TEST_TOKEN_SECRET),
        token_ttl_s=3600,
        password_time_cost=1,
        password_memory_cost=8,
        password_parallelism=1,
    )
