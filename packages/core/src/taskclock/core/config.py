"""配置模块 -- 可通过环境变量覆盖

包含数据库路径、CORS 来源等可配置常量，以及身份认证配置（IdentityConfig）。
密钥类配置通过 load_identity_config() 显式加载后注入 IdentityGate，
不在认证逻辑内部读取环境变量。
"""

import os
import secrets
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, SecretStr, model_validator

log = structlog.get_logger()

DEFAULT_TOKEN_TTL_S = 3600
# argon2id 成本参数（argon2-cffi 默认值，RFC 9106 低内存档）
DEFAULT_PASSWORD_TIME_COST = 3
DEFAULT_PASSWORD_MEMORY_COST = 65536
DEFAULT_PASSWORD_PARALLELISM = 4


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKCLOCK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKCLOCK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskclock.db"),
    )


def get_cors_origins() -> list[str]:
    """获取允许的 CORS 来源列表（逗号分隔，空值表示不启用 CORS）"""
    raw = os.environ.get("TASKCLOCK_CORS_ORIGINS", "")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


# 任务名称最大长度
TASK_NAME_MAX_LENGTH: int = 200

# 任务描述最大长度
TASK_DESCRIPTION_MAX_LENGTH: int = 4000


class IdentityConfig(BaseModel):
    """身份认证配置 -- 从环境变量加载

    环境变量:
        TASKCLOCK_TOKEN_SECRET: token 签名密钥
        TASKCLOCK_TOKEN_TTL_S: token 有效期（秒，默认 3600）
        TASKCLOCK_TOKEN_ALGORITHM: 签名算法（默认 HS256）
        TASKCLOCK_PASSWORD_TIME_COST: argon2 迭代轮数（默认 3）
        TASKCLOCK_PASSWORD_MEMORY_COST: argon2 内存开销 KiB（默认 65536）
        TASKCLOCK_PASSWORD_PARALLELISM: argon2 并行度（默认 4）
    """

    token_secret: SecretStr = Field(description="token 签名密钥")
    token_ttl_s: int = Field(
        default=DEFAULT_TOKEN_TTL_S,
        ge=60,
        description="token 有效期（秒）",
    )
    token_algorithm: str = Field(default="HS256", description="JWT 签名算法")
    password_time_cost: int = Field(
        default=DEFAULT_PASSWORD_TIME_COST,
        ge=1,
        description="argon2 迭代轮数",
    )
    password_memory_cost: int = Field(
        default=DEFAULT_PASSWORD_MEMORY_COST,
        ge=8,
        description="argon2 内存开销（KiB）",
    )
    password_parallelism: int = Field(
        default=DEFAULT_PASSWORD_PARALLELISM,
        ge=1,
        description="argon2 并行度",
    )

    @model_validator(mode="after")
    def _check_memory_cost(self) -> "IdentityConfig":
        # argon2 要求每条 lane 至少 8 KiB
        if self.password_memory_cost < 8 * self.password_parallelism:
            raise ValueError("password_memory_cost must be at least 8 * password_parallelism")
        return self


def _int_from_env(env_var: str, fallback: int) -> int | None:
    """读取整数环境变量，无效值记录警告并返回 None（使用默认值）"""
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        log.warning(
            "invalid_int_config",
            env_var=env_var,
            value=val,
            fallback=fallback,
        )
        return None


def load_identity_config() -> IdentityConfig:
    """从环境变量加载身份认证配置

    环境变量映射:
        TASKCLOCK_TOKEN_SECRET -> token_secret (未设置时生成进程级随机密钥)
        TASKCLOCK_TOKEN_TTL_S -> token_ttl_s (默认 3600)
        TASKCLOCK_TOKEN_ALGORITHM -> token_algorithm (默认 "HS256")
        TASKCLOCK_PASSWORD_TIME_COST -> password_time_cost (默认 3)
        TASKCLOCK_PASSWORD_MEMORY_COST -> password_memory_cost (默认 65536)
        TASKCLOCK_PASSWORD_PARALLELISM -> password_parallelism (默认 4)

    Returns:
        IdentityConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKCLOCK_TOKEN_SECRET"):
        kwargs["token_secret"] = SecretStr(val)
    else:
        # 随机密钥：进程重启后已签发的 token 全部失效
        log.warning("token_secret_not_configured", env_var="TASKCLOCK_TOKEN_SECRET")
        kwargs["token_secret"] = SecretStr(secrets.token_urlsafe(32))

    ttl = _int_from_env("TASKCLOCK_TOKEN_TTL_S", DEFAULT_TOKEN_TTL_S)
    if ttl is not None:
        kwargs["token_ttl_s"] = ttl

    if val := os.environ.get("TASKCLOCK_TOKEN_ALGORITHM"):
        kwargs["token_algorithm"] = val

    for env_var, field, fallback in (
        ("TASKCLOCK_PASSWORD_TIME_COST", "password_time_cost", DEFAULT_PASSWORD_TIME_COST),
        ("TASKCLOCK_PASSWORD_MEMORY_COST", "password_memory_cost", DEFAULT_PASSWORD_MEMORY_COST),
        ("TASKCLOCK_PASSWORD_PARALLELISM", "password_parallelism", DEFAULT_PASSWORD_PARALLELISM),
    ):
        value = _int_from_env(env_var, fallback)
        if value is not None:
            kwargs[field] = value

    return IdentityConfig(**kwargs)
