"""structlog 配置模块

dev 模式：pretty print 可读输出；json 模式：结构化 JSON 输出。
凭证类字段（见 SENSITIVE_KEYS）在渲染前一律脱敏，
任何一条日志都不会带出明文密码或 bearer token。
Logfire APM：LOGFIRE_SEND_TO_LOGFIRE 环境变量控制，false 时仅本地日志。
"""

import logging
import os

import structlog
from fastapi import FastAPI
from structlog.types import EventDict, WrappedLogger

REDACTED = "***"

# 以下字段名一律脱敏
SENSITIVE_KEYS = frozenset(
    {"password", "token", "authorization", "secret", "token_secret", "password_hash"}
)

# 第三方库日志级别：aiosqlite 每条语句都会打 DEBUG
_LIBRARY_LOG_LEVELS = {
    "aiosqlite": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def redact_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor：凭证类字段替换为 REDACTED"""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging() -> None:
    """初始化 structlog 配置

    环境变量：
    - TASKCLOCK_LOG_FORMAT: "json" 或 "dev"（默认）
    - TASKCLOCK_LOG_LEVEL: 日志级别（默认 INFO）
    """
    log_format = os.environ.get("TASKCLOCK_LOG_FORMAT", "dev")
    log_level = getattr(
        logging, os.environ.get("TASKCLOCK_LOG_LEVEL", "INFO").upper(), logging.INFO
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 标准库 logging（uvicorn、aiosqlite 等）统一走 structlog 渲染
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name, level in _LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(max(level, log_level))


def setup_logfire(app: FastAPI) -> None:
    """Logfire 可选初始化（需要安装 logfire extra 并配置 LOGFIRE_TOKEN）"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return

    try:
        import logfire

        logfire.configure(service_name="taskclock-gateway")
        logfire.instrument_fastapi(app)
    except Exception as e:
        # APM 不可用不影响服务本身
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
        )
