"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 身份认证组件初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from taskclock.core.config import (
    IdentityConfig,
    get_cors_origins,
    get_db_path,
    load_identity_config,
)
from taskclock.core.identity import IdentityGate, TokenService
from taskclock.core.passwords import PasswordManager
from taskclock.core.store import StoreGroup, create_store_group

from .errors import register_error_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import auth, health, tasks

log = structlog.get_logger()


def attach_state(
    app: FastAPI,
    store_group: StoreGroup,
    identity_config: IdentityConfig,
) -> None:
    """把 Store 与身份认证组件挂到 app.state（lifespan 与测试共用）"""
    token_service = TokenService.from_config(identity_config)
    app.state.store_group = store_group
    app.state.identity_config = identity_config
    app.state.token_service = token_service
    app.state.identity_gate = IdentityGate(token_service)
    app.state.password_manager = PasswordManager.from_config(identity_config)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和认证组件，关闭时清理连接"""
    # 启动：初始化 Store
    db_path = get_db_path()
    store_group = await create_store_group(db_path)

    # 密钥显式加载后注入
    identity_config = load_identity_config()
    attach_state(app, store_group, identity_config)
    log.info(
        "gateway_started",
        db_path=db_path,
        token_ttl_s=identity_config.token_ttl_s,
        token_algorithm=identity_config.token_algorithm,
    )

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskClock Gateway",
        version="0.1.0",
        description="TaskClock 任务计时 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    cors_origins = get_cors_origins()
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
            expose_headers=["X-Request-ID"],
        )

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    register_error_handlers(app)

    # 注册路由
    app.include_router(auth.router, tags=["auth"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
