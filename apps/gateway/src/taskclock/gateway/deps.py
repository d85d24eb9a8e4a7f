"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与核心组件

Store / IdentityGate 通过 app.state 管理，在 lifespan 中初始化/清理。
get_owner_id 是所有任务路由的第一道依赖：凭证被拒绝时请求在此短路，
不会触达任何 store。
"""

import structlog
from fastapi import Depends, Header, Request
from taskclock.core.history import TaskViewBuilder
from taskclock.core.identity import IdentityGate, TokenService
from taskclock.core.lifecycle import LifecycleEngine
from taskclock.core.passwords import PasswordManager
from taskclock.core.store import StoreGroup

from .services.account_service import AccountService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_identity_gate(request: Request) -> IdentityGate:
    """从 app.state 获取 IdentityGate 实例"""
    return request.app.state.identity_gate


def get_owner_id(
    request: Request,
    authorization: str | None = Header(default=None),
    gate: IdentityGate = Depends(get_identity_gate),
) -> int:
    """解析 Authorization 头为 owner_id（失败抛出 AuthFailureError）

    解析成功后写入 request.state，供请求日志记录。
    """
    owner_id = gate.resolve(authorization)
    request.state.owner_id = owner_id
    structlog.contextvars.bind_contextvars(owner_id=owner_id)
    return owner_id


def get_view_builder(store_group: StoreGroup = Depends(get_store_group)) -> TaskViewBuilder:
    return TaskViewBuilder(store_group.task_store, store_group.interval_store)


def get_lifecycle_engine(
    store_group: StoreGroup = Depends(get_store_group),
    view_builder: TaskViewBuilder = Depends(get_view_builder),
) -> LifecycleEngine:
    return LifecycleEngine(
        store_group.task_store,
        store_group.interval_store,
        view_builder,
    )


def get_account_service(
    request: Request,
    store_group: StoreGroup = Depends(get_store_group),
) -> AccountService:
    token_service: TokenService = request.app.state.token_service
    password_manager: PasswordManager = request.app.state.password_manager
    return AccountService(store_group.owner_store, token_service, password_manager)
