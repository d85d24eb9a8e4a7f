"""apps/gateway 测试配置 -- httpx AsyncClient + 手动初始化 app.state"""

import os
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskclock.core.store import create_store_group


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, identity_config):
    """创建测试用 FastAPI app 实例（绕过 lifespan）"""
    os.environ["TASKCLOCK_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskclock.gateway.main import attach_state, create_app

    app = create_app()

    # 手动初始化（ASGITransport 不触发 lifespan）
    store_group = await create_store_group(str(tmp_path / "test.db"))
    attach_state(app, store_group, identity_config)

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKCLOCK_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers(test_app) -> Callable[[int], dict[str, str]]:
    """为指定 owner 生成 Authorization 头"""

    def _headers(owner_id: int) -> dict[str, str]:
        token = test_app.state.token_service.issue(owner_id).token
        return {"Authorization": f"Bearer {token}"}

    return _headers
