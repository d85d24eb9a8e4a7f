"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskclock.core.store import create_store_group


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, identity_config):
    """集成测试用 FastAPI app"""
    os.environ["TASKCLOCK_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskclock.gateway.main import attach_state, create_app

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    attach_state(app, store_group, identity_config)

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKCLOCK_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def login_headers(client: AsyncClient) -> Callable[[str], Awaitable[dict[str, str]]]:
    """注册并登录，返回 Authorization 头"""

    async def _login(username: str) -> dict[str, str]:
        password = f"{username}-password"
        resp = await client.post(
            "/api/register", json={"username": username, "password": password}
        )
        assert resp.status_code == 201
        resp = await client.post(
            "/api/login", json={"username": username, "password": password}
        )
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
