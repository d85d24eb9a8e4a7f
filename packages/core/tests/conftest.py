"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from taskclock.core.store import StoreGroup, create_store_group


class StepClock:
    """可控时钟：每次调用前进固定步长"""

    def __init__(self, start: datetime | None = None, step_s: float = 60.0) -> None:
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        self.step = timedelta(seconds=step_s)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def stores(core_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层已初始化 StoreGroup"""
    store_group = await create_store_group(str(core_db_path))
    yield store_group
    await store_group.conn.close()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def make_clock() -> Callable[..., StepClock]:
    return StepClock
