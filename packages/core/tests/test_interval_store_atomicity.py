"""IntervalStore 单元测试

测试内容：
1. append_open 插入开放区间，重复开放被唯一索引拒绝
2. close_latest_open 条件更新：只关闭一次
3. 时间戳单调：start 不早于已记录的最晚时间，finish 不早于 start
4. 所有操作按 owner 隔离
"""

from datetime import UTC, datetime, timedelta

import aiosqlite
import pytest
from taskclock.core.exceptions import IntervalAlreadyOpenError, InvalidTaskIdError
from taskclock.core.store import StoreGroup

OWNER_A = 1
OWNER_B = 2
T0 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


async def _new_task(stores: StoreGroup, owner_id: int = OWNER_A) -> int:
    return await stores.task_store.create_task(owner_id, "计时任务")


class TestAppendOpen:
    """插入开放区间"""

    async def test_append_open_returns_record(self, stores: StoreGroup):
        task_id = await _new_task(stores)

        record = await stores.interval_store.append_open(task_id, OWNER_A, T0)

        assert record.task_id == task_id
        assert record.owner_id == OWNER_A
        assert record.start_time == T0
        assert record.finish_time is None
        assert record.is_open

    async def test_second_open_rejected_by_index(self, stores: StoreGroup):
        """直接调用 store（绕过引擎的读判定）也无法写入第二条开放区间"""
        task_id = await _new_task(stores)
        await stores.interval_store.append_open(task_id, OWNER_A, T0)

        with pytest.raises(IntervalAlreadyOpenError):
            await stores.interval_store.append_open(
                task_id, OWNER_A, T0 + timedelta(minutes=1)
            )

        assert len(await stores.interval_store.open_intervals(task_id, OWNER_A)) == 1

    async def test_append_open_unknown_task(self, stores: StoreGroup):
        with pytest.raises(InvalidTaskIdError):
            await stores.interval_store.append_open(4242, OWNER_A, T0)

    async def test_append_open_foreign_task(self, stores: StoreGroup):
        task_id = await _new_task(stores, OWNER_A)

        with pytest.raises(InvalidTaskIdError):
            await stores.interval_store.append_open(task_id, OWNER_B, T0)

        assert await stores.interval_store.list_for_task(task_id, OWNER_A) == []

    async def test_start_not_earlier_than_last_finish(self, stores: StoreGroup):
        """时钟回拨时，新区间的 start 被抬到上一次 finish"""
        task_id = await _new_task(stores)
        await stores.interval_store.append_open(task_id, OWNER_A, T0)
        await stores.interval_store.close_latest_open(
            task_id, OWNER_A, T0 + timedelta(hours=1)
        )

        record = await stores.interval_store.append_open(
            task_id, OWNER_A, T0 + timedelta(minutes=5)
        )

        assert record.start_time == T0 + timedelta(hours=1)


class TestCloseLatestOpen:
    """关闭开放区间"""

    async def test_close_sets_finish_once(self, stores: StoreGroup):
        task_id = await _new_task(stores)
        opened = await stores.interval_store.append_open(task_id, OWNER_A, T0)

        closed = await stores.interval_store.close_latest_open(
            task_id, OWNER_A, T0 + timedelta(minutes=30)
        )

        assert closed is not None
        assert closed.id == opened.id
        assert closed.finish_time == T0 + timedelta(minutes=30)
        assert await stores.interval_store.close_latest_open(
            task_id, OWNER_A, T0 + timedelta(minutes=31)
        ) is None

        records = await stores.interval_store.list_for_task(task_id, OWNER_A)
        assert records[0].finish_time == T0 + timedelta(minutes=30)

    async def test_close_without_open_returns_none(self, stores: StoreGroup):
        task_id = await _new_task(stores)
        assert await stores.interval_store.close_latest_open(task_id, OWNER_A, T0) is None

    async def test_close_foreign_task_returns_none(self, stores: StoreGroup):
        task_id = await _new_task(stores, OWNER_A)
        await stores.interval_store.append_open(task_id, OWNER_A, T0)

        assert await stores.interval_store.close_latest_open(task_id, OWNER_B, T0) is None
        assert len(await stores.interval_store.open_intervals(task_id, OWNER_A)) == 1

    async def test_finish_clamped_to_start(self, stores: StoreGroup):
        """时钟回拨时，finish 被抬到 start，区间长度为 0"""
        task_id = await _new_task(stores)
        await stores.interval_store.append_open(task_id, OWNER_A, T0)

        closed = await stores.interval_store.close_latest_open(
            task_id, OWNER_A, T0 - timedelta(minutes=10)
        )

        assert closed is not None
        assert closed.finish_time == T0

    async def test_check_constraint_rejects_finish_before_start(self, stores: StoreGroup):
        """finish >= start 由表约束兜底"""
        task_id = await _new_task(stores)
        record = await stores.interval_store.append_open(task_id, OWNER_A, T0)

        with pytest.raises(aiosqlite.IntegrityError):
            await stores.conn.execute(
                "UPDATE task_intervals SET finish_time = ? WHERE id = ?",
                ("2000-01-01T00:00:00.000000+00:00", record.id),
            )


class TestListIntervals:
    """区间查询"""

    async def test_list_for_task_chronological(self, stores: StoreGroup):
        task_id = await _new_task(stores)
        for i in range(3):
            start = T0 + timedelta(hours=i)
            await stores.interval_store.append_open(task_id, OWNER_A, start)
            await stores.interval_store.close_latest_open(
                task_id, OWNER_A, start + timedelta(minutes=15)
            )

        records = await stores.interval_store.list_for_task(task_id, OWNER_A)
        starts = [r.start_time for r in records]
        assert starts == sorted(starts)
        assert len(records) == 3
        assert all(not r.is_open for r in records)

    async def test_list_for_owner_isolated(self, stores: StoreGroup):
        task_a = await _new_task(stores, OWNER_A)
        task_b = await _new_task(stores, OWNER_B)
        await stores.interval_store.append_open(task_a, OWNER_A, T0)
        await stores.interval_store.append_open(task_b, OWNER_B, T0)

        records = await stores.interval_store.list_for_owner(OWNER_A)
        assert [r.task_id for r in records] == [task_a]
        assert await stores.interval_store.list_for_task(task_a, OWNER_B) == []
