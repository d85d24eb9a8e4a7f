"""LifecycleEngine 单元测试

测试内容：
1. 先 finish 后 start 的非法顺序被拒绝
2. 重复 start 被拒绝
3. start -> finish -> start 的区间历史
4. 非 owner 访问与不存在的任务不可区分
"""

from datetime import UTC, datetime, timedelta

import pytest
from taskclock.core.exceptions import (
    IntervalAlreadyOpenError,
    IntervalNotStartedError,
    InvalidTaskIdError,
)
from taskclock.core.lifecycle import LifecycleEngine
from taskclock.core.models import TaskState
from taskclock.core.store import StoreGroup

OWNER_A = 1
OWNER_B = 2


def _engine(stores: StoreGroup, clock) -> LifecycleEngine:
    return LifecycleEngine(stores.task_store, stores.interval_store, clock=clock)


class TestLifecycleTransitions:
    """start/finish 状态流转"""

    async def test_finish_before_start_rejected(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "从未开始")

        with pytest.raises(IntervalNotStartedError):
            await engine.finish(task_id, OWNER_A)

        assert await stores.interval_store.list_for_task(task_id, OWNER_A) == []

    async def test_double_start_rejected(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "重复开始")
        await engine.start(task_id, OWNER_A)

        with pytest.raises(IntervalAlreadyOpenError):
            await engine.start(task_id, OWNER_A)

        records = await stores.interval_store.list_for_task(task_id, OWNER_A)
        assert len(records) == 1
        assert records[0].is_open

    async def test_start_then_finish_closes_interval(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "一次完整计时")

        started = await engine.start(task_id, OWNER_A)
        assert started.state == TaskState.OPEN

        finished = await engine.finish(task_id, OWNER_A)
        assert finished.state == TaskState.IDLE
        assert len(finished.intervals) == 1
        interval = finished.intervals[0]
        assert interval.finish_time is not None
        assert interval.finish_time >= interval.start_time

    async def test_start_finish_start(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "来回切换")

        await engine.start(task_id, OWNER_A)
        await engine.finish(task_id, OWNER_A)
        history = await engine.start(task_id, OWNER_A)

        assert history.state == TaskState.OPEN
        assert len(history.intervals) == 2
        assert history.intervals[0].finish_time is not None
        assert history.intervals[1].finish_time is None

    async def test_finish_twice_rejected(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "重复结束")
        await engine.start(task_id, OWNER_A)
        await engine.finish(task_id, OWNER_A)

        with pytest.raises(IntervalNotStartedError):
            await engine.finish(task_id, OWNER_A)

    async def test_current_state(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "状态查询")

        assert await engine.current_state(task_id, OWNER_A) == TaskState.IDLE
        await engine.start(task_id, OWNER_A)
        assert await engine.current_state(task_id, OWNER_A) == TaskState.OPEN


class TestTimeline:
    """t1 < t2 < t3 的完整时间线"""

    async def test_recorded_times_follow_clock(self, stores: StoreGroup):
        t1 = datetime(2024, 5, 6, 9, 0, tzinfo=UTC)
        t2 = t1 + timedelta(minutes=45)
        t3 = t2 + timedelta(minutes=10)
        ticks = iter([t1, t2, t3])
        engine = _engine(stores, lambda: next(ticks))
        task_id = await stores.task_store.create_task(OWNER_A, "读论文")

        await engine.start(task_id, OWNER_A)
        await engine.finish(task_id, OWNER_A)
        history = await engine.start(task_id, OWNER_A)

        assert [(v.start_time, v.finish_time) for v in history.intervals] == [
            (t1, t2),
            (t3, None),
        ]

    async def test_clock_going_backwards_keeps_order(self, stores: StoreGroup, make_clock):
        """时钟回拨不会产生 finish < start 或乱序的区间"""
        t1 = datetime(2024, 5, 6, 9, 0, tzinfo=UTC)
        engine = _engine(stores, make_clock(start=t1, step_s=-60))
        task_id = await stores.task_store.create_task(OWNER_A, "时钟回拨")

        await engine.start(task_id, OWNER_A)
        await engine.finish(task_id, OWNER_A)
        history = await engine.start(task_id, OWNER_A)

        first, second = history.intervals
        assert first.finish_time >= first.start_time
        assert second.start_time >= first.finish_time


class TestOwnership:
    """非 owner 访问"""

    async def test_foreign_owner_start_rejected(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "A 的任务")

        with pytest.raises(InvalidTaskIdError):
            await engine.start(task_id, OWNER_B)

        assert await stores.interval_store.list_for_task(task_id, OWNER_A) == []

    async def test_foreign_owner_finish_rejected(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "A 的任务")
        await engine.start(task_id, OWNER_A)

        with pytest.raises(InvalidTaskIdError):
            await engine.finish(task_id, OWNER_B)

        assert await engine.current_state(task_id, OWNER_A) == TaskState.OPEN

    async def test_foreign_and_missing_are_indistinguishable(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        task_id = await stores.task_store.create_task(OWNER_A, "A 的任务")

        with pytest.raises(InvalidTaskIdError) as foreign:
            await engine.start(task_id, OWNER_B)
        with pytest.raises(InvalidTaskIdError) as missing:
            await engine.start(task_id + 1000, OWNER_B)

        assert foreign.value.code == missing.value.code
        assert type(foreign.value) is type(missing.value)

    async def test_unknown_task_state(self, stores: StoreGroup, clock):
        engine = _engine(stores, clock)
        with pytest.raises(InvalidTaskIdError):
            await engine.current_state(777, OWNER_A)
