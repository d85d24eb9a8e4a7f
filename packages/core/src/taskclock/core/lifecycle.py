"""LifecycleEngine -- 任务 start/finish 状态机

状态由最新区间记录派生：IDLE（无记录或最新记录已结束）/ OPEN（最新记录未结束）。

每个操作先做一次朴素的“读状态 -> 判定”，用于快速给出明确的拒绝原因；
真正的线性化点在 store：
- start 的插入被部分唯一索引拒绝时同样报告 IntervalAlreadyOpenError；
- finish 的条件更新影响 0 行时同样报告 IntervalNotStartedError。
因此即使多个请求（或多个服务实例）并发操作同一任务，
观察到的结果也等价于按某个顺序串行执行。引擎本身不持有跨请求状态，也不加锁。
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from .exceptions import IntervalAlreadyOpenError, IntervalNotStartedError, InvalidTaskIdError
from .history import TaskViewBuilder
from .models.enums import TaskState, Transition, validate_transition
from .models.interval import TaskHistory, derive_state
from .models.task import Task
from .store.protocols import IntervalStore, TaskStore

log = structlog.get_logger()


def utc_now() -> datetime:
    return datetime.now(UTC)


class LifecycleEngine:
    """任务生命周期引擎"""

    def __init__(
        self,
        task_store: TaskStore,
        interval_store: IntervalStore,
        view_builder: TaskViewBuilder | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._task_store = task_store
        self._interval_store = interval_store
        self._view_builder = view_builder or TaskViewBuilder(task_store, interval_store)
        self._clock = clock

    async def current_state(self, task_id: int, owner_id: int) -> TaskState:
        """读取任务当前派生状态（朴素读取，不提供并发保证）

        Raises:
            InvalidTaskIdError: 任务不存在或不属于 owner
        """
        await self._require_task(task_id, owner_id)
        return await self._read_state(task_id, owner_id)

    async def start(self, task_id: int, owner_id: int) -> TaskHistory:
        """开始任务：追加一条开放区间

        Raises:
            InvalidTaskIdError: 任务不存在或不属于 owner
            IntervalAlreadyOpenError: 任务已有开放区间
        """
        task = await self._require_task(task_id, owner_id)
        state = await self._read_state(task_id, owner_id)
        if not validate_transition(state, Transition.START):
            raise IntervalAlreadyOpenError(task_id)

        record = await self._interval_store.append_open(task_id, owner_id, self._clock())
        log.info(
            "interval_opened",
            task_id=task_id,
            owner_id=owner_id,
            interval_id=record.id,
            start_time=record.start_time.isoformat(),
        )
        return await self._view_builder.build_one(task)

    async def finish(self, task_id: int, owner_id: int) -> TaskHistory:
        """结束任务：关闭唯一的开放区间

        Raises:
            InvalidTaskIdError: 任务不存在或不属于 owner
            IntervalNotStartedError: 任务没有开放区间
        """
        task = await self._require_task(task_id, owner_id)
        state = await self._read_state(task_id, owner_id)
        if not validate_transition(state, Transition.FINISH):
            raise IntervalNotStartedError(task_id)

        record = await self._interval_store.close_latest_open(
            task_id, owner_id, self._clock()
        )
        if record is None:
            # 判定之后被并发的 finish 抢先关闭
            raise IntervalNotStartedError(task_id)

        log.info(
            "interval_closed",
            task_id=task_id,
            owner_id=owner_id,
            interval_id=record.id,
            duration_s=(record.finish_time - record.start_time).total_seconds(),
        )
        return await self._view_builder.build_one(task)

    async def _require_task(self, task_id: int, owner_id: int) -> Task:
        task = await self._task_store.get_task(task_id, owner_id)
        if task is None:
            raise InvalidTaskIdError(task_id)
        return task

    async def _read_state(self, task_id: int, owner_id: int) -> TaskState:
        return derive_state(await self._interval_store.open_intervals(task_id, owner_id))
