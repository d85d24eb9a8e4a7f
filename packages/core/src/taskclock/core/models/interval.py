"""IntervalRecord Domain Model + TaskHistory 读模型

task_intervals 表 append-mostly：start 时插入一条开放记录，
finish 时仅设置一次 finish_time。
同一 task 任意时刻至多一条 finish_time 为空的记录。
"""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, Field

from .enums import TaskState
from .task import Task


class IntervalRecord(BaseModel):
    """区间记录 -- start/finish 一次工作时段"""

    id: int = Field(description="记录 ID，store 分配，单调递增")
    task_id: int = Field(description="关联的 Task ID")
    owner_id: int = Field(description="所属 owner ID")
    start_time: datetime = Field(description="开始时间，同一 task 内单调不减")
    finish_time: datetime | None = Field(default=None, description="结束时间，为空表示未结束")

    @property
    def is_open(self) -> bool:
        return self.finish_time is None


class IntervalView(BaseModel):
    """对外展示的区间（不含存储字段）"""

    start_time: datetime
    finish_time: datetime | None = None


class TaskHistory(BaseModel):
    """任务 + 按时间正序的区间历史（读时计算，不落库）"""

    task: Task
    intervals: list[IntervalView] = Field(default_factory=list)
    state: TaskState = Field(default=TaskState.IDLE, description="派生生命周期状态")


def derive_state(records: Sequence[IntervalRecord]) -> TaskState:
    """由按时间正序的区间记录推导当前状态

    无记录或最新记录已结束 -> IDLE；最新记录未结束 -> OPEN。
    """
    if records and records[-1].is_open:
        return TaskState.OPEN
    return TaskState.IDLE


def to_history(task: Task, records: Sequence[IntervalRecord]) -> TaskHistory:
    """将任务及其区间记录组装为 TaskHistory"""
    return TaskHistory(
        task=task,
        intervals=[
            IntervalView(start_time=r.start_time, finish_time=r.finish_time)
            for r in records
        ],
        state=derive_state(records),
    )
