"""Store Protocol 接口定义

定义 TaskStore、IntervalStore、OwnerStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
每个入口都同时接收 owner_id，由 store 负责所有权校验。
"""

from datetime import datetime
from typing import Protocol

from ..models.interval import IntervalRecord
from ..models.owner import OwnerAccount
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(
        self,
        owner_id: int,
        name: str,
        description: str = "",
        created_at: datetime | None = None,
    ) -> int:
        """创建任务记录，返回 task id"""
        ...

    async def get_task(self, task_id: int, owner_id: int) -> Task | None:
        """查询属于 owner 的任务"""
        ...

    async def list_tasks(self, owner_id: int) -> list[Task]:
        """查询 owner 的任务列表"""
        ...

    async def delete_task(self, task_id: int, owner_id: int) -> bool:
        """删除任务，返回是否删除成功"""
        ...


class IntervalStore(Protocol):
    """区间历史存储接口

    append_open 与 close_latest_open 必须各自是原子的条件写入。
    """

    async def open_intervals(self, task_id: int, owner_id: int) -> list[IntervalRecord]:
        """查询开放区间，按时间正序"""
        ...

    async def append_open(
        self,
        task_id: int,
        owner_id: int,
        start_time: datetime,
    ) -> IntervalRecord:
        """插入开放区间；已有开放区间时抛出 IntervalAlreadyOpenError"""
        ...

    async def close_latest_open(
        self,
        task_id: int,
        owner_id: int,
        finish_time: datetime,
    ) -> IntervalRecord | None:
        """关闭开放区间；没有开放区间时返回 None"""
        ...

    async def list_for_task(self, task_id: int, owner_id: int) -> list[IntervalRecord]:
        """查询任务全部区间"""
        ...

    async def list_for_owner(self, owner_id: int) -> list[IntervalRecord]:
        """查询 owner 全部区间"""
        ...


class OwnerStore(Protocol):
    """Owner 账户存储接口"""

    async def create_owner(self, username: str, email: str, password_hash: str) -> int:
        """创建账户，返回 owner id"""
        ...

    async def get_by_username(self, username: str) -> OwnerAccount | None:
        """根据用户名查询账户"""
        ...
