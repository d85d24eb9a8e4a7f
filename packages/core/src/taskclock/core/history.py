"""TaskHistory 读模型构建

读时计算，不落库：一次取 owner 的全部任务和全部区间，
按 task_id 分组，组内保持时间正序。
"""

from collections import defaultdict

from .models.interval import IntervalRecord, TaskHistory, to_history
from .models.task import Task
from .store.protocols import IntervalStore, TaskStore


class TaskViewBuilder:
    """任务历史视图构建器"""

    def __init__(self, task_store: TaskStore, interval_store: IntervalStore) -> None:
        self._task_store = task_store
        self._interval_store = interval_store

    async def build_history(self, owner_id: int) -> list[TaskHistory]:
        """构建 owner 全部任务的历史视图

        没有区间记录的任务返回空历史，不视为错误。
        """
        tasks = await self._task_store.list_tasks(owner_id)
        records = await self._interval_store.list_for_owner(owner_id)

        grouped: dict[int, list[IntervalRecord]] = defaultdict(list)
        for record in records:
            grouped[record.task_id].append(record)

        return [to_history(task, grouped.get(task.id, [])) for task in tasks]

    async def build_one(self, task: Task) -> TaskHistory:
        """构建单个任务的历史视图"""
        records = await self._interval_store.list_for_task(task.id, task.owner_id)
        return to_history(task, records)
