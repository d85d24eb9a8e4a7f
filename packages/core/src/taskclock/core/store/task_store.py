"""TaskStore SQLite 实现

所有读写都同时按 task id 与 owner_id 过滤：
不存在与不属于当前 owner 的任务对调用方不可区分。
"""

from datetime import UTC, datetime

import aiosqlite

from ..models.task import Task
from .sqlite_init import fits_integer, format_ts, parse_ts
from .transaction import store_operation

_TASK_COLUMNS = "id, owner_id, name, description, created_at"


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(
        self,
        owner_id: int,
        name: str,
        description: str = "",
        created_at: datetime | None = None,
    ) -> int:
        """创建任务记录，返回 store 分配的 task id"""
        created_at = created_at or datetime.now(UTC)
        async with store_operation("create_task"):
            cursor = await self._conn.execute(
                """
                INSERT INTO tasks (owner_id, name, description, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (owner_id, name, description, format_ts(created_at)),
            )
            return cursor.lastrowid

    async def get_task(self, task_id: int, owner_id: int) -> Task | None:
        """查询属于 owner 的任务"""
        if not fits_integer(task_id, owner_id):
            return None
        async with store_operation("get_task"):
            cursor = await self._conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ? AND owner_id = ?",
                (task_id, owner_id),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, owner_id: int) -> list[Task]:
        """查询 owner 的任务列表，按创建顺序"""
        if not fits_integer(owner_id):
            return []
        async with store_operation("list_tasks"):
            cursor = await self._conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE owner_id = ? ORDER BY id ASC",
                (owner_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def delete_task(self, task_id: int, owner_id: int) -> bool:
        """删除任务（区间历史由外键级联删除）

        Returns:
            True 表示已删除，False 表示任务不存在或不属于 owner
        """
        if not fits_integer(task_id, owner_id):
            return False
        async with store_operation("delete_task"):
            cursor = await self._conn.execute(
                "DELETE FROM tasks WHERE id = ? AND owner_id = ?",
                (task_id, owner_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            id=row[0],
            owner_id=row[1],
            name=row[2],
            description=row[3],
            created_at=parse_ts(row[4]),
        )
