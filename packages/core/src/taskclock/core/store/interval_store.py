"""IntervalStore SQLite 实现

task_intervals 表 append-mostly：只插入开放记录，并且每条记录的
finish_time 只能被设置一次。

并发安全完全依赖单条语句的原子性：
- append_open：INSERT ... SELECT，部分唯一索引拒绝第二条开放记录；
  任务不存在或不属于 owner 时不插入任何行。
- close_latest_open：条件 UPDATE（finish_time IS NULL），
  0 行受影响即视为没有开放区间。
"""

from datetime import datetime

import aiosqlite
import structlog

from ..exceptions import IntervalAlreadyOpenError, InvalidTaskIdError
from ..models.interval import IntervalRecord
from .sqlite_init import OPEN_INTERVAL_INDEX, fits_integer, format_ts, parse_ts
from .transaction import is_unique_violation, store_operation

log = structlog.get_logger()

_INTERVAL_COLUMNS = "id, task_id, owner_id, start_time, finish_time"


class SqliteIntervalStore:
    """IntervalStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def open_intervals(self, task_id: int, owner_id: int) -> list[IntervalRecord]:
        """查询任务的开放区间，按时间正序（不变量成立时至多一条）"""
        if not fits_integer(task_id, owner_id):
            return []
        async with store_operation("open_intervals"):
            cursor = await self._conn.execute(
                f"""
                SELECT {_INTERVAL_COLUMNS} FROM task_intervals
                WHERE task_id = ? AND owner_id = ? AND finish_time IS NULL
                ORDER BY start_time ASC, id ASC
                """,
                (task_id, owner_id),
            )
            rows = await cursor.fetchall()
        return [self._row_to_interval(row) for row in rows]

    async def append_open(
        self,
        task_id: int,
        owner_id: int,
        start_time: datetime,
    ) -> IntervalRecord:
        """插入一条开放区间

        实际写入的 start_time 不早于该任务已记录的最晚时间，
        保证同一任务内 start_time 单调不减。

        Raises:
            IntervalAlreadyOpenError: 已存在开放区间（唯一索引冲突）
            InvalidTaskIdError: 任务不存在或不属于 owner
        """
        if not fits_integer(task_id, owner_id):
            raise InvalidTaskIdError(task_id)

        async with store_operation("append_open"):
            try:
                cursor = await self._conn.execute(
                    """
                    INSERT INTO task_intervals (task_id, owner_id, start_time)
                    SELECT t.id, t.owner_id, MAX(?, COALESCE((
                        SELECT MAX(COALESCE(i.finish_time, i.start_time))
                        FROM task_intervals i WHERE i.task_id = t.id
                    ), ''))
                    FROM tasks t
                    WHERE t.id = ? AND t.owner_id = ?
                    """,
                    (format_ts(start_time), task_id, owner_id),
                )
            except aiosqlite.IntegrityError as e:
                if is_unique_violation(e, OPEN_INTERVAL_INDEX, "task_intervals.task_id"):
                    raise IntervalAlreadyOpenError(task_id) from e
                raise

            if cursor.rowcount == 0:
                raise InvalidTaskIdError(task_id)

            record = await self._get_interval(cursor.lastrowid)

        if record is None:
            # 插入后任务被并发删除，区间随之级联删除
            raise InvalidTaskIdError(task_id)
        return record

    async def close_latest_open(
        self,
        task_id: int,
        owner_id: int,
        finish_time: datetime,
    ) -> IntervalRecord | None:
        """关闭任务唯一的开放区间

        写入的 finish_time 不早于该区间的 start_time。

        Returns:
            关闭后的区间记录；没有开放区间（或被并发请求抢先关闭）时返回 None
        """
        if not fits_integer(task_id, owner_id):
            return None

        async with store_operation("close_latest_open"):
            cursor = await self._conn.execute(
                f"""
                SELECT {_INTERVAL_COLUMNS} FROM task_intervals
                WHERE task_id = ? AND owner_id = ? AND finish_time IS NULL
                ORDER BY start_time DESC, id DESC
                LIMIT 1
                """,
                (task_id, owner_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            record = self._row_to_interval(row)
            effective_finish = max(finish_time, record.start_time)

            cursor = await self._conn.execute(
                """
                UPDATE task_intervals SET finish_time = ?
                WHERE id = ? AND finish_time IS NULL
                """,
                (format_ts(effective_finish), record.id),
            )
            if cursor.rowcount == 0:
                log.info(
                    "interval_close_lost_race",
                    task_id=task_id,
                    interval_id=record.id,
                )
                return None

        return record.model_copy(update={"finish_time": effective_finish})

    async def list_for_task(self, task_id: int, owner_id: int) -> list[IntervalRecord]:
        """查询任务全部区间，按时间正序"""
        if not fits_integer(task_id, owner_id):
            return []
        async with store_operation("list_for_task"):
            cursor = await self._conn.execute(
                f"""
                SELECT {_INTERVAL_COLUMNS} FROM task_intervals
                WHERE task_id = ? AND owner_id = ?
                ORDER BY start_time ASC, id ASC
                """,
                (task_id, owner_id),
            )
            rows = await cursor.fetchall()
        return [self._row_to_interval(row) for row in rows]

    async def list_for_owner(self, owner_id: int) -> list[IntervalRecord]:
        """查询 owner 全部区间，按时间正序（用于 TaskHistory 分组）"""
        if not fits_integer(owner_id):
            return []
        async with store_operation("list_for_owner"):
            cursor = await self._conn.execute(
                f"""
                SELECT {_INTERVAL_COLUMNS} FROM task_intervals
                WHERE owner_id = ?
                ORDER BY start_time ASC, id ASC
                """,
                (owner_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_interval(row) for row in rows]

    async def _get_interval(self, interval_id: int) -> IntervalRecord | None:
        cursor = await self._conn.execute(
            f"SELECT {_INTERVAL_COLUMNS} FROM task_intervals WHERE id = ?",
            (interval_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_interval(row)

    @staticmethod
    def _row_to_interval(row: aiosqlite.Row) -> IntervalRecord:
        """将数据库行转换为 IntervalRecord 模型"""
        return IntervalRecord(
            id=row[0],
            task_id=row[1],
            owner_id=row[2],
            start_time=parse_ts(row[3]),
            finish_time=parse_ts(row[4]),
        )
