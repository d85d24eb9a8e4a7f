"""SQLite 数据库初始化

PRAGMA 配置 + 三张表 DDL + 索引创建。
使用 aiosqlite 异步操作。

task_intervals 上的部分唯一索引保证同一 task 至多一条未结束区间，
并发 start 的线性化点在这里，而不是在应用层。
"""

from datetime import UTC, datetime

import aiosqlite

# owners 表 DDL
_OWNERS_DDL = """
CREATE TABLE IF NOT EXISTS owners (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    username       TEXT NOT NULL UNIQUE,
    email          TEXT NOT NULL DEFAULT '',
    password_hash  TEXT NOT NULL,
    created_at     TEXT NOT NULL
);
"""

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id     INTEGER NOT NULL,
    name         TEXT NOT NULL,
    description  TEXT NOT NULL DEFAULT '',
    created_at   TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_id ON tasks(owner_id, id);",
]

# task_intervals 表 DDL（删除任务时级联删除区间历史）
_TASK_INTERVALS_DDL = """
CREATE TABLE IF NOT EXISTS task_intervals (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id      INTEGER NOT NULL,
    owner_id     INTEGER NOT NULL,
    start_time   TEXT NOT NULL,
    finish_time  TEXT,

    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
    CHECK (finish_time IS NULL OR finish_time >= start_time)
);
"""

OPEN_INTERVAL_INDEX = "idx_task_intervals_open"

_TASK_INTERVALS_INDEXES = [
    # 同一 task 至多一条未结束区间（仅对 finish_time IS NULL 的行生效）
    (
        f"CREATE UNIQUE INDEX IF NOT EXISTS {OPEN_INTERVAL_INDEX} "
        "ON task_intervals(task_id) WHERE finish_time IS NULL;"
    ),
    # 任务内区间时间排序索引
    "CREATE INDEX IF NOT EXISTS idx_task_intervals_task_start ON task_intervals(task_id, start_time);",
    "CREATE INDEX IF NOT EXISTS idx_task_intervals_owner ON task_intervals(owner_id, start_time);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_OWNERS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_TASK_INTERVALS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _TASK_INTERVALS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def connect(db_path: str) -> aiosqlite.Connection:
    """打开 autocommit 模式的连接并初始化

    每条写语句自成事务：请求超时或中断时，区间要么已写入/关闭，要么完全没有。
    """
    conn = await aiosqlite.connect(db_path, isolation_level=None)
    await init_db(conn)
    return conn


# SQLite INTEGER 为 64 位有符号整数
SQLITE_INTEGER_MIN = -(2**63)
SQLITE_INTEGER_MAX = 2**63 - 1


def fits_integer(*values: int) -> bool:
    """判断整数是否都能绑定为 SQLite INTEGER 参数

    超出范围的 id 不可能存在于库中，调用方按“不存在”处理。
    """
    return all(SQLITE_INTEGER_MIN <= v <= SQLITE_INTEGER_MAX for v in values)


def format_ts(ts: datetime) -> str:
    """时间戳落库格式：UTC + 固定微秒精度，保证文本序等于时间序"""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat(timespec="microseconds")


def parse_ts(value: str | None) -> datetime | None:
    """解析落库时间戳"""
    if value is None:
        return None
    return datetime.fromisoformat(value)
