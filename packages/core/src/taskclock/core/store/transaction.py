"""Store 操作封装 -- 持久化异常统一转换为 StoreFailureError

连接运行在 autocommit 模式，每个写操作是单条 SQL 语句，语句本身即原子；
这里不再显式 commit/rollback，只负责异常分类和日志。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite
import structlog

from ..exceptions import StoreFailureError

log = structlog.get_logger()


@asynccontextmanager
async def store_operation(operation: str) -> AsyncIterator[None]:
    """包裹一次 store 调用

    aiosqlite.Error 记录日志后转换为 StoreFailureError 向上传播；
    领域异常（InvalidTaskIdError 等）原样透传。

    Args:
        operation: 操作名称（写入日志）

    Raises:
        StoreFailureError: 底层持久化失败
    """
    try:
        yield
    except aiosqlite.Error as e:
        log.error(
            "store_failure",
            operation=operation,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise StoreFailureError(operation, e) from e


def is_unique_violation(error: Exception, *markers: str) -> bool:
    """判断 IntegrityError 是否为指定唯一约束冲突"""
    if not isinstance(error, aiosqlite.IntegrityError):
        return False
    text = str(error)
    return "UNIQUE constraint failed" in text and any(m in text for m in markers)
