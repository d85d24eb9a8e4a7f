"""OwnerStore SQLite 实现 -- owner 账户（凭证校验使用）"""

from datetime import UTC, datetime

import aiosqlite

from ..exceptions import UsernameTakenError
from ..models.owner import OwnerAccount
from .sqlite_init import format_ts, parse_ts
from .transaction import is_unique_violation, store_operation


class SqliteOwnerStore:
    """OwnerStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_owner(self, username: str, email: str, password_hash: str) -> int:
        """创建 owner 账户，返回 owner id

        Raises:
            UsernameTakenError: 用户名已存在
        """
        async with store_operation("create_owner"):
            try:
                cursor = await self._conn.execute(
                    """
                    INSERT INTO owners (username, email, password_hash, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (username, email, password_hash, format_ts(datetime.now(UTC))),
                )
            except aiosqlite.IntegrityError as e:
                if is_unique_violation(e, "owners.username"):
                    raise UsernameTakenError(username) from e
                raise
            return cursor.lastrowid

    async def get_by_username(self, username: str) -> OwnerAccount | None:
        """根据用户名查询账户"""
        async with store_operation("get_owner_by_username"):
            cursor = await self._conn.execute(
                """
                SELECT id, username, email, password_hash, created_at
                FROM owners WHERE username = ?
                """,
                (username,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return OwnerAccount(
            id=row[0],
            username=row[1],
            email=row[2],
            password_hash=row[3],
            created_at=parse_ts(row[4]),
        )
