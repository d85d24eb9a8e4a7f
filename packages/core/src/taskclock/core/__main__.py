"""CLI 入口模块 -- python -m taskclock.core <command>

支持的命令：
  init-db                 创建数据库表和索引
  issue-token <owner_id>  为指定 owner 签发 bearer token（调试用）
"""

import asyncio
import sys

from .config import get_db_path, load_identity_config

_USAGE = """用法: python -m taskclock.core <command>
命令:
  init-db                 创建数据库表和索引
  issue-token <owner_id>  为指定 owner 签发 bearer token"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "issue-token":
        if len(sys.argv) < 3 or not sys.argv[2].isdigit():
            print("用法: python -m taskclock.core issue-token <owner_id>")
            sys.exit(1)
        issue_token(int(sys.argv[2]))
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, issue-token")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库表和索引"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


def issue_token(owner_id: int) -> None:
    """签发 token 并输出到 stdout"""
    from .identity import TokenService

    issued = TokenService.from_config(load_identity_config()).issue(owner_id)
    print(issued.token)
    print(f"过期时间: {issued.expires_at.isoformat()}", file=sys.stderr)


if __name__ == "__main__":
    main()
