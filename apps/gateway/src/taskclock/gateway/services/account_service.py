"""AccountService -- owner 注册与登录

注册：argon2id 哈希后写入 owners 表。
登录：校验密码，成功后签发 bearer token。
argon2 是 CPU/内存密集操作，放到线程中执行，避免阻塞事件循环。
"""

import asyncio

import structlog
from taskclock.core.exceptions import CredentialsRejectedError
from taskclock.core.identity import IssuedToken, TokenService
from taskclock.core.passwords import PasswordManager
from taskclock.core.store.protocols import OwnerStore

log = structlog.get_logger()


class AccountService:
    """owner 账户业务服务"""

    def __init__(
        self,
        owner_store: OwnerStore,
        token_service: TokenService,
        password_manager: PasswordManager,
    ) -> None:
        self._owner_store = owner_store
        self._token_service = token_service
        self._password_manager = password_manager

    async def register(self, username: str, email: str, password: str) -> int:
        """注册 owner，返回 owner_id

        Raises:
            UsernameTakenError: 用户名已存在
        """
        password_hash = await asyncio.to_thread(self._password_manager.hash, password)
        owner_id = await self._owner_store.create_owner(username, email, password_hash)
        log.info("owner_registered", owner_id=owner_id)
        return owner_id

    async def login(self, username: str, password: str) -> IssuedToken:
        """校验凭证并签发 token

        用户不存在时同样执行一次哈希校验，两种失败的耗时一致。

        Raises:
            CredentialsRejectedError: 用户不存在或密码错误
        """
        account = await self._owner_store.get_by_username(username)
        if account is None:
            await asyncio.to_thread(self._password_manager.verify_unknown, password)
            log.info("login_rejected", reason="unknown_username")
            raise CredentialsRejectedError()

        matched = await asyncio.to_thread(
            self._password_manager.verify, password, account.password_hash
        )
        if not matched:
            log.info("login_rejected", reason="password_mismatch", owner_id=account.id)
            raise CredentialsRejectedError()

        return self._token_service.issue(account.id)
