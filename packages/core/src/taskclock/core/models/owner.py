"""Owner 账户模型

owner_id 由 store 分配；核心逻辑只使用 owner_id，不修改账户。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class OwnerAccount(BaseModel):
    """Owner 账户（含密码哈希，不对外返回）"""

    id: int = Field(description="owner ID")
    username: str = Field(description="用户名，唯一")
    email: str = Field(default="", description="邮箱")
    password_hash: str = Field(description="argon2id 密码哈希（PHC 格式）")
    created_at: datetime = Field(description="注册时间")
