"""Task Domain Model

任务创建后不可修改，只能由 owner 删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Task(BaseModel):
    """Task 数据模型"""

    id: int = Field(description="任务 ID，store 分配，自增")
    owner_id: int = Field(description="所属 owner ID")
    name: str = Field(description="任务名称，不要求唯一")
    description: str = Field(default="", description="任务描述")
    created_at: datetime = Field(description="创建时间")
