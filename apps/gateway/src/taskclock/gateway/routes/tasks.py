"""任务路由

GET    /api/tasks                    任务列表（含区间历史）
POST   /api/tasks                    创建任务
DELETE /api/tasks/{task_id}          删除任务（级联删除区间历史）
POST   /api/tasks/{task_id}/start    开始任务
POST   /api/tasks/{task_id}/finish   结束任务

所有路由都先经过 get_owner_id：未认证请求在访问 store 之前被拒绝。
"""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from taskclock.core.config import TASK_DESCRIPTION_MAX_LENGTH, TASK_NAME_MAX_LENGTH
from taskclock.core.exceptions import InvalidTaskIdError
from taskclock.core.history import TaskViewBuilder
from taskclock.core.lifecycle import LifecycleEngine
from taskclock.core.models import TaskHistory
from taskclock.core.store import StoreGroup

from ..deps import get_lifecycle_engine, get_owner_id, get_store_group, get_view_builder

log = structlog.get_logger()

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    name: str = Field(min_length=1, max_length=TASK_NAME_MAX_LENGTH, description="任务名称")
    description: str = Field(
        default="",
        max_length=TASK_DESCRIPTION_MAX_LENGTH,
        description="任务描述",
    )


class CreateTaskResponse(BaseModel):
    """创建任务响应：新任务 ID + owner 的完整任务列表"""

    task_id: int
    tasks: list[TaskHistory]


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskHistory]


class DeleteTaskResponse(BaseModel):
    """删除任务响应"""

    task_id: int
    deleted: bool


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    owner_id: int = Depends(get_owner_id),
    view_builder: TaskViewBuilder = Depends(get_view_builder),
):
    """查询 owner 的全部任务及区间历史"""
    return TaskListResponse(tasks=await view_builder.build_history(owner_id))


@router.post("/api/tasks", response_model=CreateTaskResponse, status_code=201)
async def create_task(
    body: CreateTaskRequest,
    owner_id: int = Depends(get_owner_id),
    store_group: StoreGroup = Depends(get_store_group),
    view_builder: TaskViewBuilder = Depends(get_view_builder),
):
    """创建任务，返回新任务 ID 和最新任务列表"""
    task_id = await store_group.task_store.create_task(owner_id, body.name, body.description)
    log.info("task_created", task_id=task_id, owner_id=owner_id)
    return CreateTaskResponse(
        task_id=task_id,
        tasks=await view_builder.build_history(owner_id),
    )


@router.delete("/api/tasks/{task_id}", response_model=DeleteTaskResponse)
async def delete_task(
    task_id: int,
    owner_id: int = Depends(get_owner_id),
    store_group: StoreGroup = Depends(get_store_group),
):
    """删除任务

    - 200: 删除成功
    - 404: 任务不存在或不属于当前 owner
    """
    deleted = await store_group.task_store.delete_task(task_id, owner_id)
    if not deleted:
        raise InvalidTaskIdError(task_id)

    log.info("task_deleted", task_id=task_id, owner_id=owner_id)
    return DeleteTaskResponse(task_id=task_id, deleted=True)


@router.post("/api/tasks/{task_id}/start", response_model=TaskHistory, status_code=202)
async def start_task(
    task_id: int,
    owner_id: int = Depends(get_owner_id),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """开始任务

    - 202: 已开始，返回最新 TaskHistory
    - 404: 任务不存在或不属于当前 owner
    - 409: 任务已在进行中
    """
    return await engine.start(task_id, owner_id)


@router.post("/api/tasks/{task_id}/finish", response_model=TaskHistory, status_code=202)
async def finish_task(
    task_id: int,
    owner_id: int = Depends(get_owner_id),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """结束任务

    - 202: 已结束，返回最新 TaskHistory
    - 404: 任务不存在或不属于当前 owner
    - 409: 任务尚未开始
    """
    return await engine.finish(task_id, owner_id)
