"""TraceMiddleware -- 任务级追踪

对 /api/tasks/{task_id}/... 请求绑定 trace_id=task-<id>，
同一任务的 start/finish/delete 日志可按 trace_id 串联。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


def extract_task_id(path: str) -> str | None:
    """从 /api/tasks/{task_id}[/start|/finish] 中提取数字 task_id"""
    parts = [p for p in path.split("/") if p]
    for i, part in enumerate(parts):
        if part == "tasks" and i + 1 < len(parts) and parts[i + 1].isdigit():
            return parts[i + 1]
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id is not None:
            structlog.contextvars.bind_contextvars(trace_id=f"task-{task_id}")

        return await call_next(request)
