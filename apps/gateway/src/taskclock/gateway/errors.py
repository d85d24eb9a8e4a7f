"""领域异常 -> HTTP 响应映射

错误响应体统一为 {"error": {"code": ..., "message": ...}}。
StoreFailureError 只返回通用内部错误，不暴露存储细节
（原始异常已在 store 层记录日志）。
"""

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse
from taskclock.core.exceptions import (
    AuthFailureError,
    CredentialsRejectedError,
    IntervalAlreadyOpenError,
    IntervalNotStartedError,
    InvalidTaskIdError,
    StoreFailureError,
    TaskClockError,
    UsernameTakenError,
)

log = structlog.get_logger()

_STATUS_BY_ERROR: dict[type[TaskClockError], int] = {
    AuthFailureError: 401,
    CredentialsRejectedError: 401,
    InvalidTaskIdError: 404,
    IntervalAlreadyOpenError: 409,
    IntervalNotStartedError: 409,
    UsernameTakenError: 409,
    StoreFailureError: 500,
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """构造统一格式的错误响应"""
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


async def handle_taskclock_error(request: Request, exc: TaskClockError) -> JSONResponse:
    """TaskClockError 统一处理"""
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    request.state.error_code = exc.code
    if status_code >= 500:
        log.error(
            "request_failed",
            code=exc.code,
            error_type=type(exc).__name__,
            operation=getattr(exc, "operation", None),
        )
    else:
        log.info("request_rejected", code=exc.code, status_code=status_code)
    return error_response(status_code, exc.code, exc.message)


def register_error_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(TaskClockError, handle_taskclock_error)
