"""LoggingMiddleware -- 请求级日志

为每个 HTTP 请求生成 request_id（ULID），绑定到 structlog contextvars，
并通过 X-Request-ID 响应头返回。

请求结束时记录一条 request_completed，附带：
- owner_id：get_owner_id 解析出的 owner（未认证请求为空）
- error_code：领域错误码（由 errors.py 写入 request.state）
- outcome：ok / rejected / failed
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"


def classify_outcome(status_code: int) -> str:
    """按状态码归类请求结果"""
    if status_code >= 500:
        return "failed"
    if status_code >= 400:
        return "rejected"
    return "ok"


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception as e:
            # 未映射的异常：记录后交给 ASGI 服务器返回 500
            await log.aerror(
                "request_crashed",
                error_type=type(e).__name__,
                owner_id=getattr(request.state, "owner_id", None),
                elapsed_ms=int((time.monotonic() - started) * 1000),
            )
            raise

        outcome = classify_outcome(response.status_code)
        fields = {
            "status_code": response.status_code,
            "outcome": outcome,
            "owner_id": getattr(request.state, "owner_id", None),
            "elapsed_ms": int((time.monotonic() - started) * 1000),
        }
        error_code = getattr(request.state, "error_code", None)
        if error_code is not None:
            fields["error_code"] = error_code

        if outcome == "failed":
            await log.aerror("request_completed", **fields)
        else:
            await log.ainfo("request_completed", **fields)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
