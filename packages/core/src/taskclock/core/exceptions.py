"""TaskClock 异常体系

认证失败与不变量冲突属于预期结果，由 gateway 直接映射为客户端状态码；
StoreFailureError 是唯一的非预期异常，统一映射为内部错误。
"""

from .models.enums import AuthFailureReason


class TaskClockError(Exception):
    """TaskClock 基础异常"""

    def __init__(self, message: str, code: str) -> None:
        """
        Args:
            message: 错误描述（可安全返回给客户端）
            code: 对外错误码
        """
        super().__init__(message)
        self.message = message
        self.code = code


class AuthFailureError(TaskClockError):
    """凭证缺失、无效或过期

    在任何 store 操作之前抛出，请求就此短路。
    """

    def __init__(self, reason: AuthFailureReason) -> None:
        super().__init__(
            f"Authorization failed: {reason.value.lower()} credential",
            code=f"AUTH_{reason.value}",
        )
        self.reason = reason


class CredentialsRejectedError(TaskClockError):
    """用户名或密码校验失败"""

    def __init__(self) -> None:
        super().__init__("Verification failed", code="AUTH_INVALID")


class UsernameTakenError(TaskClockError):
    """注册时用户名已存在"""

    def __init__(self, username: str) -> None:
        super().__init__(f"Username {username!r} is already taken", code="USERNAME_TAKEN")
        self.username = username


class InvalidTaskIdError(TaskClockError):
    """任务不存在，或不属于当前 owner

    两种情况对外不可区分，避免向非 owner 泄露任务是否存在。
    """

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task with id {task_id} does not exist", code="TASK_NOT_FOUND")
        self.task_id = task_id


class IntervalAlreadyOpenError(TaskClockError):
    """start 时任务已有未结束的区间"""

    def __init__(self, task_id: int) -> None:
        super().__init__(
            f"Task {task_id} is pending: finish it before starting again",
            code="TASK_ALREADY_STARTED",
        )
        self.task_id = task_id


class IntervalNotStartedError(TaskClockError):
    """finish 时任务没有未结束的区间"""

    def __init__(self, task_id: int) -> None:
        super().__init__(
            f"Task {task_id} is not started",
            code="TASK_NOT_STARTED",
        )
        self.task_id = task_id


class StoreFailureError(TaskClockError):
    """持久化层失败（连接、未预期的约束冲突等）

    原始异常保存在 original_error 中，仅用于服务端日志。
    """

    def __init__(self, operation: str, original_error: Exception) -> None:
        super().__init__("Internal storage failure", code="INTERNAL_ERROR")
        self.operation = operation
        self.original_error = original_error
