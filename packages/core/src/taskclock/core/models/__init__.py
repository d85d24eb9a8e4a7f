"""TaskClock Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    VALID_TRANSITIONS,
    AuthFailureReason,
    TaskState,
    Transition,
    validate_transition,
)
from .interval import (
    IntervalRecord,
    IntervalView,
    TaskHistory,
    derive_state,
    to_history,
)
from .owner import OwnerAccount
from .task import Task

__all__ = [
    # 枚举
    "TaskState",
    "Transition",
    "AuthFailureReason",
    # 状态机
    "VALID_TRANSITIONS",
    "validate_transition",
    "derive_state",
    # Task
    "Task",
    # Interval
    "IntervalRecord",
    "IntervalView",
    "TaskHistory",
    "to_history",
    # Owner
    "OwnerAccount",
]
