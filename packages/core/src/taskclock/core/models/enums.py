"""枚举定义

TaskState 为派生状态（不落库）：由任务最新一条区间记录推导。
IDLE 与 OPEN 之间无限循环，没有终态。
"""

from enum import StrEnum


class TaskState(StrEnum):
    """任务生命周期状态（派生）"""

    IDLE = "IDLE"
    OPEN = "OPEN"


class AuthFailureReason(StrEnum):
    """认证失败原因"""

    MISSING = "MISSING"
    INVALID = "INVALID"
    EXPIRED = "EXPIRED"


class Transition(StrEnum):
    """生命周期操作"""

    START = "start"
    FINISH = "finish"


# 合法流转：当前状态 -> 操作 -> 目标状态
VALID_TRANSITIONS: dict[TaskState, dict[Transition, TaskState]] = {
    TaskState.IDLE: {Transition.START: TaskState.OPEN},
    TaskState.OPEN: {Transition.FINISH: TaskState.IDLE},
}


def validate_transition(state: TaskState, transition: Transition) -> bool:
    """验证在给定状态下操作是否合法

    Args:
        state: 当前派生状态
        transition: 要执行的操作

    Returns:
        True 如果操作合法，否则 False
    """
    return transition in VALID_TRANSITIONS.get(state, {})
