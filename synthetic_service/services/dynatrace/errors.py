"""
Dynatrace API 异常定义
"""
from typing import List, Optional

from synthetic_service.services.dynatrace.models import ExecutionNotTriggered


class DynatraceError(Exception):
    """
    Dynatrace 相关异常基类。
    """


class DynatraceConfigError(DynatraceError):
    """
    租户地址 / token 配置不可用，请求尚未发出。
    """


class DynatraceAPIError(DynatraceError):
    """
    请求失败：网络错误或非 200 响应。
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DynatraceResponseError(DynatraceError):
    """
    响应体不是合法 JSON，或结构与预期不符。
    """


class MonitorsNotTriggeredError(DynatraceError):
    """
    部分（或全部）monitor 未被触发。
    """

    def __init__(self, message: str, *, not_triggered: List[ExecutionNotTriggered]) -> None:
        super().__init__(message)
        self.not_triggered = not_triggered
