"""
Keptn 事件异常定义
"""
from typing import Optional


class KeptnEventError(Exception):
    """
    事件构造或发送失败。
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
