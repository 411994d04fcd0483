"""
Dynatrace API 客户端模块

目前只用到 Synthetic 的按需执行接口。
"""
from __future__ import annotations

from synthetic_service.services.dynatrace.errors import (
    DynatraceAPIError,
    DynatraceConfigError,
    DynatraceError,
    DynatraceResponseError,
    MonitorsNotTriggeredError,
)
from synthetic_service.services.dynatrace.synthetic import SyntheticApiClient

__all__ = [
    "SyntheticApiClient",
    "DynatraceError",
    "DynatraceConfigError",
    "DynatraceAPIError",
    "DynatraceResponseError",
    "MonitorsNotTriggeredError",
]
