"""
Keptn 事件模块

- events: CloudEvent 模型、事件类型约定、HTTP 解析
- context: 基于 triggered 事件发送 started / finished 事件
- sender: 事件发送（POST 到 Keptn 事件入口）
"""
from __future__ import annotations

from synthetic_service.services.keptn.context import KeptnTaskContext
from synthetic_service.services.keptn.errors import KeptnEventError
from synthetic_service.services.keptn.events import (
    CloudEvent,
    from_http,
    get_finished_event_type,
    get_started_event_type,
    get_triggered_event_type,
    is_triggered_event_type,
    parse_task_name,
)
from synthetic_service.services.keptn.sender import EventSender, HttpEventSender

__all__ = [
    "CloudEvent",
    "EventSender",
    "HttpEventSender",
    "KeptnEventError",
    "KeptnTaskContext",
    "from_http",
    "get_finished_event_type",
    "get_started_event_type",
    "get_triggered_event_type",
    "is_triggered_event_type",
    "parse_task_name",
]
