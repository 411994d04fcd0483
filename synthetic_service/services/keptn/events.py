"""
CloudEvent 模型与 Keptn 事件类型约定

Keptn 任务事件类型格式：sh.keptn.event.<task>.<triggered|started|finished>
"""
from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Type, TypeVar
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from synthetic_service.services.keptn.errors import KeptnEventError

KEPTN_EVENT_PREFIX = "sh.keptn.event."
KEPTN_SPEC_VERSION = "0.2.3"
CLOUDEVENTS_CONTENT_TYPE = "application/cloudevents+json"

TRIGGERED = "triggered"
STARTED = "started"
FINISHED = "finished"

T = TypeVar("T", bound=BaseModel)


def get_triggered_event_type(task: str) -> str:
    return f"{KEPTN_EVENT_PREFIX}{task}.{TRIGGERED}"


def get_started_event_type(task: str) -> str:
    return f"{KEPTN_EVENT_PREFIX}{task}.{STARTED}"


def get_finished_event_type(task: str) -> str:
    return f"{KEPTN_EVENT_PREFIX}{task}.{FINISHED}"


def parse_task_name(event_type: str) -> Optional[str]:
    """
    sh.keptn.event.test.triggered -> test；不是 Keptn 任务事件时返回 None。
    """
    if not event_type.startswith(KEPTN_EVENT_PREFIX):
        return None
    task, sep, kind = event_type[len(KEPTN_EVENT_PREFIX):].rpartition(".")
    if not sep or not task or kind not in (TRIGGERED, STARTED, FINISHED):
        return None
    return task


def is_triggered_event_type(event_type: str) -> bool:
    return parse_task_name(event_type) is not None and event_type.endswith(f".{TRIGGERED}")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CloudEvent(BaseModel):
    """
    CloudEvents 1.0 结构化表示；Keptn 扩展属性单独建字段，其余扩展属性原样保留。
    """

    model_config = ConfigDict(extra="allow")

    specversion: str = "1.0"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: str
    type: str
    datacontenttype: Optional[str] = "application/json"
    time: Optional[str] = Field(default_factory=_utc_now)
    data: Optional[Any] = None

    # Keptn 扩展属性
    shkeptncontext: Optional[str] = None
    triggeredid: Optional[str] = None
    shkeptnspecversion: Optional[str] = None

    def data_as(self, model: Type[T]) -> T:
        """
        将 data 解析为指定的 pydantic 模型（data 可能是 dict，也可能是 JSON 字符串）。
        """
        payload = self.data
        if payload is None:
            raise KeptnEventError(f"Event {self.id} has no data")
        try:
            if isinstance(payload, (str, bytes)):
                payload = json.loads(payload)
            return model.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            raise KeptnEventError(
                f"Failed to parse data of event {self.id} as {model.__name__}: {exc}"
            ) from exc

    def to_structured(self) -> Dict[str, Any]:
        """结构化模式（application/cloudevents+json）的 JSON 对象。"""
        return self.model_dump(exclude_none=True)


def from_http(headers: Mapping[str, str], body: bytes) -> CloudEvent:
    """
    从 HTTP 请求解析 CloudEvent，同时支持结构化模式和 binary 模式（ce-* 请求头）。
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    content_type = lowered.get("content-type", "")

    if "ce-specversion" in lowered:
        # binary 模式的 ce-* 取值是百分号编码的
        attrs: Dict[str, Any] = {
            key[len("ce-"):]: unquote(value) for key, value in lowered.items() if key.startswith("ce-")
        }
        attrs["datacontenttype"] = content_type or None
        if body:
            if "json" in content_type:
                try:
                    attrs["data"] = json.loads(body)
                except ValueError as exc:
                    raise KeptnEventError(f"Invalid JSON event data: {exc}") from exc
            else:
                attrs["data"] = body.decode("utf-8", errors="replace")
    else:
        try:
            attrs = json.loads(body)
        except ValueError as exc:
            raise KeptnEventError(f"Invalid CloudEvent JSON: {exc}") from exc
        if not isinstance(attrs, dict):
            raise KeptnEventError("CloudEvent must be a JSON object")

    try:
        return CloudEvent.model_validate(attrs)
    except ValidationError as exc:
        raise KeptnEventError(f"Invalid CloudEvent: {exc}") from exc
