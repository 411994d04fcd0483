from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

EventStatus = Literal["succeeded", "errored", "unknown"]
EventResult = Literal["pass", "warning", "fail"]

STATUS_SUCCEEDED: EventStatus = "succeeded"
STATUS_ERRORED: EventStatus = "errored"
STATUS_UNKNOWN: EventStatus = "unknown"

RESULT_PASS: EventResult = "pass"
RESULT_WARNING: EventResult = "warning"
RESULT_FAILED: EventResult = "fail"


class EventData(BaseModel):
    """
    Keptn 任务事件的公共 payload（project/stage/service + 状态字段）。
    """

    model_config = ConfigDict(populate_by_name=True)

    project: Optional[str] = None
    stage: Optional[str] = None
    service: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    status: Optional[EventStatus] = None
    result: Optional[EventResult] = None
    message: Optional[str] = None

    def task_metadata(self) -> "EventData":
        """只保留任务元信息，用于 started 事件。"""
        return EventData(
            project=self.project,
            stage=self.stage,
            service=self.service,
            labels=self.labels,
        )


class SyntheticEventData(EventData):
    """
    triggered 事件的 data：公共字段 + 需要执行的 Synthetic monitor。
    """

    monitor_id: str = Field(..., alias="monitorId", description="Dynatrace Synthetic monitor id")
    locations: List[str] = Field(default_factory=list, description="执行位置，空列表表示使用 monitor 自身配置")


class TaskResultEventData(EventData):
    """
    finished 事件的 data；成功时附带 batchId 与 executionIds。
    """

    batch_id: Optional[str] = Field(default=None, alias="batchId")
    execution_ids: Optional[List[str]] = Field(default=None, alias="executionIds")


@dataclass
class SyntheticExecution:
    """
    一次触发产生的执行批次。
    """

    batch_id: str
    execution_ids: List[str] = field(default_factory=list)
