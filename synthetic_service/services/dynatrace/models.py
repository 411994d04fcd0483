from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MonitorToTrigger(_ApiModel):
    monitor_id: str = Field(..., alias="monitorId")
    locations: List[str] = Field(default_factory=list)


class MonitorExecutionRequest(_ApiModel):
    """
    POST /api/v2/synthetic/monitors/execute 的请求体。
    """

    monitors_to_trigger: List[MonitorToTrigger] = Field(..., alias="monitorsToTrigger")

    @classmethod
    def for_monitor(
        cls, monitor_id: str, locations: Optional[List[str]] = None
    ) -> "MonitorExecutionRequest":
        return cls(
            monitors_to_trigger=[
                MonitorToTrigger(monitor_id=monitor_id, locations=list(locations or []))
            ]
        )


class ExecutionNotTriggered(_ApiModel):
    monitor_id: str = Field(default="", alias="monitorId")
    cause: str = ""


class MonitorExecution(_ApiModel):
    execution_id: str = Field(..., alias="executionId")
    location_id: str = Field(default="", alias="locationId")


class ExecutionTriggered(_ApiModel):
    monitor_id: str = Field(default="", alias="monitorId")
    executions: List[MonitorExecution] = Field(default_factory=list)

    @field_validator("executions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value if value is not None else []


class MonitorExecutionResponse(_ApiModel):
    """
    execute 接口的响应体，缺失字段按空值处理。
    """

    batch_id: str = Field(default="", alias="batchId")
    not_triggered_count: int = Field(default=0, alias="notTriggeredCount")
    not_triggered: List[ExecutionNotTriggered] = Field(default_factory=list, alias="notTriggered")
    triggered_count: int = Field(default=0, alias="triggeredCount")
    triggered: List[ExecutionTriggered] = Field(default_factory=list)

    @field_validator("not_triggered", "triggered", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value if value is not None else []

    def execution_ids(self) -> List[str]:
        """按响应顺序收集所有已触发执行的 executionId。"""
        return [
            execution.execution_id
            for triggered in self.triggered
            for execution in triggered.executions
        ]
