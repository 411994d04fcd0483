from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

import httpx
from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from synthetic_service.config import get_settings
from synthetic_service.core.handler import SyntheticMonitorHandler
from synthetic_service.core.task_store import TaskStatus, TaskStore
from synthetic_service.services.keptn import HttpEventSender, KeptnEventError, from_http
from synthetic_service.services.triggers.service import TriggerService

logger = logging.getLogger(__name__)

router = APIRouter()


class EventAccepted(BaseModel):
    task_id: Optional[str] = None
    status: Literal["accepted", "ignored"] = "accepted"
    message: str = "Processing started"


class TaskStatusResponse(BaseModel):
    task_id: str
    status: TaskStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    created_at: float
    updated_at: Optional[float] = None


settings = get_settings()
task_store = TaskStore(
    retention_s=settings.TASK_RETENTION_S,
    max_records=settings.TASK_MAX_RECORDS,
)

# Dynatrace 请求共用一个 client，超时由配置决定
dynatrace_http_client = httpx.AsyncClient(timeout=settings.DT_API_TIMEOUT_S)

synthetic_handler = SyntheticMonitorHandler(
    settings=settings,
    event_sender=HttpEventSender(
        broker_url=settings.KEPTN_EVENT_BROKER_URL,
        timeout_s=settings.KEPTN_EVENT_TIMEOUT_S,
    ),
)
trigger_service = TriggerService(
    task_store=task_store,
    handler=synthetic_handler,
    http_client=dynatrace_http_client,
    task_name=settings.TASK_NAME,
)


@router.post(
    "/",
    summary="接收 Keptn CloudEvent",
    response_model=EventAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def receive_event(request: Request) -> EventAccepted:
    body = await request.body()
    try:
        event = from_http(request.headers, body)
    except KeptnEventError as exc:
        logger.warning("Rejected malformed CloudEvent: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if not trigger_service.accepts(event):
        logger.info("Unhandled Keptn Cloud Event: %s (id=%s)", event.type, event.id)
        return EventAccepted(status="ignored", message=f"Event type {event.type} is not handled")

    task_id = await trigger_service.trigger(event)
    return EventAccepted(task_id=task_id)


@router.get(
    "/tasks/{task_id}",
    summary="查询事件处理状态",
    response_model=TaskStatusResponse,
)
async def get_task_status(task_id: str) -> TaskStatusResponse:
    task = await task_store.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    return TaskStatusResponse(
        task_id=task_id,
        status=task.status,
        result=task.result,
        error=task.error,
        context=task.context,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )
