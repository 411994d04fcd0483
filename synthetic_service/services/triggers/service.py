from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Set

import httpx

from synthetic_service.core.handler import SyntheticMonitorHandler
from synthetic_service.core.models import SyntheticEventData
from synthetic_service.core.task_store import TaskStore
from synthetic_service.services.keptn import (
    CloudEvent,
    KeptnEventError,
    get_triggered_event_type,
)

logger = logging.getLogger(__name__)


class TriggerService:
    """
    触发层统一服务：负责筛选事件类型、幂等、创建任务、启动后台处理，并将结果写回 TaskStore。
    """

    def __init__(
        self,
        *,
        task_store: TaskStore,
        handler: SyntheticMonitorHandler,
        http_client: httpx.AsyncClient,
        task_name: str,
    ) -> None:
        self._tasks = task_store
        self._handler = handler
        self._http_client = http_client
        self._event_type = get_triggered_event_type(task_name)
        self._running: Set[asyncio.Task] = set()

    def accepts(self, event: CloudEvent) -> bool:
        return event.type == self._event_type

    async def trigger(self, event: CloudEvent) -> str:
        """
        创建任务并异步执行，返回 task_id。

        同一个 CloudEvent id 重复投递时返回同一个 task_id，且不会再次处理。
        """
        task_id, created = await self._tasks.create_task(
            event_id=event.id,
            context={
                "event_id": event.id,
                "event_type": event.type,
                "shkeptncontext": event.shkeptncontext,
            },
        )
        if not created:
            logger.info("Duplicate delivery of event %s, task_id=%s", event.id, task_id)
            return task_id

        job = asyncio.create_task(self._run(task_id, event))
        self._running.add(job)
        job.add_done_callback(self._running.discard)
        return task_id

    async def drain(self) -> None:
        """等待所有后台处理结束。"""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def _run(self, task_id: str, event: CloudEvent) -> None:
        try:
            data = event.data_as(SyntheticEventData)
        except KeptnEventError as exc:
            logger.error("Failed to convert incoming cloudevent %s: %s", event.id, exc)
            await self._tasks.fail(task_id, str(exc))
            return

        try:
            execution = await self._handler.handle(event, data, self._http_client)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Processing failed task_id=%s event=%s monitor=%s", task_id, event.id, data.monitor_id
            )
            await self._tasks.fail(task_id, str(exc))
            return

        await self._tasks.succeed(task_id, asdict(execution))
