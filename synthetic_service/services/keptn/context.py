from __future__ import annotations

import json
import logging
from typing import Optional

from synthetic_service.core.models import EventData
from synthetic_service.services.keptn.errors import KeptnEventError
from synthetic_service.services.keptn.events import (
    KEPTN_SPEC_VERSION,
    CloudEvent,
    get_finished_event_type,
    get_started_event_type,
    parse_task_name,
)
from synthetic_service.services.keptn.sender import EventSender

logger = logging.getLogger(__name__)


class KeptnTaskContext:
    """
    围绕一个 triggered 事件构造并发送对应的 started / finished 事件。

    - 事件类型由 triggered 事件的 task 名推导
    - shkeptncontext 沿用，triggeredid 指向 triggered 事件 id
    - payload 未设置 project/stage/service/labels 时，从 triggered 事件的 data 补齐
    """

    def __init__(
        self,
        *,
        incoming: CloudEvent,
        incoming_data: EventData,
        event_sender: EventSender,
        source: str,
    ) -> None:
        task = parse_task_name(incoming.type)
        if task is None:
            raise KeptnEventError(f"Not a Keptn task event type: {incoming.type}")

        self.task = task
        self.incoming = incoming
        self._incoming_data = incoming_data
        self._sender = event_sender
        self._source = source

    def create_event(self, event_type: str, data: EventData) -> CloudEvent:
        payload = data.model_copy(
            update={
                key: getattr(self._incoming_data, key)
                for key in ("project", "stage", "service", "labels")
                if getattr(data, key) is None
            }
        )
        try:
            # 先走一遍 JSON，确保 data 一定可以序列化
            body = json.loads(payload.model_dump_json(by_alias=True, exclude_none=True))
        except (TypeError, ValueError) as exc:
            raise KeptnEventError(f"Failed to serialize {event_type} event data: {exc}") from exc

        return CloudEvent(
            source=self._source,
            type=event_type,
            datacontenttype="application/json",
            data=body,
            shkeptncontext=self.incoming.shkeptncontext,
            triggeredid=self.incoming.id,
            shkeptnspecversion=self.incoming.shkeptnspecversion or KEPTN_SPEC_VERSION,
        )

    async def send_task_started_event(self, data: Optional[EventData] = None) -> CloudEvent:
        event = self.create_event(get_started_event_type(self.task), data or EventData())
        await self._sender.send(event)
        return event

    async def send_task_finished_event(self, data: EventData) -> CloudEvent:
        event = self.create_event(get_finished_event_type(self.task), data)
        await self._sender.send(event)
        logger.info(
            "Task %s finished for triggeredid=%s: status=%s result=%s",
            self.task,
            self.incoming.id,
            data.status,
            data.result,
        )
        return event
