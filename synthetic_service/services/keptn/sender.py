from __future__ import annotations

import json
import logging
from typing import Optional, Protocol

import httpx

from synthetic_service.services.keptn.errors import KeptnEventError
from synthetic_service.services.keptn.events import CLOUDEVENTS_CONTENT_TYPE, CloudEvent

logger = logging.getLogger(__name__)


class EventSender(Protocol):
    async def send(self, event: CloudEvent) -> None: ...


class HttpEventSender:
    """
    将 CloudEvent 以结构化模式 POST 到 Keptn 事件入口（通常是同 Pod 的 distributor）。

    - 未传入 http_client 时，每次发送临时创建 AsyncClient
    - 非 2xx 或网络错误统一抛 KeptnEventError
    """

    def __init__(
        self,
        *,
        broker_url: str,
        timeout_s: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = broker_url
        self._timeout = timeout_s
        self._client = http_client

    async def send(self, event: CloudEvent) -> None:
        body = json.dumps(event.to_structured())
        headers = {"Content-Type": CLOUDEVENTS_CONTENT_TYPE}

        try:
            if self._client is not None:
                resp = await self._client.post(self._url, content=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(self._url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            raise KeptnEventError(
                f"Failed to send {event.type} event {event.id} to {self._url}: {exc}"
            ) from exc

        if not 200 <= resp.status_code < 300:
            raise KeptnEventError(
                f"Event broker rejected {event.type} event {event.id}: "
                f"status={resp.status_code}, body={resp.text[:200]}",
                status_code=resp.status_code,
            )

        logger.info(
            "Sent %s event id=%s shkeptncontext=%s -> status=%s",
            event.type,
            event.id,
            event.shkeptncontext,
            resp.status_code,
        )
