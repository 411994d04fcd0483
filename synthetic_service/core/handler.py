from __future__ import annotations

import logging

import httpx

from synthetic_service.config import Settings
from synthetic_service.core.models import (
    RESULT_FAILED,
    RESULT_PASS,
    STATUS_ERRORED,
    STATUS_SUCCEEDED,
    SyntheticEventData,
    SyntheticExecution,
    TaskResultEventData,
)
from synthetic_service.services.dynatrace import (
    DynatraceConfigError,
    DynatraceError,
    MonitorsNotTriggeredError,
    SyntheticApiClient,
)
from synthetic_service.services.dynatrace.models import MonitorExecutionRequest
from synthetic_service.services.keptn import (
    CloudEvent,
    EventSender,
    KeptnEventError,
    KeptnTaskContext,
)

logger = logging.getLogger(__name__)


class SyntheticMonitorHandler:
    """
    处理 sh.keptn.event.<task>.triggered：触发 Dynatrace Synthetic monitor，
    并回传 started / finished 事件。

    除 started 事件发送失败外，任何失败都会先发送 status=errored/result=fail 的
    finished 事件，再把原始异常抛给调用方。不重试，也不等待 monitor 执行结果。
    """

    def __init__(self, *, settings: Settings, event_sender: EventSender) -> None:
        self._settings = settings
        self._sender = event_sender

    async def handle(
        self,
        incoming_event: CloudEvent,
        data: SyntheticEventData,
        http_client: httpx.AsyncClient,
    ) -> SyntheticExecution:
        logger.info("Handling %s Event: %s", incoming_event.type, incoming_event.id)

        keptn = KeptnTaskContext(
            incoming=incoming_event,
            incoming_data=data,
            event_sender=self._sender,
            source=self._settings.SERVICE_NAME,
        )

        try:
            await keptn.send_task_started_event(data.task_metadata())
        except KeptnEventError as exc:
            logger.error("Failed to send task started CloudEvent (%s), aborting...", exc)
            raise

        request = MonitorExecutionRequest.for_monitor(data.monitor_id, data.locations)
        api = SyntheticApiClient(
            http_client=http_client,
            tenant=self._settings.DT_TENANT,
            api_token=self._settings.DT_API_TOKEN,
        )

        try:
            response = await api.execute_monitors(request)
            if response.not_triggered_count > 0:
                raise MonitorsNotTriggeredError(
                    f"{response.not_triggered_count} monitor(s) not triggered: "
                    + ", ".join(f"{item.monitor_id} ({item.cause})" for item in response.not_triggered),
                    not_triggered=response.not_triggered,
                )
        except DynatraceError as exc:
            logger.error("Failed to trigger Synthetic monitor %s, aborting... %s", data.monitor_id, exc)
            await self._send_errored(keptn, self._failure_message(data.monitor_id, exc))
            raise

        execution = SyntheticExecution(
            batch_id=response.batch_id,
            execution_ids=response.execution_ids(),
        )
        logger.info(
            "Triggered Synthetic monitor %s: batch_id=%s executions=%s",
            data.monitor_id,
            execution.batch_id,
            execution.execution_ids,
        )

        # 只负责触发，不等待执行结果
        await keptn.send_task_finished_event(
            TaskResultEventData(
                status=STATUS_SUCCEEDED,
                result=RESULT_PASS,
                batch_id=execution.batch_id,
                execution_ids=execution.execution_ids,
            )
        )
        return execution

    async def _send_errored(self, keptn: KeptnTaskContext, message: str) -> None:
        try:
            await keptn.send_task_finished_event(
                TaskResultEventData(status=STATUS_ERRORED, result=RESULT_FAILED, message=message)
            )
        except KeptnEventError as exc:
            # 调用方拿到的仍是触发失败的原始异常
            logger.error("Failed to send errored task finished CloudEvent: %s", exc)

    @staticmethod
    def _failure_message(monitor_id: str, exc: DynatraceError) -> str:
        if isinstance(exc, DynatraceConfigError):
            return f"Invalid Dynatrace configuration (DT_TENANT / DT_API_TOKEN)! {exc}"
        return f"Failed to trigger Synthetic monitor {monitor_id}! {exc}"
