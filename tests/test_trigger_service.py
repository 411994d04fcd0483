from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, Mock

from synthetic_service.core.models import SyntheticExecution
from synthetic_service.core.task_store import TaskStore
from synthetic_service.services.dynatrace import DynatraceAPIError
from synthetic_service.services.keptn import CloudEvent
from synthetic_service.services.triggers.service import TriggerService


def make_event(event_id: str = "evt-1", **data) -> CloudEvent:
    return CloudEvent(
        id=event_id,
        source="shipyard-controller",
        type="sh.keptn.event.test.triggered",
        shkeptncontext="ctx-1",
        data=data or {"project": "sockshop", "monitorId": "abc123"},
    )


class TestTriggerService(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.store = TaskStore()
        self.handler = Mock()
        self.handler.handle = AsyncMock(
            return_value=SyntheticExecution(batch_id="b1", execution_ids=["e1", "e2"])
        )
        self.http_client = Mock()
        self.service = TriggerService(
            task_store=self.store,
            handler=self.handler,
            http_client=self.http_client,
            task_name="test",
        )

    def test_accepts_only_configured_triggered_type(self) -> None:
        self.assertTrue(self.service.accepts(make_event()))
        other = make_event().model_copy(update={"type": "sh.keptn.event.deployment.triggered"})
        self.assertFalse(self.service.accepts(other))
        started = make_event().model_copy(update={"type": "sh.keptn.event.test.started"})
        self.assertFalse(self.service.accepts(started))

    async def test_successful_run_records_execution(self) -> None:
        event = make_event()

        task_id = await self.service.trigger(event)
        await self.service.drain()

        self.handler.handle.assert_awaited_once()
        args = self.handler.handle.await_args.args
        self.assertIs(args[0], event)
        self.assertEqual(args[1].monitor_id, "abc123")
        self.assertIs(args[2], self.http_client)

        task = await self.store.get(task_id)
        self.assertEqual(task.status, "succeeded")
        self.assertEqual(task.result, {"batch_id": "b1", "execution_ids": ["e1", "e2"]})
        self.assertEqual(task.context["event_id"], "evt-1")

    async def test_duplicate_delivery_is_processed_once(self) -> None:
        first = await self.service.trigger(make_event("evt-dup"))
        second = await self.service.trigger(make_event("evt-dup"))
        await self.service.drain()

        self.assertEqual(first, second)
        self.handler.handle.assert_awaited_once()

    async def test_handler_failure_marks_task_failed(self) -> None:
        self.handler.handle = AsyncMock(side_effect=DynatraceAPIError("status 401", status_code=401))

        task_id = await self.service.trigger(make_event())
        await self.service.drain()

        task = await self.store.get(task_id)
        self.assertEqual(task.status, "failed")
        self.assertIn("401", task.error)

    async def test_invalid_event_data_is_rejected_without_handling(self) -> None:
        task_id = await self.service.trigger(make_event(project="sockshop"))
        await self.service.drain()

        self.handler.handle.assert_not_awaited()
        task = await self.store.get(task_id)
        self.assertEqual(task.status, "failed")


if __name__ == "__main__":
    unittest.main()
