from __future__ import annotations

import asyncio
import json
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

from fastapi.testclient import TestClient

from synthetic_service.api import routes
from synthetic_service.core.task_store import TaskStore
from synthetic_service.main import create_app

EVENT_FILE = Path(__file__).parent / "events" / "test.triggered.json"


class TestCloudEventRoutes(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app())
        self.trigger_service = Mock()
        self.trigger_service.accepts = Mock(return_value=True)
        self.trigger_service.trigger = AsyncMock(return_value="task-1")
        self.trigger_service.drain = AsyncMock()
        patcher = patch.object(routes, "trigger_service", self.trigger_service)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_health(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_shutdown_drains_tasks_and_closes_dynatrace_client(self) -> None:
        http_client = Mock()
        http_client.aclose = AsyncMock()

        with patch.object(routes, "dynatrace_http_client", http_client):
            with TestClient(create_app()) as client:
                self.assertEqual(client.get("/health").status_code, 200)
                http_client.aclose.assert_not_awaited()

        self.trigger_service.drain.assert_awaited_once()
        http_client.aclose.assert_awaited_once()

    def test_structured_triggered_event_is_accepted(self) -> None:
        resp = self.client.post(
            "/",
            content=EVENT_FILE.read_bytes(),
            headers={"Content-Type": "application/cloudevents+json"},
        )

        self.assertEqual(resp.status_code, 202)
        self.assertEqual(resp.json()["task_id"], "task-1")
        self.assertEqual(resp.json()["status"], "accepted")
        event = self.trigger_service.trigger.await_args.args[0]
        self.assertEqual(event.type, "sh.keptn.event.test.triggered")
        self.assertEqual(event.shkeptncontext, "a3e5f16d-8888-4720-82c7-6995062905c1")

    def test_binary_triggered_event_is_accepted(self) -> None:
        resp = self.client.post(
            "/",
            content=json.dumps({"monitorId": "abc123"}),
            headers={
                "Content-Type": "application/json",
                "ce-specversion": "1.0",
                "ce-id": "evt-binary",
                "ce-source": "shipyard-controller",
                "ce-type": "sh.keptn.event.test.triggered",
            },
        )

        self.assertEqual(resp.status_code, 202)
        event = self.trigger_service.trigger.await_args.args[0]
        self.assertEqual(event.id, "evt-binary")
        self.assertEqual(event.data, {"monitorId": "abc123"})

    def test_unhandled_event_type_is_ignored(self) -> None:
        self.trigger_service.accepts.return_value = False
        event = json.loads(EVENT_FILE.read_text(encoding="utf-8"))
        event["type"] = "sh.keptn.event.deployment.triggered"

        resp = self.client.post(
            "/",
            content=json.dumps(event),
            headers={"Content-Type": "application/cloudevents+json"},
        )

        self.assertEqual(resp.status_code, 202)
        self.assertEqual(resp.json()["status"], "ignored")
        self.assertIsNone(resp.json()["task_id"])
        self.trigger_service.trigger.assert_not_awaited()

    def test_malformed_event_is_rejected(self) -> None:
        resp = self.client.post(
            "/",
            content=b"{not json",
            headers={"Content-Type": "application/cloudevents+json"},
        )

        self.assertEqual(resp.status_code, 400)
        self.trigger_service.trigger.assert_not_awaited()

    def test_task_status(self) -> None:
        store = TaskStore()

        async def _prepare() -> str:
            task_id, _ = await store.create_task(event_id="evt-1", context={"event_id": "evt-1"})
            await store.succeed(task_id, {"batch_id": "b1", "execution_ids": ["e1"]})
            return task_id

        task_id = asyncio.run(_prepare())

        with patch.object(routes, "task_store", store):
            resp = self.client.get(f"/tasks/{task_id}")
            missing = self.client.get("/tasks/unknown")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "succeeded")
        self.assertEqual(resp.json()["result"]["execution_ids"], ["e1"])
        self.assertEqual(missing.status_code, 404)


if __name__ == "__main__":
    unittest.main()
