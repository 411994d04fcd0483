from __future__ import annotations

import asyncio
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Literal, Optional, Tuple

TaskStatus = Literal["running", "succeeded", "failed"]


@dataclass
class TaskRecord:
    """
    一个 triggered 事件的处理记录。
    """

    task_id: str
    event_id: str
    status: TaskStatus = "running"
    context: Dict[str, Any] = field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: float = 0.0
    updated_at: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self.status != "running"


class TaskStore:
    """
    内存版事件处理记录，按 CloudEvent id 去重，进程重启即丢失。

    已结束的记录超过 retention_s 后淘汰；总数超过 max_records 时从最早的已结束记录开始淘汰。
    进行中的记录不会被淘汰。淘汰记录时同时释放其 event_id，之后同一事件再次投递会被重新处理。
    """

    def __init__(
        self,
        *,
        retention_s: float = 3600.0,
        max_records: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lock = asyncio.Lock()
        self._retention_s = retention_s
        self._max_records = max_records
        self._clock = clock
        # task_id -> record，按创建顺序
        self._records: "OrderedDict[str, TaskRecord]" = OrderedDict()
        self._by_event: Dict[str, str] = {}

    async def create_task(self, *, event_id: str, context: Dict[str, Any]) -> Tuple[str, bool]:
        """
        返回 (task_id, created)；同一 event_id 的记录仍在时返回已有 task_id 与 False。
        """
        async with self._lock:
            self._evict()
            existing = self._by_event.get(event_id)
            if existing is not None:
                return existing, False

            record = TaskRecord(
                task_id=uuid.uuid4().hex,
                event_id=event_id,
                context=context,
                created_at=self._clock(),
            )
            self._records[record.task_id] = record
            self._by_event[event_id] = record.task_id
            return record.task_id, True

    async def succeed(self, task_id: str, result: Dict[str, Any]) -> None:
        await self._finish(task_id, status="succeeded", result=result)

    async def fail(self, task_id: str, error: str) -> None:
        await self._finish(task_id, status="failed", error=error)

    async def get(self, task_id: str) -> Optional[TaskRecord]:
        async with self._lock:
            self._evict()
            record = self._records.get(task_id)
            # 返回副本避免外部修改
            return replace(record) if record else None

    def __len__(self) -> int:
        return len(self._records)

    async def _finish(self, task_id: str, **changes: Any) -> None:
        async with self._lock:
            record = self._records.get(task_id)
            if record is None:
                return
            for key, value in changes.items():
                setattr(record, key, value)
            record.updated_at = self._clock()
            self._evict()

    def _evict(self) -> None:
        now = self._clock()
        expired = [
            task_id
            for task_id, record in self._records.items()
            if record.finished and now - (record.updated_at or record.created_at) >= self._retention_s
        ]
        for task_id in expired:
            self._drop(task_id)

        if len(self._records) > self._max_records:
            for task_id in [t for t, r in self._records.items() if r.finished]:
                if len(self._records) <= self._max_records:
                    break
                self._drop(task_id)

    def _drop(self, task_id: str) -> None:
        record = self._records.pop(task_id)
        if self._by_event.get(record.event_id) == task_id:
            del self._by_event[record.event_id]
