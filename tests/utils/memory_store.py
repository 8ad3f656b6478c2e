"""In-memory task store for tests."""

import itertools
from datetime import datetime, timezone
from typing import Any, Optional

from src.models.series import OrdinalPredicate
from src.models.task import TaskInstance
from src.services.task_store import TaskStoreGateway
from src.utils.errors import StoreError


class InMemoryTaskStore(TaskStoreGateway):
    """Dict-backed gateway with call counting and injectable failures."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.write_calls = 0
        self._ids = itertools.count(1)
        self._failures: dict[str, int] = {}

    def fail(self, method: str, after: int = 0) -> None:
        """Make ``method`` raise StoreError once it has succeeded ``after`` times."""
        self._failures[method] = after

    def _check(self, method: str) -> None:
        if method not in self._failures:
            return
        if self._failures[method] <= 0:
            raise StoreError(f"{method} failed", affected=0)
        self._failures[method] -= 1

    def _write(self, method: str) -> None:
        self._check(method)
        self.write_calls += 1

    def _task(self, row: dict) -> TaskInstance:
        return TaskInstance.model_validate(row)

    def tasks(self) -> list[TaskInstance]:
        return [self._task(row) for row in self.rows.values()]

    async def insert(self, instance: TaskInstance) -> str:
        self._write("insert")
        task_id = str(next(self._ids))
        self.rows[task_id] = {
            "task_id": task_id,
            **instance.to_row(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        return task_id

    async def insert_batch(self, instances: list[TaskInstance]) -> list[str]:
        self._check("insert_batch")
        ids = []
        for instance in instances:
            task_id = str(next(self._ids))
            self.rows[task_id] = {
                "task_id": task_id,
                **instance.to_row(),
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            ids.append(task_id)
        self.write_calls += 1
        return ids

    async def get(self, task_id: str) -> Optional[TaskInstance]:
        self._check("get")
        row = self.rows.get(task_id)
        return self._task(row) if row else None

    async def list_by_series(self, series_id: str) -> list[TaskInstance]:
        self._check("list_by_series")
        members = [self._task(row) for row in self.rows.values() if row["series_id"] == series_id]
        return sorted(members, key=lambda task: task.ordinal)

    async def list_by_owner(self, owner_id: str) -> list[TaskInstance]:
        self._check("list_by_owner")
        owned = [self._task(row) for row in self.rows.values() if row["owner_id"] == owner_id]
        return sorted(owned, key=lambda task: task.due_at)

    async def update_fields(self, task_id: str, fields: dict[str, Any]) -> int:
        self._write("update_fields")
        row = self.rows.get(task_id)
        if row is None:
            return 0
        row.update(fields)
        return 1

    def _matching(self, series_id: str, predicate: OrdinalPredicate) -> list[dict]:
        return [
            row for row in self.rows.values()
            if row["series_id"] == series_id and predicate.matches(row["ordinal"])
        ]

    async def update_where(self, series_id: str, predicate: OrdinalPredicate, fields: dict[str, Any]) -> int:
        self._write("update_where")
        rows = self._matching(series_id, predicate)
        for row in rows:
            row.update(fields)
        return len(rows)

    async def delete(self, task_id: str) -> int:
        self._write("delete")
        return 1 if self.rows.pop(task_id, None) else 0

    async def delete_where(self, series_id: str, predicate: OrdinalPredicate) -> int:
        self._write("delete_where")
        rows = self._matching(series_id, predicate)
        for row in rows:
            del self.rows[row["task_id"]]
        return len(rows)
