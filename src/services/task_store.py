"""Task store gateway - persistence contract consumed by the series engine."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.models.series import OrdinalPredicate
from src.models.task import TaskInstance


class TaskStoreGateway(ABC):
    """
    Relational task persistence.

    Implementations execute each call as a single statement and raise
    ``StoreError`` on failure. Counts are the rows the store reports as
    affected; zero is a normal outcome (e.g. the row was deleted by a
    concurrent request).
    """

    @abstractmethod
    async def insert(self, instance: TaskInstance) -> str:
        """Insert one task and return its store-assigned ID."""

    @abstractmethod
    async def insert_batch(self, instances: list[TaskInstance]) -> list[str]:
        """Insert several tasks, returning IDs in input order."""

    @abstractmethod
    async def get(self, task_id: str) -> Optional[TaskInstance]:
        """Get a task by ID, or None."""

    @abstractmethod
    async def list_by_series(self, series_id: str) -> list[TaskInstance]:
        """All members of a series, ordered by ordinal."""

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> list[TaskInstance]:
        """All tasks of an owner, ordered by due date."""

    @abstractmethod
    async def update_fields(self, task_id: str, fields: dict[str, Any]) -> int:
        """Write ``fields`` to one task."""

    @abstractmethod
    async def update_where(self, series_id: str, predicate: OrdinalPredicate, fields: dict[str, Any]) -> int:
        """Write ``fields`` to the series members matching ``predicate``."""

    @abstractmethod
    async def delete(self, task_id: str) -> int:
        """Delete one task."""

    @abstractmethod
    async def delete_where(self, series_id: str, predicate: OrdinalPredicate) -> int:
        """Delete the series members matching ``predicate``."""
