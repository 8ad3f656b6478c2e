"""Supabase client wrapper and the Supabase-backed task store."""

import os
import logging
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from ulid import ULID

from src.models.series import OrdinalComparison, OrdinalPredicate
from src.models.task import TaskInstance
from src.services.task_store import TaskStoreGateway
from src.utils.errors import StoreError

logger = logging.getLogger(__name__)

TASKS_TABLE = os.environ.get("SUPABASE_TASKS_TABLE", "tasks")

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise StoreError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        """Enter async context."""
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def generate_task_id() -> str:
    """Generate a text-based task ID (ULID format)."""
    return str(ULID())


def _filter_ordinal(query, predicate: OrdinalPredicate):
    if predicate.comparison == OrdinalComparison.GT:
        return query.gt("ordinal", predicate.ordinal)
    return query.gte("ordinal", predicate.ordinal)


class SupabaseTaskStore(TaskStoreGateway):
    """Task store backed by a Supabase (PostgREST) table.

    Each method is one PostgREST request, so a batch insert is all or
    nothing. Affected counts are the number of rows PostgREST returns.
    """

    def __init__(self, table: str = TASKS_TABLE):
        self.table = table

    @staticmethod
    def _to_task(row: dict) -> TaskInstance:
        return TaskInstance.model_validate(row)

    async def insert(self, instance: TaskInstance) -> str:
        (task_id,) = await self.insert_batch([instance])
        return task_id

    async def insert_batch(self, instances: list[TaskInstance]) -> list[str]:
        if not instances:
            return []
        rows = [{"task_id": generate_task_id(), **instance.to_row()} for instance in instances]
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).insert(rows).execute()
            except Exception as e:
                raise StoreError(f"Failed to insert {len(rows)} task(s): {e}", affected=0) from e
        if not result.data or len(result.data) != len(rows):
            raise StoreError("Failed to insert tasks: no data returned", affected=0)
        return [row["task_id"] for row in result.data]

    async def get(self, task_id: str) -> Optional[TaskInstance]:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).select("*").eq("task_id", task_id).execute()
            except Exception as e:
                raise StoreError(f"Failed to get task: {e}") from e
        return self._to_task(result.data[0]) if result.data else None

    async def list_by_series(self, series_id: str) -> list[TaskInstance]:
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(self.table)
                    .select("*")
                    .eq("series_id", series_id)
                    .order("ordinal")
                    .execute()
                )
            except Exception as e:
                raise StoreError(f"Failed to list series {series_id}: {e}") from e
        return [self._to_task(row) for row in result.data or []]

    async def list_by_owner(self, owner_id: str) -> list[TaskInstance]:
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(self.table)
                    .select("*")
                    .eq("owner_id", owner_id)
                    .order("due_at")
                    .execute()
                )
            except Exception as e:
                raise StoreError(f"Failed to list tasks: {e}") from e
        return [self._to_task(row) for row in result.data or []]

    async def update_fields(self, task_id: str, fields: dict[str, Any]) -> int:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).update(fields).eq("task_id", task_id).execute()
            except Exception as e:
                raise StoreError(f"Failed to update task {task_id}: {e}", affected=0) from e
        return len(result.data or [])

    async def update_where(self, series_id: str, predicate: OrdinalPredicate, fields: dict[str, Any]) -> int:
        async with SupabaseClient() as client:
            try:
                query = client.table(self.table).update(fields).eq("series_id", series_id)
                result = _filter_ordinal(query, predicate).execute()
            except Exception as e:
                raise StoreError(f"Failed to update series {series_id}: {e}", affected=0) from e
        return len(result.data or [])

    async def delete(self, task_id: str) -> int:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).delete().eq("task_id", task_id).execute()
            except Exception as e:
                raise StoreError(f"Failed to delete task {task_id}: {e}", affected=0) from e
        return len(result.data or [])

    async def delete_where(self, series_id: str, predicate: OrdinalPredicate) -> int:
        async with SupabaseClient() as client:
            try:
                query = client.table(self.table).delete().eq("series_id", series_id)
                result = _filter_ordinal(query, predicate).execute()
            except Exception as e:
                raise StoreError(f"Failed to delete from series {series_id}: {e}", affected=0) from e
        return len(result.data or [])
