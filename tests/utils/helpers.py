"""Test helper functions."""

from unittest.mock import MagicMock

from src.models.task import TaskInstance


def by_ordinal(tasks: list[TaskInstance]) -> dict[int, TaskInstance]:
    """Index series members by ordinal."""
    return {task.ordinal: task for task in tasks}


def mock_table_query(data: list) -> MagicMock:
    """A PostgREST query builder mock whose chained calls all return itself."""
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "gt", "gte", "order"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data)
    return query


def mock_supabase(query: MagicMock) -> MagicMock:
    """A Supabase client whose every table returns ``query``."""
    client = MagicMock()
    client.table.return_value = query
    return client
