"""Shared pytest fixtures and configuration."""

import os
import pytest
from datetime import datetime, timezone
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src.models.task import TaskDefinition, TaskCategory, RecurringType  # noqa: E402
from src.services.task_service import TaskService  # noqa: E402
from tests.utils.memory_store import InMemoryTaskStore  # noqa: E402

OWNER_ID = "01HZX3NDEKTSV4RRFFQ69G5FAV"
OTHER_OWNER_ID = "01HZX3NDEKTSV4RRFFQ69G5FAX"


@pytest.fixture
def store():
    """Empty in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture
def owner_id():
    return OWNER_ID


@pytest.fixture
def service(store):
    """Task service for the default owner."""
    return TaskService(store, OWNER_ID)


@pytest.fixture
def other_service(store):
    """Task service for a second owner sharing the same store."""
    return TaskService(store, OTHER_OWNER_ID)


@pytest.fixture
def weekly_definition():
    """Five weekly occurrences starting 2024-03-04 09:00 UTC."""
    return TaskDefinition(
        owner_id=OWNER_ID,
        title="Water the plants",
        category=TaskCategory.MAINTENANCE,
        due_at=datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc),
        reminder_minutes=30,
        is_recurring=True,
        recurring_type=RecurringType.WEEKLY,
        occurrences=5,
    )


@pytest.fixture
def rent_definition():
    """Monthly rent starting on the 31st."""
    return TaskDefinition(
        owner_id=OWNER_ID,
        title="Pay rent",
        category=TaskCategory.RENT,
        due_at=datetime(2024, 1, 31, 10, 0, tzinfo=timezone.utc),
        is_recurring=True,
        recurring_type=RecurringType.MONTHLY,
        occurrences=3,
    )


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
