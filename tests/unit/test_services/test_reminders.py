"""Tests for reminder window selection."""

import pytest
from datetime import datetime, timedelta, timezone
from src.models.task import TaskInstance
from src.services.reminders import is_reminder_due, select_due_reminders

NOW = datetime(2024, 12, 9, 12, 0, tzinfo=timezone.utc)


def task(minutes_until_due: int, lead: int = 60, done: bool = False) -> TaskInstance:
    return TaskInstance(
        owner_id="o",
        title="Renew insurance",
        due_at=NOW + timedelta(minutes=minutes_until_due),
        reminder_minutes=lead,
        is_completed=done,
        completed_at=NOW if done else None,
    )


@pytest.mark.unit
@pytest.mark.parametrize("minutes_until_due,lead,expected", [
    (30, 60, True),
    (60, 60, True),
    (0, 60, True),
    (61, 60, False),
    (-1, 60, False),
    (5, 0, False),
    (0, 0, True),
])
def test_reminder_window(minutes_until_due, lead, expected):
    """Test the window runs from now to now + lead time, inclusive."""
    assert is_reminder_due(task(minutes_until_due, lead), NOW) is expected


@pytest.mark.unit
def test_completed_tasks_are_skipped():
    """Test completed tasks never remind."""
    assert is_reminder_due(task(10, done=True), NOW) is False


@pytest.mark.unit
def test_select_due_reminders_sorted():
    """Test selected reminders are ordered by due date."""
    tasks = [task(50), task(200), task(10), task(30, done=True)]

    selected = select_due_reminders(tasks, NOW)

    assert [t.due_at for t in selected] == [NOW + timedelta(minutes=10), NOW + timedelta(minutes=50)]


@pytest.mark.unit
def test_select_due_reminders_defaults_to_now(freeze_time_fixture):
    """Test the current time is used when none is given."""
    assert len(select_due_reminders([task(10), task(-10)])) == 1


@pytest.mark.unit
def test_naive_now_is_utc():
    """Test a naive reference time is read as UTC."""
    assert select_due_reminders([task(10)], datetime(2024, 12, 9, 12, 0)) != []
