"""Reminder window selection for the periodic reminder scan."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from src.models.task import TaskInstance


def is_reminder_due(task: TaskInstance, now: datetime) -> bool:
    """A pending task is due for a reminder once ``now`` enters its lead window."""
    if task.is_completed:
        return False
    return task.remind_at <= now <= task.due_at


def select_due_reminders(tasks: Iterable[TaskInstance], now: Optional[datetime] = None) -> list[TaskInstance]:
    """Pending tasks inside their reminder window, soonest first."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return sorted(
        (task for task in tasks if is_reminder_due(task, now)),
        key=lambda task: task.due_at,
    )
