"""Date cadence calculator - next due date for a recurrence cadence."""

from datetime import datetime
from typing import Iterator

from dateutil.relativedelta import relativedelta

from src.models.task import RecurringType
from src.utils.errors import ValidationError


_STEPS = {
    RecurringType.DAILY: relativedelta(days=1),
    RecurringType.WEEKLY: relativedelta(weeks=1),
    RecurringType.MONTHLY: relativedelta(months=1),
}


def advance(due_at: datetime, cadence: RecurringType) -> datetime:
    """
    Return the next due date after ``due_at`` for ``cadence``.

    Time of day and timezone are kept. Monthly steps clamp to the last day
    of the target month (Jan 31 -> Feb 29 in a leap year), and the clamp is
    not undone by later steps: Feb 29 -> Mar 29, not Mar 31.
    """
    try:
        step = _STEPS[RecurringType(cadence)]
    except (KeyError, ValueError):
        raise ValidationError(f"Cannot advance a date with cadence {cadence!r}") from None
    return due_at + step


def due_dates(first_due_at: datetime, cadence: RecurringType, count: int) -> Iterator[datetime]:
    """Yield ``count`` due dates, each advanced from the previous one."""
    due_at = first_due_at
    for index in range(count):
        if index:
            due_at = advance(due_at, cadence)
        yield due_at
