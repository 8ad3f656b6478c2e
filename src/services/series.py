"""Series identity model - grouping of task instances into recurring series.

A series is never stored as its own row. It is the set of tasks sharing a
``series_id``, which is the task ID of the first (root) occurrence.
"""

from datetime import datetime, timedelta
from typing import Iterable

from src.models.series import OrdinalPredicate
from src.models.task import TaskInstance


def assign_series_identity(instances: list[TaskInstance], root_id: str) -> list[TaskInstance]:
    """
    Stamp ``root_id`` as series ID onto every instance, in order.

    Ordinals are renumbered 1..n and ``planned_occurrences`` is set to n on
    every member; the first instance is expected to be the root itself.
    """
    planned = len(instances)
    return [
        instance.model_copy(update={
            "series_id": root_id,
            "ordinal": ordinal,
            "planned_occurrences": planned,
        })
        for ordinal, instance in enumerate(instances, start=1)
    ]


def select_members(instances: Iterable[TaskInstance], predicate: OrdinalPredicate) -> list[TaskInstance]:
    """Members matching ``predicate``, ordered by ordinal."""
    return sorted(
        (instance for instance in instances if predicate.matches(instance.ordinal)),
        key=lambda instance: instance.ordinal,
    )


def future_members(instances: Iterable[TaskInstance], target: TaskInstance) -> list[TaskInstance]:
    """Members of ``target``'s series strictly after it, excluding ``target`` itself."""
    return [
        instance
        for instance in select_members(instances, OrdinalPredicate.after(target.ordinal))
        if instance.task_id != target.task_id
    ]


def shift_series(instances: Iterable[TaskInstance], delta: timedelta) -> dict[str, datetime]:
    """
    Shift each instance's due date by ``delta``.

    Returns task_id -> new due date. Spacing between members is preserved;
    the cadence chain is not recomputed.
    """
    if not delta:
        return {}
    return {instance.task_id: instance.due_at + delta for instance in instances}
