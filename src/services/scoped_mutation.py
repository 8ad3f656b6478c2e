"""Scoped mutation engine - updates, deletes and completions on series members."""

from datetime import datetime, timezone
from typing import Optional

from src.models.series import OrdinalPredicate
from src.models.task import CompletionResult, MutationScope, RecurringType, TaskInstance, TaskPatch
from src.services.cadence import advance
from src.services.series import future_members, shift_series
from src.services.task_store import TaskStoreGateway
from src.utils.errors import InvalidScopeError, StoreError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def _require_series(target: TaskInstance, action: str) -> str:
    if not target.in_series:
        raise InvalidScopeError(
            f"Cannot {action} task {target.task_id} with scope all_future: it is not part of a series"
        )
    return target.series_id


async def apply_update(
    store: TaskStoreGateway,
    target: TaskInstance,
    patch: TaskPatch,
    scope: MutationScope,
) -> int:
    """
    Apply ``patch`` to ``target`` and, for all_future scope, to later members.

    Metadata fields are copied verbatim to members whose ordinal is above the
    target's. A due date change moves those members by the same offset the
    target moved. Returns the number of tasks changed; 0 means the target was
    gone by the time it was written.
    """
    scope = MutationScope(scope)
    series_id = _require_series(target, "update") if scope == MutationScope.ALL_FUTURE else None

    if patch.is_empty:
        return 0

    affected = await store.update_fields(target.task_id, patch.changes())
    if affected == 0:
        logger.warning("Task vanished before update", task_id=target.task_id)
        return 0
    if series_id is None:
        return affected

    metadata = patch.metadata_changes()
    metadata_rows = 0
    shifted_rows = 0
    try:
        if metadata:
            metadata_rows = await store.update_where(series_id, OrdinalPredicate.after(target.ordinal), metadata)

        delta = patch.due_at - target.due_at if "due_at" in patch.model_fields_set else None
        if delta:
            members = future_members(await store.list_by_series(series_id), target)
            for task_id, due_at in shift_series(members, delta).items():
                shifted_rows += await store.update_fields(task_id, {"due_at": due_at.isoformat()})
    except StoreError as e:
        partial = affected + max(metadata_rows, shifted_rows)
        logger.error(
            "Series update failed part way",
            series_id=series_id,
            from_ordinal=target.ordinal,
            affected=partial,
            error=str(e)
        )
        raise StoreError(f"Update of series {series_id} only partly applied: {e}", affected=partial) from e

    # Both passes touch the same later members.
    total = affected + max(metadata_rows, shifted_rows)
    logger.info(
        "Applied update to series",
        series_id=series_id,
        from_ordinal=target.ordinal,
        fields=sorted(patch.model_fields_set),
        affected=total
    )
    return total


async def apply_delete(store: TaskStoreGateway, target: TaskInstance, scope: MutationScope) -> int:
    """
    Delete ``target``, or for all_future scope ``target`` and every later member.

    Earlier members are kept. Remaining ordinals are never renumbered.
    """
    scope = MutationScope(scope)
    if scope == MutationScope.SINGLE:
        return await store.delete(target.task_id)

    series_id = _require_series(target, "delete")
    affected = await store.delete_where(series_id, OrdinalPredicate.from_(target.ordinal))
    logger.info(
        "Deleted series tail",
        series_id=series_id,
        from_ordinal=target.ordinal,
        affected=affected
    )
    return affected


def next_occurrence(completed: TaskInstance) -> Optional[TaskInstance]:
    """The sibling a completion spawns, or None past the planned count."""
    if not completed.is_recurring or completed.recurring_type == RecurringType.NONE:
        return None
    if completed.ordinal >= completed.planned_occurrences:
        return None
    return completed.model_copy(update={
        "task_id": None,
        "due_at": advance(completed.due_at, completed.recurring_type),
        "ordinal": completed.ordinal + 1,
        "is_completed": False,
        "completed_at": None,
        "created_at": None,
    })


async def complete(store: TaskStoreGateway, target: TaskInstance, now: Optional[datetime] = None) -> CompletionResult:
    """
    Mark ``target`` completed and materialize the next occurrence.

    Only a Pending -> Completed transition spawns; completing an already
    completed task is a no-op.
    """
    if target.is_completed:
        return CompletionResult(updated=target)

    completed_at = now or datetime.now(timezone.utc)
    if completed_at.tzinfo is None:
        completed_at = completed_at.replace(tzinfo=timezone.utc)
    affected = await store.update_fields(target.task_id, {
        "is_completed": True,
        "completed_at": completed_at.isoformat(),
    })
    if affected == 0:
        logger.warning("Task vanished before completion", task_id=target.task_id)
        return CompletionResult()

    updated = target.model_copy(update={"is_completed": True, "completed_at": completed_at})
    spawned = next_occurrence(updated)
    if spawned is None:
        return CompletionResult(updated=updated)

    try:
        task_id = await store.insert(spawned)
    except StoreError as e:
        logger.error(
            "Next occurrence not created",
            task_id=target.task_id,
            series_id=target.series_id,
            ordinal=spawned.ordinal,
            error=str(e)
        )
        raise StoreError(
            f"Task {target.task_id} completed but next occurrence not created: {e}",
            affected=1
        ) from e
    spawned = spawned.model_copy(update={"task_id": task_id})
    logger.info(
        "Spawned next occurrence",
        series_id=spawned.series_id,
        task_id=task_id,
        ordinal=spawned.ordinal,
        due_at=spawned.due_at.isoformat()
    )
    return CompletionResult(updated=updated, spawned=spawned)


async def uncomplete(store: TaskStoreGateway, target: TaskInstance) -> Optional[TaskInstance]:
    """Move ``target`` back to Pending. Spawned siblings are left alone."""
    if not target.is_completed:
        return target
    affected = await store.update_fields(target.task_id, {"is_completed": False, "completed_at": None})
    if affected == 0:
        return None
    return target.model_copy(update={"is_completed": False, "completed_at": None})
