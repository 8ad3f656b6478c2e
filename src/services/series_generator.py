"""Series generator - expand a task definition into concrete task rows."""

from typing import Optional

from src.models.task import TaskDefinition, TaskInstance
from src.services.cadence import due_dates
from src.services.series import assign_series_identity
from src.services.task_store import TaskStoreGateway
from src.utils.errors import StoreError
from src.utils.logging import get_structured_logger, get_correlation_id

logger = get_structured_logger(__name__)


async def generate(
    store: TaskStoreGateway,
    definition: TaskDefinition,
    occurrence_count: Optional[int] = None,
) -> list[TaskInstance]:
    """
    Create the task rows for ``definition``.

    A non-recurring definition, or a count of one or less, yields a single
    standalone task. Otherwise the root occurrence is written first to learn
    its ID, which becomes the series ID of every member (the root included),
    and the remaining occurrences are written as one batch. Each due date is
    advanced from the previous occurrence's, not from the first.

    Raises StoreError with ``affected`` set to the rows already written when
    the series could only be partly created.
    """
    count = definition.occurrences if occurrence_count is None else occurrence_count
    correlation_id = get_correlation_id()

    if count <= 1 or not definition.is_recurring:
        instance = definition.instance(definition.due_at)
        task_id = await store.insert(instance)
        logger.info(
            "Created standalone task",
            correlation_id=correlation_id,
            task_id=task_id,
            due_at=instance.due_at.isoformat()
        )
        return [instance.model_copy(update={"task_id": task_id})]

    drafts = [
        definition.instance(due_at, planned_occurrences=count)
        for due_at in due_dates(definition.due_at, definition.recurring_type, count)
    ]

    root_id = await store.insert(drafts[0])
    written = 1
    try:
        await store.update_fields(root_id, {"series_id": root_id})
        members = assign_series_identity(drafts, root_id)
        sibling_ids = await store.insert_batch(members[1:])
    except StoreError as e:
        written += e.affected or 0
        logger.error(
            "Series generation failed part way",
            correlation_id=correlation_id,
            series_id=root_id,
            planned_occurrences=count,
            written=written,
            error=str(e)
        )
        raise StoreError(
            f"Series {root_id} only partly created ({written} of {count} tasks): {e}",
            affected=written
        ) from e

    created = [
        member.model_copy(update={"task_id": task_id})
        for member, task_id in zip(members, [root_id, *sibling_ids])
    ]
    logger.info(
        "Created recurring series",
        correlation_id=correlation_id,
        series_id=root_id,
        cadence=definition.recurring_type.value,
        planned_occurrences=count,
        first_due_at=created[0].due_at.isoformat(),
        last_due_at=created[-1].due_at.isoformat()
    )
    return created
