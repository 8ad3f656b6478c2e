"""Task service - owner-scoped entry point for creating and changing tasks."""

from datetime import datetime
from typing import Any, Optional, Union
from pydantic import BaseModel, ValidationError as PydanticValidationError

from src.models.task import CompletionResult, MutationScope, TaskDefinition, TaskInstance, TaskPatch
from src.services import scoped_mutation
from src.services.reminders import select_due_reminders
from src.services.series_generator import generate
from src.services.supabase_client import SupabaseTaskStore
from src.services.task_store import TaskStoreGateway
from src.utils.errors import NotFoundError, ValidationError
from src.utils.logging_config import LoggingConfig
from src.utils.logging import (
    get_structured_logger,
    log_timing,
    correlation_context,
    mask_user_id,
    sanitize_task_text,
)

logger = get_structured_logger(__name__)

_logging_configured = False


def _parse(model: type[BaseModel], data: Union[BaseModel, dict], **overrides: Any):
    """Validate caller input into ``model``, raising the project ValidationError."""
    if isinstance(data, model) and not overrides:
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate({**data, **overrides})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from e


def _parse_scope(scope: Union[MutationScope, str]) -> MutationScope:
    try:
        return MutationScope(scope)
    except ValueError:
        raise ValidationError(f"Unknown scope: {scope!r}") from None


class TaskService:
    """Task operations on behalf of one owner.

    Every call re-reads the rows it needs; nothing is cached between calls.
    Tasks of other owners are reported as not found.
    """

    def __init__(self, store: TaskStoreGateway, owner_id: str):
        if not owner_id:
            raise ValidationError("owner_id is required")
        self.store = store
        self.owner_id = owner_id

    def _context(self, **context: Any) -> dict:
        return {"owner_id": mask_user_id(self.owner_id), **context}

    async def _load(self, task_id: str) -> TaskInstance:
        task = await self.store.get(task_id)
        if task is None or task.owner_id != self.owner_id:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    async def get_task(self, task_id: str) -> TaskInstance:
        """Get one of the owner's tasks."""
        with correlation_context():
            return await self._load(task_id)

    async def list_tasks(self) -> list[TaskInstance]:
        """All of the owner's tasks, soonest due first."""
        with correlation_context():
            return await self.store.list_by_owner(self.owner_id)

    async def create_task(
        self, definition: Union[TaskDefinition, dict]
    ) -> Union[TaskInstance, list[TaskInstance]]:
        """
        Create a standalone task or a recurring series.

        Returns the single task for a standalone definition and the list of
        members, ordered by ordinal, for a series.
        """
        definition = _parse(TaskDefinition, definition, owner_id=self.owner_id)
        with correlation_context(), log_timing("create_task", logger=logger, **self._context()):
            logger.info(
                "Creating task",
                title=sanitize_task_text(definition.title),
                category=definition.category.value,
                cadence=definition.recurring_type.value,
                occurrences=definition.occurrences
            )
            created = await generate(self.store, definition)
        if len(created) == 1 and created[0].series_id is None:
            return created[0]
        return created

    async def update_task(
        self,
        task_id: str,
        changes: Union[TaskPatch, dict],
        scope: Union[MutationScope, str] = MutationScope.SINGLE,
    ) -> int:
        """Update a task, or it and its later occurrences; returns the tasks changed."""
        patch = _parse(TaskPatch, changes)
        scope = _parse_scope(scope)
        with correlation_context(), log_timing("update_task", logger=logger, **self._context(task_id=task_id, scope=scope.value)):
            target = await self._load(task_id)
            return await scoped_mutation.apply_update(self.store, target, patch, scope)

    async def delete_task(self, task_id: str, scope: Union[MutationScope, str] = MutationScope.SINGLE) -> int:
        """Delete a task, or it and its later occurrences; returns the tasks removed."""
        scope = _parse_scope(scope)
        with correlation_context(), log_timing("delete_task", logger=logger, **self._context(task_id=task_id, scope=scope.value)):
            target = await self._load(task_id)
            return await scoped_mutation.apply_delete(self.store, target, scope)

    async def complete_task(self, task_id: str, now: Optional[datetime] = None) -> CompletionResult:
        """Complete a task; a recurring one spawns its next occurrence."""
        with correlation_context(), log_timing("complete_task", logger=logger, **self._context(task_id=task_id)):
            target = await self._load(task_id)
            return await scoped_mutation.complete(self.store, target, now=now)

    async def uncomplete_task(self, task_id: str) -> Optional[TaskInstance]:
        with correlation_context(), log_timing("uncomplete_task", logger=logger, **self._context(task_id=task_id)):
            target = await self._load(task_id)
            return await scoped_mutation.uncomplete(self.store, target)

    async def due_reminders(self, now: Optional[datetime] = None) -> list[TaskInstance]:
        """The owner's pending tasks currently inside their reminder window."""
        return select_due_reminders(await self.list_tasks(), now)


def get_task_service(owner_id: str) -> TaskService:
    """TaskService on the Supabase task table; configures logging on first use."""
    global _logging_configured
    if not _logging_configured:
        LoggingConfig.setup_logging()
        _logging_configured = True
    return TaskService(SupabaseTaskStore(), owner_id)
