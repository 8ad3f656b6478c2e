"""Task models - concrete task rows, creation definitions and patches."""

import os
from enum import Enum
from typing import Optional, Any
from datetime import datetime, timedelta, timezone
from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_REMINDER_MINUTES = int(os.environ.get("DEFAULT_REMINDER_MINUTES", "60"))
MAX_OCCURRENCES = int(os.environ.get("MAX_OCCURRENCES", "366"))


class TaskCategory(str, Enum):
    """Task subject categories (presentation only)."""
    SERVER_RENEWAL = "server-renewal"
    ELECTRICITY_BILL = "electricity-bill"
    INTERNET_BILL = "internet-bill"
    WATER_BILL = "water-bill"
    RENT = "rent"
    INSURANCE = "insurance"
    SUBSCRIPTION = "subscription"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class RecurringType(str, Enum):
    """Recurrence cadence."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NONE = "none"


class MutationScope(str, Enum):
    """Blast radius of an update or delete on a series member."""
    SINGLE = "single"
    ALL_FUTURE = "all_future"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clean_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("title must be a non-empty string")
    return value


def _clean_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class TaskInstance(BaseModel):
    """One concrete, dated task row."""
    task_id: Optional[str] = Field(None, description="Store-assigned task ID")
    owner_id: str = Field(..., description="Owning account ID")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    category: TaskCategory = Field(default=TaskCategory.OTHER, description="Task category")
    due_at: datetime = Field(..., description="Due date-time")
    reminder_minutes: int = Field(
        default=DEFAULT_REMINDER_MINUTES,
        ge=0,
        description="Reminder lead time in minutes before due_at"
    )
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    is_recurring: bool = False
    recurring_type: RecurringType = RecurringType.NONE
    series_id: Optional[str] = Field(None, description="Root task ID of the series (null for standalone tasks)")
    ordinal: int = Field(default=1, ge=1, description="1-based position within the series")
    planned_occurrences: int = Field(default=1, ge=1, description="Occurrences the series was created with")
    created_at: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def check_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_description(value)

    @field_validator("due_at", "completed_at", "created_at")
    @classmethod
    def check_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def check_completion(self) -> "TaskInstance":
        if self.is_completed != (self.completed_at is not None):
            raise ValueError("completed_at must be set if and only if is_completed is true")
        return self

    @property
    def in_series(self) -> bool:
        return self.series_id is not None

    @property
    def remind_at(self) -> datetime:
        """When the reminder for this task should fire."""
        return self.due_at - timedelta(minutes=self.reminder_minutes)

    def to_row(self) -> dict[str, Any]:
        """Serialize for the store; task_id and created_at are assigned by the store."""
        return self.model_dump(mode="json", exclude={"task_id", "created_at"})


class TaskDefinition(BaseModel):
    """Creation request for a standalone task or a recurring series."""
    owner_id: str = Field(..., description="Owning account ID")
    title: str = Field(..., description="Task title")
    description: Optional[str] = None
    category: TaskCategory = TaskCategory.OTHER
    due_at: datetime = Field(..., description="Due date-time of the first occurrence")
    reminder_minutes: int = Field(default=DEFAULT_REMINDER_MINUTES, ge=0)
    is_recurring: bool = False
    recurring_type: RecurringType = RecurringType.NONE
    occurrences: int = Field(
        default=1,
        le=MAX_OCCURRENCES,
        description="Occurrences to materialize up front; below 1 means one"
    )

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def check_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_description(value)

    @field_validator("due_at")
    @classmethod
    def check_due_at(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("occurrences")
    @classmethod
    def check_occurrences(cls, value: int) -> int:
        return max(value, 1)

    @model_validator(mode="after")
    def check_cadence(self) -> "TaskDefinition":
        if self.is_recurring and self.recurring_type == RecurringType.NONE:
            raise ValueError("recurring tasks need a daily, weekly or monthly cadence")
        if not self.is_recurring:
            self.recurring_type = RecurringType.NONE
        return self

    def instance(self, due_at: datetime, planned_occurrences: int = 1) -> TaskInstance:
        """Build one pending instance of this definition."""
        return TaskInstance(
            owner_id=self.owner_id,
            title=self.title,
            description=self.description,
            category=self.category,
            due_at=due_at,
            reminder_minutes=self.reminder_minutes,
            is_recurring=self.is_recurring,
            recurring_type=self.recurring_type,
            planned_occurrences=planned_occurrences,
        )


# Fields of a patch that copy verbatim onto later series members.
METADATA_FIELDS = (
    "title",
    "description",
    "category",
    "reminder_minutes",
    "is_recurring",
    "recurring_type",
    "planned_occurrences",
)

_NULLABLE_PATCH_FIELDS = {"description"}


class TaskPatch(BaseModel):
    """Partial update; only fields the caller set are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    due_at: Optional[datetime] = None
    reminder_minutes: Optional[int] = Field(None, ge=0)
    is_recurring: Optional[bool] = None
    recurring_type: Optional[RecurringType] = None
    planned_occurrences: Optional[int] = Field(None, ge=1, le=MAX_OCCURRENCES)

    @field_validator("title")
    @classmethod
    def check_title(cls, value: Optional[str]) -> Optional[str]:
        return _clean_title(value) if value is not None else None

    @field_validator("description")
    @classmethod
    def check_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_description(value)

    @field_validator("due_at")
    @classmethod
    def check_due_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def check_no_cleared_fields(self) -> "TaskPatch":
        for name in self.model_fields_set - _NULLABLE_PATCH_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    def changes(self) -> dict[str, Any]:
        """All set fields, in store form."""
        return self.model_dump(mode="json", include=self.model_fields_set)

    def metadata_changes(self) -> dict[str, Any]:
        """Set fields that propagate verbatim to later series members."""
        return self.model_dump(mode="json", include=self.model_fields_set & set(METADATA_FIELDS))


class CompletionResult(BaseModel):
    """Outcome of completing a task."""
    updated: Optional[TaskInstance] = Field(None, description="Completed task, None if it vanished concurrently")
    spawned: Optional[TaskInstance] = Field(None, description="Next occurrence created by the completion")
