"""Error handling utilities."""

from typing import Optional


class TaskSchedulerError(Exception):
    """Base exception for the task scheduler backend."""
    pass


class ValidationError(TaskSchedulerError):
    """Malformed task input, rejected before any store call."""
    pass


class InvalidScopeError(TaskSchedulerError):
    """all_future scope requested on a task that is not part of a series."""
    pass


class NotFoundError(TaskSchedulerError):
    """Task does not exist or belongs to another owner."""
    pass


class StoreError(TaskSchedulerError):
    """Task store operation error.

    ``affected`` is the number of rows written before the failure, or None
    when the store cannot tell.
    """

    def __init__(self, message: str, affected: Optional[int] = None):
        super().__init__(message)
        self.affected = affected

    @property
    def partial(self) -> bool:
        """True when some rows were written before the failure."""
        return bool(self.affected)
