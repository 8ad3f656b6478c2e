"""Tests for the error hierarchy."""

import pytest
from src.utils.errors import (
    TaskSchedulerError,
    ValidationError,
    InvalidScopeError,
    NotFoundError,
    StoreError,
)


@pytest.mark.unit
@pytest.mark.parametrize("error_class", [ValidationError, InvalidScopeError, NotFoundError, StoreError])
def test_errors_share_base(error_class):
    """Test every error can be caught as TaskSchedulerError."""
    with pytest.raises(TaskSchedulerError):
        raise error_class("boom")


@pytest.mark.unit
@pytest.mark.parametrize("affected,partial", [(None, False), (0, False), (3, True)])
def test_store_error_partial(affected, partial):
    """Test partial is set only when rows were written."""
    error = StoreError("write failed", affected=affected)

    assert error.affected == affected
    assert error.partial is partial
    assert str(error) == "write failed"
