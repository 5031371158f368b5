"""
Child allocation models.

A child allocation subdivides a parent task's planned time among its
descendants. It never consumes calendar capacity.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from workplan.utils.time_utils import HHMM_PATTERN, parse_time_to_minutes


class ChildAllocationEntry(BaseModel):
    """One block handed to a descendant task."""

    child_task_id: UUID
    allocation_date: date
    hours: float = Field(..., gt=0)
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def validate_times(self):
        if parse_time_to_minutes(self.start_time) >= parse_time_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class ChildAllocationBatch(BaseModel):
    """Replace every child allocation of a parent task."""

    entries: list[ChildAllocationEntry] = Field(default_factory=list)


class ChildAllocation(BaseModel):
    """Persisted child allocation."""

    id: UUID
    parent_task_id: UUID
    child_task_id: UUID
    allocation_date: date
    hours: float
    level: int = Field(..., ge=1, description="Depth of the child below the parent")
    start_time: str
    end_time: str
    created_at: Optional[datetime] = None
