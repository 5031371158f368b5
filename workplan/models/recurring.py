"""
Recurring commitment models.

A commitment (weekly meeting, school run, ...) generates immovable
RecurringBlock occurrences that the allocator routes around.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from workplan.models.enums import RecurrenceType
from workplan.utils.time_utils import HHMM_PATTERN, parse_time_to_minutes

_INTERVAL_TYPES = {
    RecurrenceType.INTERVAL_DAYS,
    RecurrenceType.INTERVAL_WEEKS,
    RecurrenceType.INTERVAL_MONTHS,
}


class RecurringCommitmentCreate(BaseModel):
    """Recurring commitment creation payload."""

    user_id: Optional[str] = Field(None, description="Calendar owner (defaults to the caller)")
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    recurrence_type: RecurrenceType
    recurrence_interval: Optional[int] = Field(None, ge=1, le=366)
    days_of_week: Optional[str] = Field(
        None, description="Comma-separated weekday numbers for custom_days (0=Monday)"
    )
    start_date: date
    end_date: Optional[date] = None
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=HHMM_PATTERN)

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        for part in value.split(","):
            part = part.strip()
            if not part.isdigit() or int(part) > 6:
                raise ValueError("days_of_week must list weekday numbers 0-6")
        return value

    @model_validator(mode="after")
    def validate_rule(self):
        if self.recurrence_type == RecurrenceType.CUSTOM_DAYS and not self.days_of_week:
            raise ValueError("custom_days requires days_of_week")
        if self.recurrence_type in _INTERVAL_TYPES and not self.recurrence_interval:
            raise ValueError(f"{self.recurrence_type.value} requires recurrence_interval")
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def weekday_numbers(self) -> set[int]:
        if not self.days_of_week:
            return set()
        return {int(part.strip()) for part in self.days_of_week.split(",")}

    @property
    def duration_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time) - parse_time_to_minutes(self.start_time)


class RecurringCommitment(RecurringCommitmentCreate):
    """Persisted recurring commitment."""

    id: UUID
    user_id: str
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class RecurringBlock(BaseModel):
    """One immovable occurrence on a user's calendar."""

    id: UUID
    commitment_id: UUID
    user_id: str
    block_date: date
    start_minutes: int = Field(..., ge=0, le=1440)
    end_minutes: int = Field(..., ge=0, le=1440)
    title: Optional[str] = None

    @property
    def hours(self) -> float:
        return (self.end_minutes - self.start_minutes) / 60



class RecurringCommitmentUpdate(BaseModel):
    """Update recurring commitment fields. Occurrences are regenerated."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    recurrence_type: Optional[RecurrenceType] = None
    recurrence_interval: Optional[int] = Field(None, ge=1, le=366)
    days_of_week: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    is_active: Optional[bool] = None
