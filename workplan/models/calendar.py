"""
Work calendar models.

A user owns one calendar with two independent modes (work, hobby). Each mode
has a capacity and a start time per weekday; a single lunch break applies to
work mode only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from workplan.core.config import Settings
from workplan.models.enums import WorkMode
from workplan.utils.time_utils import HHMM_PATTERN

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class WeekdayHours(BaseModel):
    """Capacity and start time for one weekday in one mode."""

    capacity_hours: float = Field(0.0, ge=0, le=24, description="Hours available that day")
    start: str = Field("09:00", pattern=HHMM_PATTERN, description="Start of the day's window")


class WorkCalendar(BaseModel):
    """Per-user weekly capacity for work and hobby modes."""

    user_id: str
    work_days: list[WeekdayHours] = Field(..., description="Monday..Sunday")
    hobby_days: list[WeekdayHours] = Field(..., description="Monday..Sunday")
    lunch_start: str = Field("12:00", pattern=HHMM_PATTERN)
    lunch_duration_minutes: int = Field(60, ge=0, le=240, description="0 disables lunch")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("work_days", "hobby_days")
    @classmethod
    def validate_week(cls, value: Optional[list[WeekdayHours]]) -> Optional[list[WeekdayHours]]:
        if value is not None and len(value) != 7:
            raise ValueError("Exactly 7 weekday entries are required (Monday first)")
        return value

    def days_for(self, mode: WorkMode) -> list[WeekdayHours]:
        return self.hobby_days if mode == WorkMode.HOBBY else self.work_days


class WorkCalendarUpdate(BaseModel):
    """Partial calendar update."""

    work_days: Optional[list[WeekdayHours]] = None
    hobby_days: Optional[list[WeekdayHours]] = None
    lunch_start: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    lunch_duration_minutes: Optional[int] = Field(None, ge=0, le=240)

    @field_validator("work_days", "hobby_days")
    @classmethod
    def validate_week(cls, value: Optional[list[WeekdayHours]]) -> Optional[list[WeekdayHours]]:
        if value is not None and len(value) != 7:
            raise ValueError("Exactly 7 weekday entries are required (Monday first)")
        return value


def default_work_calendar(user_id: str, settings: Settings) -> WorkCalendar:
    """Calendar used until a user saves their own settings."""
    work_days = [
        WeekdayHours(
            capacity_hours=(
                settings.DEFAULT_WORK_HOURS_WEEKDAY if index < 5 else settings.DEFAULT_WORK_HOURS_WEEKEND
            ),
            start=settings.DEFAULT_WORK_START,
        )
        for index in range(7)
    ]
    hobby_days = [
        WeekdayHours(capacity_hours=settings.DEFAULT_HOBBY_HOURS, start=settings.DEFAULT_HOBBY_START)
        for _ in range(7)
    ]
    return WorkCalendar(
        user_id=user_id,
        work_days=work_days,
        hobby_days=hobby_days,
        lunch_start=settings.DEFAULT_LUNCH_START,
        lunch_duration_minutes=settings.DEFAULT_LUNCH_DURATION_MINUTES,
    )
