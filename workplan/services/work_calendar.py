"""
Work calendar service.

Turns a user's weekly settings into concrete per-date windows. A window for
work mode stretches past the configured capacity by the lunch duration when
lunch starts inside the working span, so that capacity hours still fit
around the break.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from workplan.core.config import Settings, get_settings
from workplan.core.logger import setup_logger
from workplan.interfaces.calendar_repository import ICalendarRepository
from workplan.models.calendar import WorkCalendar, WorkCalendarUpdate, default_work_calendar
from workplan.models.enums import WorkMode
from workplan.utils.time_utils import MINUTES_PER_DAY, hours_to_minutes, parse_time_to_minutes

logger = setup_logger(__name__)


@dataclass(frozen=True)
class DayWindow:
    """Schedulable span of one date in one mode, in minutes after midnight."""

    day: date
    mode: WorkMode
    start: int
    end: int
    capacity_minutes: int
    lunch_start: Optional[int] = None
    lunch_end: Optional[int] = None

    @property
    def has_lunch(self) -> bool:
        return self.lunch_start is not None

    def in_lunch(self, minute: int) -> bool:
        return self.has_lunch and self.lunch_start <= minute < self.lunch_end


def capacity_hours(calendar: WorkCalendar, day: date, mode: WorkMode) -> float:
    return calendar.days_for(mode)[day.weekday()].capacity_hours


def start_time(calendar: WorkCalendar, day: date, mode: WorkMode) -> str:
    return calendar.days_for(mode)[day.weekday()].start


def day_window(calendar: WorkCalendar, day: date, mode: WorkMode) -> Optional[DayWindow]:
    """
    Compute the window of a date.

    Returns:
        None when the date has no capacity in this mode
    """
    capacity = hours_to_minutes(capacity_hours(calendar, day, mode))
    if capacity <= 0:
        return None

    start = parse_time_to_minutes(start_time(calendar, day, mode))
    end = start + capacity
    lunch_start = lunch_end = None
    if mode == WorkMode.WORK and calendar.lunch_duration_minutes > 0:
        lunch = parse_time_to_minutes(calendar.lunch_start)
        if start < lunch < start + capacity:
            end += calendar.lunch_duration_minutes
            lunch_start = lunch
            lunch_end = min(lunch + calendar.lunch_duration_minutes, MINUTES_PER_DAY)

    return DayWindow(
        day=day,
        mode=mode,
        start=start,
        end=min(end, MINUTES_PER_DAY),
        capacity_minutes=capacity,
        lunch_start=lunch_start,
        lunch_end=lunch_end,
    )


def lunch_interval(calendar: WorkCalendar, mode: WorkMode) -> Optional[tuple[int, int]]:
    """Lunch break as a minute range, regardless of any window."""
    if mode != WorkMode.WORK or calendar.lunch_duration_minutes <= 0:
        return None
    lunch = parse_time_to_minutes(calendar.lunch_start)
    return lunch, min(lunch + calendar.lunch_duration_minutes, MINUTES_PER_DAY)


class WorkCalendarService:
    """Loads and saves per-user calendars, falling back to configured defaults."""

    def __init__(self, calendar_repo: ICalendarRepository, settings: Optional[Settings] = None):
        self.calendar_repo = calendar_repo
        self.settings = settings or get_settings()

    async def get_calendar(self, user_id: str) -> WorkCalendar:
        calendar = await self.calendar_repo.get(user_id)
        if calendar is None:
            return default_work_calendar(user_id, self.settings)
        return calendar

    async def update_calendar(self, user_id: str, update: WorkCalendarUpdate) -> WorkCalendar:
        current = await self.get_calendar(user_id)
        data = current.model_dump()
        data.update(update.model_dump(exclude_unset=True, exclude_none=True))
        saved = await self.calendar_repo.save(WorkCalendar.model_validate(data))
        logger.info(f"Calendar updated for user {user_id}")
        return saved
