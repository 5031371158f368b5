"""
Test helpers shared by unit and integration tests.
"""

from datetime import date
from typing import Optional

from workplan.models.calendar import WeekdayHours, WorkCalendar
from workplan.models.enums import RecurrenceType, WorkMode
from workplan.models.recurring import RecurringCommitmentCreate
from workplan.models.task import ProjectCreate, TaskCreate

# 2025-03-03 is a Monday
MONDAY = date(2025, 3, 3)


def make_calendar(
    user_id: str,
    hours: float = 8.0,
    start: str = "09:00",
    weekend_hours: float = 0.0,
    lunch_start: str = "13:00",
    lunch_minutes: int = 60,
    hobby_hours: float = 0.0,
    hobby_start: str = "19:00",
) -> WorkCalendar:
    """Calendar with identical weekdays and identical weekend days."""
    return WorkCalendar(
        user_id=user_id,
        work_days=[
            WeekdayHours(capacity_hours=hours if index < 5 else weekend_hours, start=start)
            for index in range(7)
        ],
        hobby_days=[WeekdayHours(capacity_hours=hobby_hours, start=hobby_start) for _ in range(7)],
        lunch_start=lunch_start,
        lunch_duration_minutes=lunch_minutes,
    )


async def create_task(wp, user_id: str, title: str = "Task", mode: WorkMode = WorkMode.WORK, **fields):
    project_id = None
    if mode != WorkMode.WORK:
        project = await wp.project_repo.create(user_id, ProjectCreate(name=f"{title} project", mode=mode))
        project_id = project.id
    return await wp.task_repo.create(
        user_id, TaskCreate(title=title, project_id=project_id, **fields), mode
    )


async def add_block(wp, user_id: str, day: date, start: str, end: str, title: str = "Standup"):
    """Single-occurrence commitment on one date."""
    return await wp.recurring.create_commitment(
        user_id,
        RecurringCommitmentCreate(
            title=title,
            recurrence_type=RecurrenceType.DAILY,
            start_date=day,
            end_date=day,
            start_time=start,
            end_time=end,
        ),
    )


def spans(rows) -> list[tuple[date, str, str]]:
    return [(row.allocation_date, row.start_time, row.end_time) for row in rows]


def total_hours(rows, task_id: Optional[object] = None) -> float:
    return round(sum(row.hours for row in rows if task_id is None or row.task_id == task_id), 4)
