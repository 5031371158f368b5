"""
SQLite implementation of the work calendar repository.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from workplan.infrastructure.local.database import WorkCalendarORM, get_session_factory
from workplan.interfaces.calendar_repository import ICalendarRepository
from workplan.models.calendar import WeekdayHours, WorkCalendar
from workplan.utils.time_utils import now_utc


class SqliteCalendarRepository(ICalendarRepository):
    """SQLite implementation of calendar repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: WorkCalendarORM) -> WorkCalendar:
        return WorkCalendar(
            user_id=orm.user_id,
            work_days=[WeekdayHours(**day) for day in orm.work_days],
            hobby_days=[WeekdayHours(**day) for day in orm.hobby_days],
            lunch_start=orm.lunch_start,
            lunch_duration_minutes=orm.lunch_duration_minutes,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def get(self, user_id: str) -> Optional[WorkCalendar]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(WorkCalendarORM).where(WorkCalendarORM.user_id == user_id)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def save(self, calendar: WorkCalendar) -> WorkCalendar:
        async with self._session_factory() as session:
            result = await session.execute(
                select(WorkCalendarORM).where(WorkCalendarORM.user_id == calendar.user_id)
            )
            orm = result.scalar_one_or_none()
            now = now_utc()
            if orm is None:
                orm = WorkCalendarORM(user_id=calendar.user_id, created_at=now)
                session.add(orm)
            orm.work_days = [day.model_dump() for day in calendar.work_days]
            orm.hobby_days = [day.model_dump() for day in calendar.hobby_days]
            orm.lunch_start = calendar.lunch_start
            orm.lunch_duration_minutes = calendar.lunch_duration_minutes
            orm.updated_at = now
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
