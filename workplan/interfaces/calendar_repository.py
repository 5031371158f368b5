"""
Work calendar repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from workplan.models.calendar import WorkCalendar


class ICalendarRepository(ABC):
    """Abstract interface for per-user calendar settings."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[WorkCalendar]:
        """
        Get a user's saved calendar.

        Returns:
            The calendar, or None when the user never saved one
        """
        pass

    @abstractmethod
    async def save(self, calendar: WorkCalendar) -> WorkCalendar:
        """Insert or replace a user's calendar."""
        pass
