"""
Availability calculation.

Reports, per date, how much of a user's capacity in one mode is still free.
Direct allocations and recurring blocks count against capacity; child
allocations never do.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from workplan.core.exceptions import ValidationError
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.models.allocation import DayAvailability, RemainingWindow
from workplan.models.calendar import WEEKDAY_NAMES
from workplan.models.enums import WorkMode
from workplan.services.recurring_block_index import RecurringBlockIndex
from workplan.services.work_calendar import WorkCalendarService, capacity_hours, day_window, start_time
from workplan.utils.time_utils import format_minutes, hours_to_minutes, minutes_to_hours, parse_time_to_minutes

MAX_RANGE_DAYS = 366


class AvailabilityService:
    """Per-date capacity summaries."""

    def __init__(
        self,
        allocation_repo: IAllocationRepository,
        calendar_service: WorkCalendarService,
        block_repo: IRecurringBlockRepository,
    ):
        self.allocation_repo = allocation_repo
        self.calendar_service = calendar_service
        self.block_repo = block_repo

    async def availability(
        self,
        user_id: str,
        mode: WorkMode,
        start_date: date,
        end_date: date,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[DayAvailability]:
        """
        Summarize each date in [start_date, end_date].

        Raises:
            ValidationError: If start_date is after end_date or the range is too long
        """
        if start_date > end_date:
            raise ValidationError(
                "start_date must not be after end_date",
                {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        if (end_date - start_date).days >= MAX_RANGE_DAYS:
            raise ValidationError(f"Date range is limited to {MAX_RANGE_DAYS} days")

        calendar = await self.calendar_service.get_calendar(user_id)
        rows = await self.allocation_repo.list_for_user(user_id, start_date, end_date, mode=mode)
        blocks = RecurringBlockIndex(await self.block_repo.list_blocks(user_id, start_date, end_date))

        by_date = defaultdict(list)
        for row in rows:
            if exclude_task_id is not None and row.task_id == exclude_task_id:
                continue
            by_date[row.allocation_date].append(
                (parse_time_to_minutes(row.start_time), parse_time_to_minutes(row.end_time))
            )

        results = []
        day = start_date
        while day <= end_date:
            results.append(self._summarize(calendar, day, mode, by_date.get(day, []), blocks))
            day += timedelta(days=1)
        return results

    def _summarize(self, calendar, day: date, mode: WorkMode, intervals, blocks: RecurringBlockIndex) -> DayAvailability:
        capacity = hours_to_minutes(capacity_hours(calendar, day, mode))
        allocated = sum(end - start for start, end in intervals) + blocks.minutes_on(day)
        available = max(0, capacity - allocated)

        latest_end = max((end for _, end in intervals), default=None)
        remaining_window = None
        window = day_window(calendar, day, mode)
        if window is not None:
            tail_start = max(window.start, latest_end) if latest_end is not None else window.start
            tail = max(0, window.end - tail_start)
            if window.has_lunch and tail_start < window.lunch_end:
                tail -= max(0, window.lunch_end - max(tail_start, window.lunch_start))
            tail -= blocks.overlap(day, tail_start, window.end)
            available = min(available, max(0, tail))
            if tail_start < window.end:
                remaining_window = RemainingWindow(start=format_minutes(tail_start), end=format_minutes(window.end))
        else:
            available = 0

        return DayAvailability(
            day=day,
            day_of_week=WEEKDAY_NAMES[day.weekday()],
            mode=mode,
            capacity_hours=minutes_to_hours(capacity),
            allocated_hours=minutes_to_hours(allocated),
            available_hours=minutes_to_hours(available),
            start_time=start_time(calendar, day, mode),
            latest_end_time=format_minutes(latest_end) if latest_end is not None else None,
            remaining_window=remaining_window if available > 0 else None,
        )
