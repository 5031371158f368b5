"""
Greedy forward allocator.

Places a task's hours onto one user's calendar, day by day, starting no
earlier than a given date. Each date is filled from its slot pointer (the
latest end of anything already placed that day, or the window start)
until the day's capacity is used up. Runs are split around the lunch
break and clipped at recurring blocks; the clipped remainder continues
after the block, so hours are never dropped.

All arithmetic is in integer minutes.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional
from uuid import UUID

from workplan.core.exceptions import ValidationError
from workplan.core.logger import setup_logger
from workplan.models.allocation import Allocation, AllocationCreate, TaskPlan
from workplan.models.calendar import WorkCalendar
from workplan.models.enums import WorkMode
from workplan.services.recurring_block_index import RecurringBlockIndex
from workplan.services.work_calendar import DayWindow, day_window
from workplan.utils.time_utils import (
    format_minutes,
    hours_to_minutes,
    minutes_to_hours,
    parse_time_to_minutes,
)

logger = setup_logger(__name__)


@dataclass(frozen=True)
class PlannedSlot:
    day: date
    start: int
    end: int

    @property
    def minutes(self) -> int:
        return self.end - self.start


@dataclass
class AllocationOutcome:
    """Rows produced by one allocate call."""

    task_id: UUID
    user_id: str
    mode: WorkMode
    requested_minutes: int
    slots: list[PlannedSlot] = field(default_factory=list)
    bound_exceeded: bool = False

    @property
    def allocated_minutes(self) -> int:
        return sum(slot.minutes for slot in self.slots)

    @property
    def unallocated_minutes(self) -> int:
        return max(0, self.requested_minutes - self.allocated_minutes)

    @property
    def first_allocated_date(self) -> Optional[date]:
        return self.slots[0].day if self.slots else None

    @property
    def last_allocated_date(self) -> Optional[date]:
        return self.slots[-1].day if self.slots else None

    def to_rows(self, is_manual: bool = False) -> list[AllocationCreate]:
        return [
            AllocationCreate(
                task_id=self.task_id,
                user_id=self.user_id,
                allocation_date=slot.day,
                hours=minutes_to_hours(slot.minutes),
                start_time=format_minutes(slot.start),
                end_time=format_minutes(slot.end),
                is_manual=is_manual,
                mode=self.mode,
            )
            for slot in self.slots
        ]

    def to_plan(self) -> TaskPlan:
        return TaskPlan(
            task_id=self.task_id,
            allocations=self.to_rows(),
            planned_start_date=self.first_allocated_date,
            planned_end_date=self.last_allocated_date,
            allocated_hours=minutes_to_hours(self.allocated_minutes),
            unallocated_hours=minutes_to_hours(self.unallocated_minutes),
            bound_exceeded=self.bound_exceeded,
        )


class DaySlotLedger:
    """
    Occupied intervals of one user's calendar, per (date, mode).

    Shared by every allocate call of a scheduling operation so that later
    calls see what earlier calls placed.
    """

    def __init__(self):
        self._slots: dict[tuple[date, WorkMode], list[tuple[int, int, UUID]]] = defaultdict(list)

    def occupy(self, day: date, mode: WorkMode, start: int, end: int, task_id: UUID) -> None:
        self._slots[(day, mode)].append((start, end, task_id))

    def seed(self, allocations: Iterable[Allocation]) -> None:
        for allocation in allocations:
            self.occupy(
                allocation.allocation_date,
                allocation.mode,
                parse_time_to_minutes(allocation.start_time),
                parse_time_to_minutes(allocation.end_time),
                allocation.task_id,
            )

    def release(self, task_id: UUID, from_date: Optional[date] = None) -> None:
        """Forget a task's intervals, optionally only on/after a date."""
        for (day, mode), intervals in self._slots.items():
            if from_date is not None and day < from_date:
                continue
            self._slots[(day, mode)] = [item for item in intervals if item[2] != task_id]

    def pointer(self, day: date, mode: WorkMode, window_start: int) -> int:
        intervals = self._slots.get((day, mode))
        if not intervals:
            return window_start
        return max(window_start, max(end for _, end, _ in intervals))

    def used_minutes(self, day: date, mode: WorkMode) -> int:
        return sum(end - start for start, end, _ in self._slots.get((day, mode), []))


class Allocator:
    """Greedy allocator for one user's calendar."""

    def __init__(
        self,
        user_id: str,
        calendar: WorkCalendar,
        ledger: DaySlotLedger,
        blocks: RecurringBlockIndex,
        horizon_days: int = 365,
    ):
        self.user_id = user_id
        self.calendar = calendar
        self.ledger = ledger
        self.blocks = blocks
        self.horizon_days = horizon_days

    def allocate(self, task_id: UUID, hours_needed: float, from_date: date, mode: WorkMode) -> AllocationOutcome:
        """
        Place hours_needed hours from from_date onward.

        Raises:
            ValidationError: If hours_needed is not positive
        """
        if hours_needed is None or hours_needed <= 0:
            raise ValidationError("Hours to allocate must be greater than zero", {"hours": hours_needed})

        remaining = hours_to_minutes(hours_needed)
        outcome = AllocationOutcome(
            task_id=task_id, user_id=self.user_id, mode=mode, requested_minutes=remaining
        )
        last_day = from_date + timedelta(days=self.horizon_days)
        day = from_date

        while remaining > 0:
            if day > last_day:
                outcome.bound_exceeded = True
                logger.warning(
                    f"Scheduling horizon of {self.horizon_days} days reached for task {task_id}: "
                    f"{minutes_to_hours(remaining):.2f}h left unallocated"
                )
                break

            window = day_window(self.calendar, day, mode)
            if window is not None:
                remaining -= self._fill_day(outcome, window, remaining)
            day += timedelta(days=1)

        if outcome.slots:
            logger.info(
                f"Allocated {minutes_to_hours(outcome.allocated_minutes):.2f}h of task {task_id} "
                f"for {self.user_id} ({mode.value}) {outcome.first_allocated_date}..{outcome.last_allocated_date}"
            )
        return outcome

    def _fill_day(self, outcome: AllocationOutcome, window: DayWindow, remaining: int) -> int:
        """Emit runs on one date; returns the minutes placed."""
        day, mode = window.day, window.mode
        budget = window.capacity_minutes - self.ledger.used_minutes(day, mode)
        pointer = self.ledger.pointer(day, mode, window.start)
        placed = 0

        while remaining - placed > 0 and budget > 0:
            pointer = self._skip_unavailable(window, pointer)
            if pointer >= window.end:
                break

            run_end = window.end
            if window.has_lunch and pointer < window.lunch_start:
                run_end = min(run_end, window.lunch_start)
            next_block = self.blocks.next_start_after(day, pointer)
            if next_block is not None:
                run_end = min(run_end, next_block)

            length = min(run_end - pointer, remaining - placed, budget)
            if length <= 0:
                break

            outcome.slots.append(PlannedSlot(day=day, start=pointer, end=pointer + length))
            self.ledger.occupy(day, mode, pointer, pointer + length, outcome.task_id)
            placed += length
            budget -= length
            pointer += length

        return placed

    def _skip_unavailable(self, window: DayWindow, pointer: int) -> int:
        """Move the pointer past lunch and any recurring block it sits in."""
        while True:
            if window.in_lunch(pointer):
                pointer = window.lunch_end
                continue
            block = self.blocks.covering(window.day, pointer)
            if block is not None:
                pointer = block[1]
                continue
            return pointer
