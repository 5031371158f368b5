"""
State shared by the steps of one scheduling operation.

A context caches each user's calendar, slot ledger and recurring blocks,
and accumulates every write in an AllocationChangeSet. Nothing reaches the
database until apply() runs the change set in one transaction.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional
from uuid import UUID, uuid4

from workplan.core.config import Settings, get_settings
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.models.allocation import Allocation, AllocationChangeSet, AllocationCreate
from workplan.models.calendar import WorkCalendar
from workplan.models.enums import WorkMode
from workplan.services.allocator import AllocationOutcome, Allocator, DaySlotLedger
from workplan.services.recurring_block_index import RecurringBlockIndex
from workplan.services.work_calendar import WorkCalendarService
from workplan.utils.time_utils import now_utc


class SchedulingContext:
    """Per-operation cache of calendars, ledgers and block indexes."""

    def __init__(
        self,
        calendar_service: WorkCalendarService,
        allocation_repo: IAllocationRepository,
        block_repo: IRecurringBlockRepository,
        settings: Optional[Settings] = None,
    ):
        self.calendar_service = calendar_service
        self.allocation_repo = allocation_repo
        self.block_repo = block_repo
        self.settings = settings or get_settings()
        self.changes = AllocationChangeSet()

        self._calendars: dict[str, WorkCalendar] = {}
        self._ledgers: dict[str, DaySlotLedger] = {}
        self._ledger_from: dict[str, date] = {}
        self._blocks: dict[str, RecurringBlockIndex] = {}
        self._block_range: dict[str, tuple[date, date]] = {}
        # task_id -> first released date (None: every row)
        self._released: dict[UUID, Optional[date]] = {}

    @property
    def horizon_days(self) -> int:
        return self.settings.SCHEDULING_HORIZON_DAYS

    async def calendar(self, user_id: str) -> WorkCalendar:
        if user_id not in self._calendars:
            self._calendars[user_id] = await self.calendar_service.get_calendar(user_id)
        return self._calendars[user_id]

    def _is_released(self, allocation: Allocation) -> bool:
        if allocation.task_id not in self._released:
            return False
        from_date = self._released[allocation.task_id]
        return from_date is None or allocation.allocation_date >= from_date

    async def ledger(self, user_id: str, from_date: date) -> DaySlotLedger:
        """Ledger of a user covering every date on/after from_date."""
        ledger = self._ledgers.get(user_id)
        loaded_from = self._ledger_from.get(user_id)
        if ledger is not None and loaded_from <= from_date:
            return ledger

        if ledger is None:
            ledger = DaySlotLedger()
            self._ledgers[user_id] = ledger
            rows = await self.allocation_repo.list_for_user(user_id, from_date)
        else:
            rows = await self.allocation_repo.list_for_user(
                user_id, from_date, loaded_from - timedelta(days=1)
            )
        ledger.seed(row for row in rows if not self._is_released(row))

        # Staged rows not produced through this ledger (manual entries)
        for row in self.changes.inserts:
            if row.user_id != user_id or row.allocation_date < from_date:
                continue
            if loaded_from is None or row.allocation_date < loaded_from:
                ledger.seed([_as_allocation(row)])

        self._ledger_from[user_id] = from_date
        return ledger

    async def blocks(self, user_id: str, start_date: date, end_date: date) -> RecurringBlockIndex:
        """Block index of a user covering at least [start_date, end_date]."""
        index = self._blocks.get(user_id)
        loaded = self._block_range.get(user_id)
        if index is None:
            index = RecurringBlockIndex(await self.block_repo.list_blocks(user_id, start_date, end_date))
            self._blocks[user_id] = index
            self._block_range[user_id] = (start_date, end_date)
            return index

        low, high = loaded
        if start_date < low:
            index.add(await self.block_repo.list_blocks(user_id, start_date, low - timedelta(days=1)))
            low = start_date
        if end_date > high:
            index.add(await self.block_repo.list_blocks(user_id, high + timedelta(days=1), end_date))
            high = end_date
        self._block_range[user_id] = (low, high)
        return index

    async def allocator(self, user_id: str, from_date: date) -> Allocator:
        end_date = from_date + timedelta(days=self.horizon_days + 1)
        return Allocator(
            user_id=user_id,
            calendar=await self.calendar(user_id),
            ledger=await self.ledger(user_id, from_date),
            blocks=await self.blocks(user_id, from_date, end_date),
            horizon_days=self.horizon_days,
        )

    async def allocate(
        self,
        task_id: UUID,
        user_id: str,
        hours: float,
        from_date: date,
        mode: WorkMode,
    ) -> AllocationOutcome:
        """Run the allocator and stage its rows."""
        allocator = await self.allocator(user_id, from_date)
        outcome = allocator.allocate(task_id, hours, from_date, mode)
        self.changes.add_rows(outcome.to_rows())
        return outcome

    def stage_rows(self, rows: list[AllocationCreate]) -> None:
        """Stage rows placed outside the allocator."""
        self.changes.add_rows(rows)
        for row in rows:
            loaded_from = self._ledger_from.get(row.user_id)
            if loaded_from is not None and row.allocation_date >= loaded_from:
                self._ledgers[row.user_id].seed([_as_allocation(row)])

    def release_ledger(self, task_id: UUID, from_date: Optional[date] = None) -> None:
        """Free a task's slots in every loaded ledger without deleting rows."""
        for ledger in self._ledgers.values():
            ledger.release(task_id, from_date)

    def set_aside(self, held: dict[UUID, list[Allocation]]) -> None:
        """
        Free the slots of rows a later step may move, without staging deletes.

        Only ledgers loaded so far are affected; load the ledger that the
        next allocate call uses before setting rows aside.
        """
        for task_id in held:
            self.release_ledger(task_id)

    def restore(self, held: dict[UUID, list[Allocation]]) -> None:
        """Put set-aside rows back into the loaded ledgers, skipping released ones."""
        for rows in held.values():
            for row in rows:
                if self._is_released(row):
                    continue
                loaded_from = self._ledger_from.get(row.user_id)
                if loaded_from is not None and row.allocation_date >= loaded_from:
                    self._ledgers[row.user_id].seed([row])

    def release_task(self, task_id: UUID, from_date: Optional[date] = None) -> None:
        """Stage deletion of a task's rows and free its slots."""
        self.changes.delete_task_rows(task_id, from_date)
        self.release_ledger(task_id, from_date)
        if task_id not in self._released:
            self._released[task_id] = from_date
        elif self._released[task_id] is not None:
            self._released[task_id] = None if from_date is None else min(self._released[task_id], from_date)

    async def apply(self) -> None:
        await self.allocation_repo.apply_changes(self.changes)


def _as_allocation(row: AllocationCreate) -> Allocation:
    return Allocation(id=uuid4(), created_at=now_utc(), **row.model_dump())
