"""
Allocation models.

An allocation is one contiguous block of a user's calendar reserved for a
task on a date. Scheduling operations stage their writes in an
AllocationChangeSet which the repository applies in a single transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from workplan.models.enums import WorkMode
from workplan.utils.time_utils import HHMM_PATTERN


class AllocationCreate(BaseModel):
    """Allocation row to insert."""

    task_id: UUID
    user_id: str
    allocation_date: date
    hours: float = Field(..., gt=0)
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=HHMM_PATTERN)
    is_manual: bool = False
    mode: WorkMode = WorkMode.WORK


class Allocation(AllocationCreate):
    """Persisted allocation row."""

    id: UUID
    created_at: datetime


class AllocationEntry(BaseModel):
    """One manually entered block."""

    allocation_date: date
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=HHMM_PATTERN)


class ManualAllocationRequest(BaseModel):
    """Replace a task's allocations with hand-placed blocks."""

    user_id: str = Field(..., min_length=1)
    entries: list[AllocationEntry] = Field(default_factory=list)


class AutoPlanRequest(BaseModel):
    """Let the allocator place a task's hours."""

    user_id: str = Field(..., min_length=1)
    hours: float = Field(..., gt=0, description="Hours to place")
    from_date: date = Field(..., description="Earliest date to use")


class PushForwardRequest(BaseModel):
    """Insert a task at the front of a user's queue."""

    user_id: str = Field(..., min_length=1)
    from_date: date
    new_task_id: UUID
    new_task_hours: float = Field(..., gt=0)


class ReplanRequest(BaseModel):
    """Re-plan the dependents of a task.

    When new_end_date is omitted the task's current planned end date is used.
    """

    new_end_date: Optional[date] = None


class TaskPlan(BaseModel):
    """Result of placing one task."""

    task_id: UUID
    allocations: list[AllocationCreate] = Field(default_factory=list)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    allocated_hours: float = 0.0
    unallocated_hours: float = 0.0
    bound_exceeded: bool = Field(
        False, description="The scheduling horizon was reached before every hour was placed"
    )


class SchedulingResult(BaseModel):
    """Outcome of a scheduling operation."""

    plan: Optional[TaskPlan] = None
    replanned: list[TaskPlan] = Field(default_factory=list, description="Re-allocated dependents/queue tasks")
    skipped_task_ids: list[UUID] = Field(default_factory=list, description="Queue tasks left untouched")

    @computed_field
    @property
    def bound_exceeded(self) -> bool:
        plans = ([self.plan] if self.plan else []) + self.replanned
        return any(plan.bound_exceeded for plan in plans)


class RemainingWindow(BaseModel):
    """Free tail of a day's window."""

    start: str
    end: str


class DayAvailability(BaseModel):
    """Capacity summary for one date."""

    day: date
    day_of_week: str
    mode: WorkMode
    capacity_hours: float
    allocated_hours: float
    available_hours: float
    start_time: str
    latest_end_time: Optional[str] = None
    remaining_window: Optional[RemainingWindow] = None


@dataclass
class ChildRowDeletion:
    """Child allocation rows removed together with a task's own rows."""

    task_id: UUID
    subtree_ids: frozenset[UUID]
    from_date: Optional[date] = None
    on_date: Optional[date] = None


@dataclass
class AllocationChangeSet:
    """Writes staged by one scheduling operation."""

    # task_id -> first date removed (None removes every row)
    deletions: dict[UUID, Optional[date]] = field(default_factory=dict)
    day_deletions: list[tuple[UUID, str, date]] = field(default_factory=list)
    child_deletions: list[ChildRowDeletion] = field(default_factory=list)
    inserts: list[AllocationCreate] = field(default_factory=list)
    assignments: dict[UUID, str] = field(default_factory=dict)
    cleared_tasks: set[UUID] = field(default_factory=set)
    touched_tasks: set[UUID] = field(default_factory=set)

    def delete_task_rows(self, task_id: UUID, from_date: Optional[date] = None) -> None:
        """Stage removal of a task's rows, also dropping rows staged earlier."""
        if task_id in self.deletions:
            current = self.deletions[task_id]
            if current is None or from_date is None:
                self.deletions[task_id] = None
            else:
                self.deletions[task_id] = min(current, from_date)
        else:
            self.deletions[task_id] = from_date
        self.inserts = [
            row
            for row in self.inserts
            if not (row.task_id == task_id and (from_date is None or row.allocation_date >= from_date))
        ]
        self.touched_tasks.add(task_id)

    def delete_task_day(self, task_id: UUID, user_id: str, day: date) -> None:
        self.day_deletions.append((task_id, user_id, day))
        self.touched_tasks.add(task_id)

    def delete_child_rows(
        self,
        task_id: UUID,
        subtree_ids: set[UUID],
        from_date: Optional[date] = None,
        on_date: Optional[date] = None,
    ) -> None:
        self.child_deletions.append(
            ChildRowDeletion(
                task_id=task_id,
                subtree_ids=frozenset(subtree_ids),
                from_date=from_date,
                on_date=on_date,
            )
        )

    def add_rows(self, rows: list[AllocationCreate]) -> None:
        self.inserts.extend(rows)
        self.touched_tasks.update(row.task_id for row in rows)

    def assign(self, task_id: UUID, user_id: str) -> None:
        self.assignments[task_id] = user_id
        self.touched_tasks.add(task_id)

    def clear_planning(self, task_ids: set[UUID]) -> None:
        self.cleared_tasks.update(task_ids)

    def is_empty(self) -> bool:
        return not (
            self.deletions
            or self.day_deletions
            or self.child_deletions
            or self.inserts
            or self.assignments
            or self.cleared_tasks
        )
