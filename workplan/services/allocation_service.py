"""
Allocation service.

Entry points that change a task's allocations: automatic planning, manual
entry, and removal. Every operation validates first, stages its writes in
one scheduling context, cascades to finish-to-start dependents where the
task's end date may have moved, and commits once.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Optional
from uuid import UUID

from workplan.core.config import Settings, get_settings
from workplan.core.exceptions import (
    ForbiddenError,
    InsufficientCapacityError,
    NotFoundError,
    ValidationError,
)
from workplan.core.logger import setup_logger
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.interfaces.notification_repository import INotificationRepository
from workplan.interfaces.permission_checker import IPermissionChecker
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.interfaces.task_repository import ITaskRepository
from workplan.models.allocation import (
    AllocationCreate,
    AllocationEntry,
    SchedulingResult,
    TaskPlan,
)
from workplan.models.task import Task
from workplan.services import notification_service as notify
from workplan.services.dependency_replanner import DependencyReplanner
from workplan.services.scheduling_context import SchedulingContext
from workplan.services.scheduling_locks import SchedulingLocks
from workplan.services.work_calendar import WorkCalendarService, capacity_hours, lunch_interval
from workplan.utils.task_graph import descendant_ids
from workplan.utils.time_utils import (
    TimeInterval,
    format_minutes,
    hours_to_minutes,
    minutes_to_hours,
    parse_time_to_minutes,
    subtract_intervals,
)

logger = setup_logger(__name__)


class AllocationService:
    """Plans, replaces and removes a task's allocations."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        allocation_repo: IAllocationRepository,
        calendar_service: WorkCalendarService,
        block_repo: IRecurringBlockRepository,
        notification_repo: INotificationRepository,
        permission_checker: IPermissionChecker,
        locks: SchedulingLocks,
        replanner: DependencyReplanner,
        settings: Optional[Settings] = None,
    ):
        self.task_repo = task_repo
        self.allocation_repo = allocation_repo
        self.calendar_service = calendar_service
        self.block_repo = block_repo
        self.notification_repo = notification_repo
        self.permission_checker = permission_checker
        self.locks = locks
        self.replanner = replanner
        self.settings = settings or get_settings()

    def _new_context(self) -> SchedulingContext:
        return SchedulingContext(
            self.calendar_service, self.allocation_repo, self.block_repo, self.settings
        )

    async def _get_plannable_task(self, task_id: UUID, actor_id: str) -> Task:
        task = await self.task_repo.get(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        if not await self.permission_checker.can_plan(actor_id, task):
            raise ForbiddenError(f"Not allowed to plan task {task_id}")
        return task

    # ===========================================
    # Automatic planning
    # ===========================================

    async def auto_plan_task(
        self,
        task_id: UUID,
        user_id: str,
        hours: float,
        from_date: date,
        actor_id: str,
    ) -> SchedulingResult:
        """
        Replace a task's allocations with allocator output.

        The task's rows and its child allocations at every level are
        dropped, the hours are placed from from_date on the user's calendar
        in the task's mode, and dependents are re-planned after the new end
        date.

        Raises:
            ValidationError: If hours is not positive or user_id is empty
            NotFoundError: If the task does not exist
            ForbiddenError: If the actor may not plan the task
        """
        if hours is None or hours <= 0:
            raise ValidationError("Hours to allocate must be greater than zero", {"hours": hours})
        if not user_id:
            raise ValidationError("user_id is required")
        task = await self._get_plannable_task(task_id, actor_id)

        users = {user_id} | await self.replanner.collect_users(task_id)
        async with self.locks.hold(users):
            context = self._new_context()
            adjacency = await self.task_repo.get_child_adjacency()
            held = await self.replanner.dependent_rows(task_id)

            await context.ledger(user_id, from_date)
            context.release_task(task_id)
            context.changes.delete_child_rows(task_id, descendant_ids(adjacency, task_id))
            context.set_aside(held)
            outcome = await context.allocate(task_id, user_id, hours, from_date, task.mode)
            context.restore(held)
            context.changes.assign(task_id, user_id)

            replanned: list[TaskPlan] = []
            if outcome.last_allocated_date is not None:
                replanned = await self.replanner.cascade(context, task_id, outcome.last_allocated_date)
            await context.apply()

        plan = outcome.to_plan()
        logger.info(
            f"Auto-planned task {task_id} for {user_id}: {plan.allocated_hours:.2f}h, "
            f"{len(replanned)} dependents re-planned"
        )
        await notify.notify_task_allocated(self.notification_repo, task, user_id, actor_id, plan)
        return SchedulingResult(plan=plan, replanned=replanned)

    # ===========================================
    # Manual entry
    # ===========================================

    async def save_manual_allocations(
        self,
        task_id: UUID,
        user_id: str,
        entries: list[AllocationEntry],
        actor_id: str,
    ) -> SchedulingResult:
        """
        Replace a task's allocations with hand-placed blocks.

        Entries crossing lunch (work mode) are split in two. Entries that
        overlap a recurring block, each other or another task's rows, or that
        push a date over its capacity, are rejected. Rows of the task's
        dependents do not count; they are moved behind the new end date.

        Raises:
            ValidationError: On an invalid range or an overlap
            InsufficientCapacityError: If a date's capacity would be exceeded
            NotFoundError: If the task does not exist
            ForbiddenError: If the actor may not plan the task
        """
        if not user_id:
            raise ValidationError("user_id is required")
        task = await self._get_plannable_task(task_id, actor_id)
        calendar = await self.calendar_service.get_calendar(user_id)

        pieces_by_date: dict[date, list[TimeInterval]] = defaultdict(list)
        lunch = lunch_interval(calendar, task.mode)
        for entry in entries:
            start = parse_time_to_minutes(entry.start_time)
            end = parse_time_to_minutes(entry.end_time)
            if start >= end:
                raise ValidationError(
                    "start_time must be before end_time",
                    {"date": entry.allocation_date.isoformat(), "start_time": entry.start_time, "end_time": entry.end_time},
                )
            pieces = [TimeInterval(start, end)]
            if lunch is not None:
                pieces = subtract_intervals(pieces, [TimeInterval(*lunch)])
                if not pieces:
                    raise ValidationError(
                        "Entry falls entirely within the lunch break",
                        {"date": entry.allocation_date.isoformat()},
                    )
            pieces_by_date[entry.allocation_date].extend(pieces)

        users = {user_id} | await self.replanner.collect_users(task_id)
        async with self.locks.hold(users):
            held = await self.replanner.dependent_rows(task_id)
            if pieces_by_date:
                await self._check_manual_entries(task, user_id, calendar, pieces_by_date, set(held))

            rows = [
                AllocationCreate(
                    task_id=task_id,
                    user_id=user_id,
                    allocation_date=day,
                    hours=minutes_to_hours(piece.minutes),
                    start_time=format_minutes(piece.start_minutes),
                    end_time=format_minutes(piece.end_minutes),
                    is_manual=True,
                    mode=task.mode,
                )
                for day in sorted(pieces_by_date)
                for piece in sorted(pieces_by_date[day], key=lambda item: item.start_minutes)
            ]

            context = self._new_context()
            adjacency = await self.task_repo.get_child_adjacency()
            context.release_task(task_id)
            context.changes.delete_child_rows(task_id, descendant_ids(adjacency, task_id))
            context.stage_rows(rows)
            context.changes.assign(task_id, user_id)

            replanned: list[TaskPlan] = []
            if rows:
                replanned = await self.replanner.cascade(context, task_id, rows[-1].allocation_date)
            await context.apply()

        total_minutes = sum(
            parse_time_to_minutes(row.end_time) - parse_time_to_minutes(row.start_time) for row in rows
        )
        plan = TaskPlan(
            task_id=task_id,
            allocations=rows,
            planned_start_date=rows[0].allocation_date if rows else None,
            planned_end_date=rows[-1].allocation_date if rows else None,
            allocated_hours=minutes_to_hours(total_minutes),
        )
        logger.info(f"Saved {len(rows)} manual allocation rows for task {task_id} ({user_id})")
        await notify.notify_task_allocated(self.notification_repo, task, user_id, actor_id, plan)
        return SchedulingResult(plan=plan, replanned=replanned)

    async def _check_manual_entries(
        self,
        task: Task,
        user_id: str,
        calendar,
        pieces_by_date,
        movable: set[UUID],
    ) -> None:
        """
        Reject entries that overlap a block, each other or another task's rows,
        or that exceed a date's capacity.

        Rows of tasks in movable are ignored; the dependency cascade moves them.
        """
        first, last = min(pieces_by_date), max(pieces_by_date)
        blocks = await self.block_repo.list_blocks(user_id, first, last)
        existing = [
            row
            for row in await self.allocation_repo.list_for_user(user_id, first, last, mode=task.mode)
            if row.task_id != task.id and row.task_id not in movable
        ]

        for day, pieces in sorted(pieces_by_date.items()):
            ordered = sorted(pieces, key=lambda piece: piece.start_minutes)
            for previous, current in zip(ordered, ordered[1:]):
                if current.start_minutes < previous.end_minutes:
                    raise ValidationError(
                        "Entries overlap each other",
                        {
                            "date": day.isoformat(),
                            "start_time": format_minutes(current.start_minutes),
                            "end_time": format_minutes(previous.end_minutes),
                        },
                    )

            for block in (block for block in blocks if block.block_date == day):
                for piece in pieces:
                    if piece.start_minutes < block.end_minutes and block.start_minutes < piece.end_minutes:
                        raise ValidationError(
                            "Entry overlaps a recurring commitment",
                            {
                                "date": day.isoformat(),
                                "start_time": format_minutes(piece.start_minutes),
                                "end_time": format_minutes(piece.end_minutes),
                                "commitment_id": str(block.commitment_id),
                            },
                        )

            others = [row for row in existing if row.allocation_date == day]
            other_minutes = sum(
                parse_time_to_minutes(row.end_time) - parse_time_to_minutes(row.start_time) for row in others
            )
            entry_minutes = sum(piece.minutes for piece in pieces)
            capacity = hours_to_minutes(capacity_hours(calendar, day, task.mode))
            if other_minutes + entry_minutes > capacity:
                raise InsufficientCapacityError(
                    f"Not enough capacity on {day.isoformat()}",
                    day=day,
                    capacity_hours=minutes_to_hours(max(0, capacity - other_minutes)),
                    requested_hours=minutes_to_hours(entry_minutes),
                )

            for row in others:
                row_start = parse_time_to_minutes(row.start_time)
                row_end = parse_time_to_minutes(row.end_time)
                for piece in pieces:
                    if piece.start_minutes < row_end and row_start < piece.end_minutes:
                        raise ValidationError(
                            "Entry overlaps another task's allocation",
                            {
                                "date": day.isoformat(),
                                "start_time": format_minutes(piece.start_minutes),
                                "end_time": format_minutes(piece.end_minutes),
                                "task_id": str(row.task_id),
                            },
                        )

    # ===========================================
    # Removal
    # ===========================================

    async def remove_allocations_on_date(
        self,
        task_id: UUID,
        user_id: str,
        day: date,
        actor_id: str,
    ) -> None:
        """Drop one date of a task's rows for a user, with its child allocations that date."""
        await self._get_plannable_task(task_id, actor_id)

        async with self.locks.hold([user_id]):
            context = self._new_context()
            adjacency = await self.task_repo.get_child_adjacency()
            context.changes.delete_task_day(task_id, user_id, day)
            context.changes.delete_child_rows(
                task_id, descendant_ids(adjacency, task_id), on_date=day
            )
            await context.apply()
        logger.info(f"Removed allocations of task {task_id} for {user_id} on {day}")

    async def clear_task_allocations(self, task_id: UUID, actor_id: str) -> set[str]:
        """
        Drop every row and child allocation of a task.

        Planned dates are cleared for the task and all of its descendants.

        Returns:
            Users who held rows for the task
        """
        task = await self._get_plannable_task(task_id, actor_id)
        rows = await self.allocation_repo.list_for_task(task_id)
        users = {row.user_id for row in rows}

        async with self.locks.hold(users):
            context = self._new_context()
            adjacency = await self.task_repo.get_child_adjacency()
            descendants = descendant_ids(adjacency, task_id)
            context.release_task(task_id)
            context.changes.delete_child_rows(task_id, descendants)
            context.changes.clear_planning({task_id} | descendants)
            await context.apply()

        logger.info(f"Cleared {len(rows)} allocation rows of task {task_id}")
        await notify.notify_allocations_removed(self.notification_repo, task, users, actor_id)
        return users
