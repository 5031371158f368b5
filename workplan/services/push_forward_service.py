"""
Push-forward conflict resolution.

Inserts a task at the front of a user's queue: the new task is allocated
first from the requested date and every queued task of the same mode that
would now collide is re-allocated behind it, keeping its hours. A moved
task loses its child allocations on and after the requested date. Queued
tasks that start after the new task's end date stay where they are.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from workplan.core.config import Settings, get_settings
from workplan.core.exceptions import ForbiddenError, ValidationError
from workplan.core.logger import setup_logger
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.interfaces.notification_repository import INotificationRepository
from workplan.interfaces.permission_checker import IPermissionChecker
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.interfaces.task_repository import ITaskRepository
from workplan.models.allocation import Allocation, SchedulingResult, TaskPlan
from workplan.services import notification_service as notify
from workplan.services.scheduling_context import SchedulingContext
from workplan.services.scheduling_locks import SchedulingLocks
from workplan.services.work_calendar import WorkCalendarService
from workplan.utils.task_graph import descendant_ids
from workplan.utils.time_utils import minutes_to_hours, parse_time_to_minutes

logger = setup_logger(__name__)


@dataclass
class QueuedTask:
    """A task holding rows on/after the push-forward date."""

    task_id: UUID
    first_date: date
    first_start: int
    minutes: int
    rows: list[Allocation]


def build_queue(rows: list[Allocation], exclude_task_id: UUID) -> list[QueuedTask]:
    """Group rows by task, ordered by (first date, first start, task id)."""
    grouped: dict[UUID, list[Allocation]] = {}
    for row in rows:
        if row.task_id == exclude_task_id:
            continue
        grouped.setdefault(row.task_id, []).append(row)

    queue = []
    for task_id, task_rows in grouped.items():
        first = min(task_rows, key=lambda row: (row.allocation_date, parse_time_to_minutes(row.start_time)))
        queue.append(
            QueuedTask(
                task_id=task_id,
                first_date=first.allocation_date,
                first_start=parse_time_to_minutes(first.start_time),
                minutes=sum(
                    parse_time_to_minutes(row.end_time) - parse_time_to_minutes(row.start_time)
                    for row in task_rows
                ),
                rows=task_rows,
            )
        )
    queue.sort(key=lambda item: (item.first_date, item.first_start, str(item.task_id)))
    return queue


class PushForwardService:
    """Puts a new task first and shifts the colliding queue behind it."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        allocation_repo: IAllocationRepository,
        calendar_service: WorkCalendarService,
        block_repo: IRecurringBlockRepository,
        notification_repo: INotificationRepository,
        permission_checker: IPermissionChecker,
        locks: SchedulingLocks,
        settings: Optional[Settings] = None,
    ):
        self.task_repo = task_repo
        self.allocation_repo = allocation_repo
        self.calendar_service = calendar_service
        self.block_repo = block_repo
        self.notification_repo = notification_repo
        self.permission_checker = permission_checker
        self.locks = locks
        self.settings = settings or get_settings()

    async def push_forward(
        self,
        user_id: str,
        from_date: date,
        new_task_id: UUID,
        new_task_hours: float,
        actor_id: str,
    ) -> SchedulingResult:
        """
        Allocate new_task_id first and re-allocate the user's colliding queue.

        Raises:
            ValidationError: On missing ids or non-positive hours
            ForbiddenError: If the actor may not plan the task
        """
        if not user_id or new_task_id is None or from_date is None:
            raise ValidationError("user_id, from_date and new_task_id are required")
        if new_task_hours is None or new_task_hours <= 0:
            raise ValidationError("new_task_hours must be greater than zero", {"hours": new_task_hours})
        task = await self.task_repo.get(new_task_id)
        if not task:
            raise ValidationError(f"Task {new_task_id} not found", {"task_id": str(new_task_id)})
        if not await self.permission_checker.can_plan(actor_id, task):
            raise ForbiddenError(f"Not allowed to plan task {new_task_id}")

        async with self.locks.hold([user_id]):
            context = SchedulingContext(
                self.calendar_service, self.allocation_repo, self.block_repo, self.settings
            )
            rows = await self.allocation_repo.list_for_user(user_id, from_date, mode=task.mode)
            queue = build_queue(rows, exclude_task_id=new_task_id)

            adjacency = await self.task_repo.get_child_adjacency()

            await context.ledger(user_id, from_date)
            context.release_task(new_task_id)
            context.changes.delete_child_rows(new_task_id, descendant_ids(adjacency, new_task_id))
            for queued in queue:
                context.release_ledger(queued.task_id, from_date)

            outcome = await context.allocate(new_task_id, user_id, new_task_hours, from_date, task.mode)
            context.changes.assign(new_task_id, user_id)
            new_end = outcome.last_allocated_date

            to_move: list[QueuedTask] = []
            skipped: list[UUID] = []
            ledger = await context.ledger(user_id, from_date)
            for queued in queue:
                if new_end is not None and queued.first_date > new_end:
                    ledger.seed(queued.rows)
                    skipped.append(queued.task_id)
                else:
                    to_move.append(queued)

            replanned: list[TaskPlan] = []
            for queued in to_move:
                context.release_task(queued.task_id, from_date)
                context.changes.delete_child_rows(
                    queued.task_id, descendant_ids(adjacency, queued.task_id), from_date=from_date
                )
                moved = await context.allocate(
                    queued.task_id,
                    user_id,
                    minutes_to_hours(queued.minutes),
                    from_date,
                    task.mode,
                )
                replanned.append(moved.to_plan())

            await context.apply()

        plan = outcome.to_plan()
        logger.info(
            f"Pushed task {new_task_id} to the front for {user_id} from {from_date}: "
            f"{len(replanned)} tasks moved, {len(skipped)} untouched"
        )
        await notify.notify_task_allocated(self.notification_repo, task, user_id, actor_id, plan)
        return SchedulingResult(plan=plan, replanned=replanned, skipped_task_ids=skipped)
