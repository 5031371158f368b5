"""
Cascading re-plan of finish-to-start dependents.

When a task's end date moves, every dependent that now starts on or before
that date is moved to start the day after, keeping its previously planned
hours. The cascade continues through the dependents' own dependents.
"""

from __future__ import annotations

from collections import deque
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from workplan.core.config import Settings, get_settings
from workplan.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from workplan.core.logger import setup_logger
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.interfaces.permission_checker import IPermissionChecker
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.interfaces.task_repository import ITaskRepository
from workplan.models.allocation import Allocation, SchedulingResult, TaskPlan
from workplan.models.task import Task
from workplan.services.scheduling_context import SchedulingContext
from workplan.services.scheduling_locks import SchedulingLocks
from workplan.services.work_calendar import WorkCalendarService
from workplan.utils.task_graph import descendant_ids
from workplan.utils.time_utils import minutes_to_hours, parse_time_to_minutes

logger = setup_logger(__name__)


class DependencyReplanner:
    """Moves dependents after their upstream task's new end date."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        allocation_repo: IAllocationRepository,
        calendar_service: WorkCalendarService,
        block_repo: IRecurringBlockRepository,
        locks: SchedulingLocks,
        permission_checker: IPermissionChecker,
        settings: Optional[Settings] = None,
    ):
        self.task_repo = task_repo
        self.allocation_repo = allocation_repo
        self.calendar_service = calendar_service
        self.block_repo = block_repo
        self.locks = locks
        self.permission_checker = permission_checker
        self.settings = settings or get_settings()

    def new_context(self) -> SchedulingContext:
        return SchedulingContext(
            self.calendar_service, self.allocation_repo, self.block_repo, self.settings
        )

    async def replan_dependents(
        self,
        task_id: UUID,
        actor_id: str,
        new_end_date: Optional[date] = None,
    ) -> SchedulingResult:
        """
        Re-plan the dependents of a task on their own.

        Args:
            task_id: Upstream task
            actor_id: User requesting the re-plan
            new_end_date: Upstream end date; the task's planned end when omitted

        Raises:
            NotFoundError: If the task does not exist
            ForbiddenError: If the actor may not plan the task
            ValidationError: If no end date is known
        """
        task = await self.task_repo.get(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        if not await self.permission_checker.can_plan(actor_id, task):
            raise ForbiddenError(f"Not allowed to plan task {task_id}")

        end_date = new_end_date or task.planned_end_date
        if end_date is None:
            raise ValidationError(f"Task {task_id} has no planned end date", {"task_id": str(task_id)})

        users = await self.collect_users(task_id)
        async with self.locks.hold(users):
            context = self.new_context()
            replanned = await self.cascade(context, task_id, end_date)
            await context.apply()

        return SchedulingResult(replanned=replanned)

    async def _transitive_dependents(self, task_id: UUID) -> list[Task]:
        dependents: list[Task] = []
        visited = {task_id}
        queue = deque([task_id])
        while queue:
            current = queue.popleft()
            for dependent in await self.task_repo.list_dependents(current):
                if dependent.id in visited:
                    continue
                visited.add(dependent.id)
                queue.append(dependent.id)
                dependents.append(dependent)
        return dependents

    async def collect_users(self, task_id: UUID) -> set[str]:
        """Users whose calendars a cascade from this task may write."""
        users: set[str] = set()
        for dependent in await self._transitive_dependents(task_id):
            if dependent.assigned_to:
                users.add(dependent.assigned_to)
            for row in await self.allocation_repo.list_for_task(dependent.id):
                users.add(row.user_id)
        return users

    async def dependent_rows(self, task_id: UUID) -> dict[UUID, list[Allocation]]:
        """Current rows of every transitive dependent, keyed by task."""
        rows: dict[UUID, list[Allocation]] = {}
        for dependent in await self._transitive_dependents(task_id):
            rows[dependent.id] = await self.allocation_repo.list_for_task(dependent.id)
        return rows

    async def cascade(
        self,
        context: SchedulingContext,
        task_id: UUID,
        new_end_date: date,
        visited: Optional[set[UUID]] = None,
    ) -> list[TaskPlan]:
        """
        Move dependents of task_id inside an open scheduling context.

        Callers hold the user locks and apply the context afterwards.
        """
        if visited is None:
            visited = {task_id}
        adjacency: Optional[dict[UUID, list[UUID]]] = None
        plans: list[TaskPlan] = []

        async def replan_from(upstream_id: UUID, end_date: date) -> None:
            nonlocal adjacency
            candidates = []
            for dependent in await self.task_repo.list_dependents(upstream_id):
                if dependent.id in visited:
                    continue
                rows = await self.allocation_repo.list_for_task(dependent.id)
                if not rows:
                    continue
                first_date = min(row.allocation_date for row in rows)
                if first_date > end_date:
                    continue
                candidates.append((first_date, dependent, rows))

            candidates.sort(key=lambda item: (item[0], str(item[1].id)))
            for _, dependent, rows in candidates:
                if dependent.id in visited:
                    continue
                visited.add(dependent.id)
                if adjacency is None:
                    adjacency = await self.task_repo.get_child_adjacency()

                plan = await self._move_after(context, dependent, rows, end_date, adjacency, visited)
                plans.append(plan)
                if plan.planned_end_date is not None:
                    await replan_from(dependent.id, plan.planned_end_date)

        await replan_from(task_id, new_end_date)
        return plans

    async def _move_after(
        self,
        context: SchedulingContext,
        dependent: Task,
        rows,
        end_date: date,
        adjacency: dict[UUID, list[UUID]],
        visited: set[UUID],
    ) -> TaskPlan:
        total_minutes = sum(
            parse_time_to_minutes(row.end_time) - parse_time_to_minutes(row.start_time) for row in rows
        )
        user_id = dependent.assigned_to or rows[0].user_id
        start_date = end_date + timedelta(days=1)

        # Downstream rows are moved after this one if they collide
        held = {
            task_id: held_rows
            for task_id, held_rows in (await self.dependent_rows(dependent.id)).items()
            if task_id not in visited
        }
        await context.ledger(user_id, start_date)
        context.release_task(dependent.id)
        context.changes.delete_child_rows(dependent.id, descendant_ids(adjacency, dependent.id))
        context.set_aside(held)
        outcome = await context.allocate(
            dependent.id,
            user_id,
            minutes_to_hours(total_minutes),
            start_date,
            dependent.mode,
        )
        context.restore(held)
        logger.info(
            f"Re-planned dependent {dependent.id} after {end_date}: "
            f"{minutes_to_hours(total_minutes):.2f}h now ends {outcome.last_allocated_date}"
        )
        return outcome.to_plan()
