"""
Child allocation service.

Lets a parent task hand slices of its planned time to descendants at any
depth. Child allocations never touch calendar capacity.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from workplan.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from workplan.core.logger import setup_logger
from workplan.interfaces.child_allocation_repository import IChildAllocationRepository
from workplan.interfaces.permission_checker import IPermissionChecker
from workplan.interfaces.task_repository import ITaskRepository
from workplan.models.child_allocation import ChildAllocation, ChildAllocationEntry
from workplan.models.enums import WorkMode
from workplan.models.task import Task
from workplan.utils.task_graph import descendant_ids, descendant_levels

logger = setup_logger(__name__)


class ChildAllocationService:
    """Saves, lists and removes child allocations."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        child_repo: IChildAllocationRepository,
        permission_checker: IPermissionChecker,
    ):
        self.task_repo = task_repo
        self.child_repo = child_repo
        self.permission_checker = permission_checker

    async def _get_plannable_task(self, task_id: UUID, actor_id: str) -> Task:
        task = await self.task_repo.get(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        if not await self.permission_checker.can_plan(actor_id, task):
            raise ForbiddenError(f"Not allowed to plan task {task_id}")
        return task

    async def save_child_allocations(
        self,
        parent_task_id: UUID,
        entries: list[ChildAllocationEntry],
        actor_id: str,
    ) -> list[ChildAllocation]:
        """
        Replace every child allocation of a parent.

        Raises:
            NotFoundError: If the parent does not exist
            ValidationError: If an entry targets a task outside the parent's hierarchy
        """
        await self._get_plannable_task(parent_task_id, actor_id)
        levels = descendant_levels(await self.task_repo.get_child_adjacency(), parent_task_id)

        for entry in entries:
            if entry.child_task_id not in levels:
                raise ValidationError(
                    f"Task {entry.child_task_id} is not a descendant of {parent_task_id}",
                    {"child_task_id": str(entry.child_task_id)},
                )

        saved = await self.child_repo.replace_for_parent(parent_task_id, entries, levels)
        logger.info(f"Saved {len(saved)} child allocations for task {parent_task_id}")
        return saved

    async def list_for_parent(self, parent_task_id: UUID) -> list[ChildAllocation]:
        return await self.child_repo.list_for_parent(parent_task_id)

    async def list_for_child(self, child_task_id: UUID) -> list[ChildAllocation]:
        return await self.child_repo.list_for_child(child_task_id)

    async def list_for_user_on_date(
        self, user_id: str, day: date, mode: Optional[WorkMode] = None
    ) -> list[ChildAllocation]:
        return await self.child_repo.list_for_user_on_date(user_id, day, mode)

    async def delete_for_parent(self, parent_task_id: UUID, actor_id: str) -> set[UUID]:
        """
        Delete a parent's child allocations and those of every descendant.

        Returns:
            Child tasks whose planned dates were cleared
        """
        await self._get_plannable_task(parent_task_id, actor_id)
        subtree = descendant_ids(await self.task_repo.get_child_adjacency(), parent_task_id)
        cleared = await self.child_repo.delete_for_parents({parent_task_id} | subtree)
        logger.info(f"Deleted child allocations below task {parent_task_id}; {len(cleared)} children cleared")
        return cleared
