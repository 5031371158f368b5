"""
Task dependency validation utilities.

Validates finish-to-start dependencies to prevent self references,
dangling targets and circular chains.
"""

from typing import Optional
from uuid import UUID

from workplan.core.exceptions import BusinessLogicError


class DependencyValidator:
    """Validator for task dependencies."""

    def __init__(self, task_repo):
        """
        Initialize validator with task repository.

        Args:
            task_repo: Task repository for fetching task data
        """
        self.task_repo = task_repo

    async def validate_dependency(self, task_id: UUID, depends_on_id: Optional[UUID]) -> None:
        """
        Validate setting task_id to depend on depends_on_id.

        Raises:
            BusinessLogicError: If the dependency is invalid
        """
        if depends_on_id is None:
            return

        # 1. Check for self-dependency
        if depends_on_id == task_id:
            raise BusinessLogicError("A task cannot depend on itself")

        # 2. Target must exist
        target = await self.task_repo.get(depends_on_id)
        if not target:
            raise BusinessLogicError(f"Dependency target {depends_on_id} not found")

        # 3. Walk the chain upward from the target
        await self._check_circular_dependency(task_id, target)

    async def _check_circular_dependency(self, task_id: UUID, target) -> None:
        visited = {task_id}
        current = target
        while current is not None:
            if current.id in visited:
                raise BusinessLogicError(
                    f"Circular dependency detected: task {current.id} is already in the dependency chain"
                )
            visited.add(current.id)
            if current.depends_on_id is None:
                return
            current = await self.task_repo.get(current.depends_on_id)
