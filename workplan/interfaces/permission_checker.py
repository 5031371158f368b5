"""
Permission check interface.

Authorization is owned by the host platform; the scheduler only asks
whether an actor may change a task's plan.
"""

from abc import ABC, abstractmethod

from workplan.models.task import Task


class IPermissionChecker(ABC):
    """Abstract permission check."""

    @abstractmethod
    async def can_plan(self, actor_id: str, task: Task) -> bool:
        """Return True when the actor may change the task's allocations."""
        pass
