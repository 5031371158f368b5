"""
Local permission checker.

Single-tenant development setup: every actor may plan every task.
"""

from workplan.interfaces.permission_checker import IPermissionChecker
from workplan.models.task import Task


class AllowAllPermissionChecker(IPermissionChecker):
    """Permission checker that grants every request."""

    async def can_plan(self, actor_id: str, task: Task) -> bool:
        return True
