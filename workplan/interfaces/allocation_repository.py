"""
Allocation repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from workplan.models.allocation import Allocation, AllocationChangeSet
from workplan.models.enums import WorkMode


class IAllocationRepository(ABC):
    """Abstract interface for allocation persistence."""

    @abstractmethod
    async def list_for_task(self, task_id: UUID) -> list[Allocation]:
        """List a task's rows ordered by date and start time."""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        mode: Optional[WorkMode] = None,
    ) -> list[Allocation]:
        """
        List a user's rows in a date range.

        Args:
            user_id: Calendar owner
            start_date: First date (inclusive)
            end_date: Last date (inclusive), open-ended when None
            mode: Restrict to one calendar mode

        Returns:
            Rows ordered by date, start time and task ID
        """
        pass

    @abstractmethod
    async def apply_changes(self, changes: AllocationChangeSet) -> None:
        """
        Apply a staged change set in a single transaction.

        Deletes run before inserts. Planned dates of every touched task are
        recomputed from its remaining rows before the commit.
        """
        pass
