"""
Child allocation repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from workplan.models.child_allocation import ChildAllocation, ChildAllocationEntry
from workplan.models.enums import WorkMode


class IChildAllocationRepository(ABC):
    """Abstract interface for child allocation persistence."""

    @abstractmethod
    async def list_for_parent(self, parent_task_id: UUID) -> list[ChildAllocation]:
        """List rows handed out by a parent task."""
        pass

    @abstractmethod
    async def list_for_child(self, child_task_id: UUID) -> list[ChildAllocation]:
        """List rows received by a descendant task."""
        pass

    @abstractmethod
    async def list_for_user_on_date(
        self, user_id: str, day: date, mode: Optional[WorkMode] = None
    ) -> list[ChildAllocation]:
        """List rows on one date under parents the user holds allocations for."""
        pass

    @abstractmethod
    async def replace_for_parent(
        self,
        parent_task_id: UUID,
        entries: list[ChildAllocationEntry],
        levels: dict[UUID, int],
    ) -> list[ChildAllocation]:
        """
        Replace a parent's rows and refresh the children's planned dates.

        Args:
            parent_task_id: Parent task
            entries: New rows
            levels: Depth of each child below the parent
        """
        pass

    @abstractmethod
    async def delete_for_parents(self, parent_task_ids: set[UUID]) -> set[UUID]:
        """
        Delete the rows of several parents in one transaction.

        Returns:
            IDs of the child tasks whose planned dates were cleared
        """
        pass
