"""
Task and project repository interfaces.

The scheduler only needs a narrow view of tasks: identity, hierarchy,
finish-to-start dependency, assignee and derived planned dates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from workplan.models.enums import WorkMode
from workplan.models.task import Project, ProjectCreate, Task, TaskCreate


class IProjectRepository(ABC):
    """Abstract interface for project persistence."""

    @abstractmethod
    async def create(self, user_id: str, project: ProjectCreate) -> Project:
        """Create a new project."""
        pass

    @abstractmethod
    async def get(self, project_id: UUID) -> Optional[Project]:
        """Get a project by ID."""
        pass


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def create(self, user_id: str, task: TaskCreate, mode: WorkMode = WorkMode.WORK) -> Task:
        """
        Create a new task.

        Args:
            user_id: Owner user ID
            task: Task creation data
            mode: Calendar mode inherited from the task's project

        Returns:
            Created task with generated ID and timestamps
        """
        pass

    @abstractmethod
    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        pass

    @abstractmethod
    async def get_many(self, task_ids: list[UUID]) -> dict[UUID, Task]:
        """Get several tasks keyed by ID. Unknown IDs are omitted."""
        pass

    @abstractmethod
    async def list_dependents(self, task_id: UUID) -> list[Task]:
        """List tasks whose depends_on_id is the given task."""
        pass

    @abstractmethod
    async def get_child_adjacency(self) -> dict[UUID, list[UUID]]:
        """
        Load the whole parent -> children map in one query.

        Returns:
            Mapping of parent task ID to the IDs of its direct subtasks
        """
        pass

    @abstractmethod
    async def set_dependency(self, task_id: UUID, depends_on_id: Optional[UUID]) -> Task:
        """
        Set or clear a task's dependency.

        Raises:
            NotFoundError: If the task does not exist
        """
        pass
