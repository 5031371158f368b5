"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from workplan.core.exceptions import NotFoundError
from workplan.infrastructure.local.database import TaskORM, get_session_factory
from workplan.interfaces.task_repository import ITaskRepository
from workplan.models.enums import WorkMode
from workplan.models.task import Task, TaskCreate
from workplan.utils.time_utils import now_utc


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TaskORM) -> Task:
        """Convert ORM object to Pydantic model."""
        return Task(
            id=UUID(orm.id),
            user_id=orm.user_id,
            project_id=UUID(orm.project_id) if orm.project_id else None,
            title=orm.title,
            parent_id=UUID(orm.parent_id) if orm.parent_id else None,
            depends_on_id=UUID(orm.depends_on_id) if orm.depends_on_id else None,
            assigned_to=orm.assigned_to,
            mode=WorkMode(orm.mode),
            planned_start_date=orm.planned_start_date,
            planned_end_date=orm.planned_end_date,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, user_id: str, task: TaskCreate, mode: WorkMode = WorkMode.WORK) -> Task:
        """Create a new task."""
        async with self._session_factory() as session:
            now = now_utc()
            orm = TaskORM(
                id=str(uuid4()),
                user_id=user_id,
                project_id=str(task.project_id) if task.project_id else None,
                title=task.title,
                parent_id=str(task.parent_id) if task.parent_id else None,
                depends_on_id=str(task.depends_on_id) if task.depends_on_id else None,
                assigned_to=task.assigned_to,
                mode=mode.value,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, task_id: UUID) -> Optional[Task]:
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_many(self, task_ids: list[UUID]) -> dict[UUID, Task]:
        if not task_ids:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(TaskORM.id.in_([str(task_id) for task_id in task_ids]))
            )
            tasks = [self._orm_to_model(orm) for orm in result.scalars().all()]
            return {task.id: task for task in tasks}

    async def list_dependents(self, task_id: UUID) -> list[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM)
                .where(TaskORM.depends_on_id == str(task_id))
                .order_by(TaskORM.created_at, TaskORM.id)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def get_child_adjacency(self) -> dict[UUID, list[UUID]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM.id, TaskORM.parent_id).where(TaskORM.parent_id.is_not(None))
            )
            adjacency: dict[UUID, list[UUID]] = defaultdict(list)
            for task_id, parent_id in result.all():
                adjacency[UUID(parent_id)].append(UUID(task_id))
            return dict(adjacency)

    async def set_dependency(self, task_id: UUID, depends_on_id: Optional[UUID]) -> Task:
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Task {task_id} not found")
            orm.depends_on_id = str(depends_on_id) if depends_on_id else None
            orm.updated_at = now_utc()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
