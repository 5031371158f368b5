"""
SQLite implementation of Project repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from workplan.infrastructure.local.database import ProjectORM, get_session_factory
from workplan.interfaces.task_repository import IProjectRepository
from workplan.models.enums import WorkMode
from workplan.models.task import Project, ProjectCreate
from workplan.utils.time_utils import now_utc


class SqliteProjectRepository(IProjectRepository):
    """SQLite implementation of project repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ProjectORM) -> Project:
        return Project(
            id=UUID(orm.id),
            user_id=orm.user_id,
            name=orm.name,
            mode=WorkMode(orm.mode),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, user_id: str, project: ProjectCreate) -> Project:
        async with self._session_factory() as session:
            now = now_utc()
            orm = ProjectORM(
                id=str(uuid4()),
                user_id=user_id,
                name=project.name,
                mode=project.mode.value,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, project_id: UUID) -> Optional[Project]:
        async with self._session_factory() as session:
            result = await session.execute(select(ProjectORM).where(ProjectORM.id == str(project_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None
