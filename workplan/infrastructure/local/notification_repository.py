"""
SQLite implementation of notification repository.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import desc, func, select

from workplan.infrastructure.local.database import NotificationORM, get_session_factory
from workplan.interfaces.notification_repository import INotificationRepository
from workplan.models.notification import Notification, NotificationCreate, NotificationType
from workplan.utils.time_utils import now_utc


class SqliteNotificationRepository(INotificationRepository):
    """SQLite implementation of notification repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: NotificationORM) -> Notification:
        return Notification(
            id=UUID(orm.id),
            user_id=orm.user_id,
            type=NotificationType(orm.type),
            title=orm.title,
            message=orm.message,
            task_id=UUID(orm.task_id) if orm.task_id else None,
            project_id=UUID(orm.project_id) if orm.project_id else None,
            is_read=bool(orm.is_read),
            created_at=orm.created_at,
        )

    def _create_orm(self, notification: NotificationCreate, now) -> NotificationORM:
        return NotificationORM(
            id=str(uuid4()),
            user_id=notification.user_id,
            type=notification.type.value,
            title=notification.title,
            message=notification.message,
            task_id=str(notification.task_id) if notification.task_id else None,
            project_id=str(notification.project_id) if notification.project_id else None,
            is_read=False,
            created_at=now,
        )

    async def create(self, notification: NotificationCreate) -> Notification:
        async with self._session_factory() as session:
            orm = self._create_orm(notification, now_utc())
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def create_bulk(self, notifications: list[NotificationCreate]) -> list[Notification]:
        async with self._session_factory() as session:
            now = now_utc()
            orms = [self._create_orm(notification, now) for notification in notifications]
            session.add_all(orms)
            await session.commit()
            for orm in orms:
                await session.refresh(orm)
            return [self._orm_to_model(orm) for orm in orms]

    async def list(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        async with self._session_factory() as session:
            query = select(NotificationORM).where(NotificationORM.user_id == user_id)

            if unread_only:
                query = query.where(NotificationORM.is_read == False)  # noqa: E712

            query = query.order_by(desc(NotificationORM.created_at))
            query = query.offset(offset).limit(limit)

            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def get_unread_count(self, user_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(NotificationORM.id)).where(
                    NotificationORM.user_id == user_id,
                    NotificationORM.is_read == False,  # noqa: E712
                )
            )
            return result.scalar() or 0
