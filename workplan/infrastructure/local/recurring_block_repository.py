"""
SQLite implementation of Recurring commitment/block repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select

from workplan.infrastructure.local.database import (
    RecurringBlockORM,
    RecurringCommitmentORM,
    get_session_factory,
)
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.models.enums import RecurrenceType
from workplan.models.recurring import (
    RecurringBlock,
    RecurringCommitment,
    RecurringCommitmentCreate,
)
from workplan.utils.time_utils import now_utc, parse_time_to_minutes


class SqliteRecurringBlockRepository(IRecurringBlockRepository):
    """SQLite implementation of recurring block repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _commitment_to_model(self, orm: RecurringCommitmentORM) -> RecurringCommitment:
        return RecurringCommitment(
            id=UUID(orm.id),
            user_id=orm.user_id,
            title=orm.title,
            description=orm.description,
            recurrence_type=RecurrenceType(orm.recurrence_type),
            recurrence_interval=orm.recurrence_interval,
            days_of_week=orm.days_of_week,
            start_date=orm.start_date,
            end_date=orm.end_date,
            start_time=orm.start_time,
            end_time=orm.end_time,
            is_active=bool(orm.is_active),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    def _block_to_model(self, orm: RecurringBlockORM, title: Optional[str] = None) -> RecurringBlock:
        return RecurringBlock(
            id=UUID(orm.id),
            commitment_id=UUID(orm.commitment_id),
            user_id=orm.user_id,
            block_date=orm.block_date,
            start_minutes=orm.start_minutes,
            end_minutes=orm.end_minutes,
            title=title,
        )

    def _block_orms(
        self,
        commitment_id: str,
        user_id: str,
        commitment: RecurringCommitmentCreate,
        occurrence_dates: list[date],
    ) -> list[RecurringBlockORM]:
        start_minutes = parse_time_to_minutes(commitment.start_time)
        end_minutes = parse_time_to_minutes(commitment.end_time)
        return [
            RecurringBlockORM(
                id=str(uuid4()),
                commitment_id=commitment_id,
                user_id=user_id,
                block_date=day,
                start_minutes=start_minutes,
                end_minutes=end_minutes,
                hours=(end_minutes - start_minutes) / 60,
            )
            for day in occurrence_dates
        ]

    async def create_commitment(
        self,
        user_id: str,
        commitment: RecurringCommitmentCreate,
        occurrence_dates: list[date],
    ) -> RecurringCommitment:
        async with self._session_factory() as session:
            now = now_utc()
            orm = RecurringCommitmentORM(
                id=str(uuid4()),
                user_id=user_id,
                title=commitment.title,
                description=commitment.description,
                recurrence_type=commitment.recurrence_type.value,
                recurrence_interval=commitment.recurrence_interval,
                days_of_week=commitment.days_of_week,
                start_date=commitment.start_date,
                end_date=commitment.end_date,
                start_time=commitment.start_time,
                end_time=commitment.end_time,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            session.add_all(self._block_orms(orm.id, user_id, commitment, occurrence_dates))
            await session.commit()
            await session.refresh(orm)
            return self._commitment_to_model(orm)

    async def get_commitment(self, commitment_id: UUID) -> Optional[RecurringCommitment]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecurringCommitmentORM).where(RecurringCommitmentORM.id == str(commitment_id))
            )
            orm = result.scalar_one_or_none()
            return self._commitment_to_model(orm) if orm else None

    async def list_commitments(self, user_id: str, include_inactive: bool = False) -> list[RecurringCommitment]:
        async with self._session_factory() as session:
            query = select(RecurringCommitmentORM).where(RecurringCommitmentORM.user_id == user_id)
            if not include_inactive:
                query = query.where(RecurringCommitmentORM.is_active == True)  # noqa: E712
            query = query.order_by(RecurringCommitmentORM.start_date, RecurringCommitmentORM.start_time)
            result = await session.execute(query)
            return [self._commitment_to_model(orm) for orm in result.scalars().all()]

    async def update_commitment(
        self,
        commitment_id: UUID,
        commitment: RecurringCommitmentCreate,
        is_active: bool,
        occurrence_dates: list[date],
    ) -> Optional[RecurringCommitment]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecurringCommitmentORM).where(RecurringCommitmentORM.id == str(commitment_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return None

            orm.title = commitment.title
            orm.description = commitment.description
            orm.recurrence_type = commitment.recurrence_type.value
            orm.recurrence_interval = commitment.recurrence_interval
            orm.days_of_week = commitment.days_of_week
            orm.start_date = commitment.start_date
            orm.end_date = commitment.end_date
            orm.start_time = commitment.start_time
            orm.end_time = commitment.end_time
            orm.is_active = is_active
            orm.updated_at = now_utc()

            await session.execute(
                delete(RecurringBlockORM).where(RecurringBlockORM.commitment_id == orm.id)
            )
            session.add_all(self._block_orms(orm.id, orm.user_id, commitment, occurrence_dates))
            await session.commit()
            await session.refresh(orm)
            return self._commitment_to_model(orm)

    async def delete_commitment(self, commitment_id: UUID) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecurringCommitmentORM).where(RecurringCommitmentORM.id == str(commitment_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return False
            await session.execute(
                delete(RecurringBlockORM).where(RecurringBlockORM.commitment_id == str(commitment_id))
            )
            await session.delete(orm)
            await session.commit()
            return True

    async def list_blocks(self, user_id: str, start_date: date, end_date: date) -> list[RecurringBlock]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecurringBlockORM, RecurringCommitmentORM.title)
                .outerjoin(
                    RecurringCommitmentORM,
                    RecurringCommitmentORM.id == RecurringBlockORM.commitment_id,
                )
                .where(
                    RecurringBlockORM.user_id == user_id,
                    RecurringBlockORM.block_date >= start_date,
                    RecurringBlockORM.block_date <= end_date,
                )
                .order_by(RecurringBlockORM.block_date, RecurringBlockORM.start_minutes)
            )
            return [self._block_to_model(orm, title) for orm, title in result.all()]
