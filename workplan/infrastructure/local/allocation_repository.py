"""
SQLite implementation of Allocation repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select, update

from workplan.core.logger import setup_logger
from workplan.infrastructure.local.database import (
    AllocationORM,
    ChildAllocationORM,
    TaskORM,
    get_session_factory,
)
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.models.allocation import Allocation, AllocationChangeSet
from workplan.models.enums import WorkMode
from workplan.utils.time_utils import now_utc

logger = setup_logger(__name__)


class SqliteAllocationRepository(IAllocationRepository):
    """SQLite implementation of allocation repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: AllocationORM) -> Allocation:
        return Allocation(
            id=UUID(orm.id),
            task_id=UUID(orm.task_id),
            user_id=orm.user_id,
            allocation_date=orm.allocation_date,
            hours=orm.hours,
            start_time=orm.start_time,
            end_time=orm.end_time,
            is_manual=bool(orm.is_manual),
            mode=WorkMode(orm.mode),
            created_at=orm.created_at,
        )

    async def list_for_task(self, task_id: UUID) -> list[Allocation]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AllocationORM)
                .where(AllocationORM.task_id == str(task_id))
                .order_by(AllocationORM.allocation_date, AllocationORM.start_time)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_for_user(
        self,
        user_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        mode: Optional[WorkMode] = None,
    ) -> list[Allocation]:
        async with self._session_factory() as session:
            query = select(AllocationORM).where(
                AllocationORM.user_id == user_id,
                AllocationORM.allocation_date >= start_date,
            )
            if end_date is not None:
                query = query.where(AllocationORM.allocation_date <= end_date)
            if mode is not None:
                query = query.where(AllocationORM.mode == mode.value)
            query = query.order_by(
                AllocationORM.allocation_date,
                AllocationORM.start_time,
                AllocationORM.task_id,
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def apply_changes(self, changes: AllocationChangeSet) -> None:
        if changes.is_empty():
            return
        async with self._session_factory() as session:
            for task_id, from_date in changes.deletions.items():
                statement = delete(AllocationORM).where(AllocationORM.task_id == str(task_id))
                if from_date is not None:
                    statement = statement.where(AllocationORM.allocation_date >= from_date)
                await session.execute(statement)

            for task_id, user_id, day in changes.day_deletions:
                await session.execute(
                    delete(AllocationORM).where(
                        AllocationORM.task_id == str(task_id),
                        AllocationORM.user_id == user_id,
                        AllocationORM.allocation_date == day,
                    )
                )

            for child_deletion in changes.child_deletions:
                parent_ids = {str(child_deletion.task_id)} | {
                    str(task_id) for task_id in child_deletion.subtree_ids
                }
                statement = delete(ChildAllocationORM).where(
                    ChildAllocationORM.parent_task_id.in_(parent_ids)
                )
                if child_deletion.from_date is not None:
                    statement = statement.where(
                        ChildAllocationORM.allocation_date >= child_deletion.from_date
                    )
                if child_deletion.on_date is not None:
                    statement = statement.where(
                        ChildAllocationORM.allocation_date == child_deletion.on_date
                    )
                await session.execute(statement)

            now = now_utc()
            session.add_all(
                [
                    AllocationORM(
                        id=str(uuid4()),
                        task_id=str(row.task_id),
                        user_id=row.user_id,
                        allocation_date=row.allocation_date,
                        hours=row.hours,
                        start_time=row.start_time,
                        end_time=row.end_time,
                        is_manual=row.is_manual,
                        mode=row.mode.value,
                        created_at=now,
                    )
                    for row in changes.inserts
                ]
            )
            await session.flush()

            for task_id, user_id in changes.assignments.items():
                await session.execute(
                    update(TaskORM)
                    .where(TaskORM.id == str(task_id))
                    .values(assigned_to=user_id, updated_at=now)
                )

            await self._recompute_planned_dates(session, changes.touched_tasks, now)

            if changes.cleared_tasks:
                await session.execute(
                    update(TaskORM)
                    .where(TaskORM.id.in_([str(task_id) for task_id in changes.cleared_tasks]))
                    .values(planned_start_date=None, planned_end_date=None, updated_at=now)
                )

            await session.commit()
            logger.info(
                f"Applied allocation changes: {len(changes.inserts)} rows inserted, "
                f"{len(changes.touched_tasks)} tasks touched"
            )

    async def _recompute_planned_dates(self, session, task_ids: set[UUID], now) -> None:
        """Set planned start/end to MIN/MAX of each task's remaining rows."""
        if not task_ids:
            return
        keys = [str(task_id) for task_id in task_ids]
        result = await session.execute(
            select(
                AllocationORM.task_id,
                func.min(AllocationORM.allocation_date),
                func.max(AllocationORM.allocation_date),
            )
            .where(AllocationORM.task_id.in_(keys))
            .group_by(AllocationORM.task_id)
        )
        spans = {task_id: (first, last) for task_id, first, last in result.all()}
        for key in keys:
            first, last = spans.get(key, (None, None))
            await session.execute(
                update(TaskORM)
                .where(TaskORM.id == key)
                .values(planned_start_date=first, planned_end_date=last, updated_at=now)
            )
