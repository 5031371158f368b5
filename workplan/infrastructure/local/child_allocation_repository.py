"""
SQLite implementation of Child allocation repository.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update

from workplan.infrastructure.local.database import (
    AllocationORM,
    ChildAllocationORM,
    TaskORM,
    get_session_factory,
)
from workplan.interfaces.child_allocation_repository import IChildAllocationRepository
from workplan.models.child_allocation import ChildAllocation, ChildAllocationEntry
from workplan.models.enums import WorkMode
from workplan.utils.time_utils import now_utc


class SqliteChildAllocationRepository(IChildAllocationRepository):
    """SQLite implementation of child allocation repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ChildAllocationORM) -> ChildAllocation:
        return ChildAllocation(
            id=UUID(orm.id),
            parent_task_id=UUID(orm.parent_task_id),
            child_task_id=UUID(orm.child_task_id),
            allocation_date=orm.allocation_date,
            hours=orm.hours,
            level=orm.level,
            start_time=orm.start_time,
            end_time=orm.end_time,
            created_at=orm.created_at,
        )

    async def list_for_parent(self, parent_task_id: UUID) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ChildAllocationORM)
                .where(ChildAllocationORM.parent_task_id == str(parent_task_id))
                .order_by(ChildAllocationORM.allocation_date, ChildAllocationORM.start_time)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_for_child(self, child_task_id: UUID) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ChildAllocationORM)
                .where(ChildAllocationORM.child_task_id == str(child_task_id))
                .order_by(ChildAllocationORM.allocation_date, ChildAllocationORM.start_time)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_for_user_on_date(
        self, user_id: str, day: date, mode: Optional[WorkMode] = None
    ) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            parents = select(AllocationORM.task_id).where(AllocationORM.user_id == user_id)
            if mode is not None:
                parents = parents.where(AllocationORM.mode == mode.value)
            result = await session.execute(
                select(ChildAllocationORM)
                .where(
                    ChildAllocationORM.allocation_date == day,
                    ChildAllocationORM.parent_task_id.in_(parents.distinct()),
                )
                .order_by(ChildAllocationORM.start_time, ChildAllocationORM.level)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def replace_for_parent(
        self,
        parent_task_id: UUID,
        entries: list[ChildAllocationEntry],
        levels: dict[UUID, int],
    ) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            now = now_utc()
            previous = await session.execute(
                select(ChildAllocationORM.child_task_id).where(
                    ChildAllocationORM.parent_task_id == str(parent_task_id)
                )
            )
            previous_children = {UUID(child_id) for child_id in previous.scalars().all()}

            await session.execute(
                delete(ChildAllocationORM).where(
                    ChildAllocationORM.parent_task_id == str(parent_task_id)
                )
            )
            orms = [
                ChildAllocationORM(
                    id=str(uuid4()),
                    parent_task_id=str(parent_task_id),
                    child_task_id=str(entry.child_task_id),
                    allocation_date=entry.allocation_date,
                    hours=entry.hours,
                    level=levels[entry.child_task_id],
                    start_time=entry.start_time,
                    end_time=entry.end_time,
                    created_at=now,
                )
                for entry in entries
            ]
            session.add_all(orms)

            dates_by_child = defaultdict(list)
            for entry in entries:
                dates_by_child[entry.child_task_id].append(entry.allocation_date)
            for child_id in previous_children | set(dates_by_child):
                dates = dates_by_child.get(child_id)
                await session.execute(
                    update(TaskORM)
                    .where(TaskORM.id == str(child_id))
                    .values(
                        planned_start_date=min(dates) if dates else None,
                        planned_end_date=max(dates) if dates else None,
                        updated_at=now,
                    )
                )

            await session.commit()
            return [self._orm_to_model(orm) for orm in orms]

    async def delete_for_parents(self, parent_task_ids: set[UUID]) -> set[UUID]:
        if not parent_task_ids:
            return set()
        keys = [str(task_id) for task_id in parent_task_ids]
        async with self._session_factory() as session:
            result = await session.execute(
                select(ChildAllocationORM.child_task_id).where(
                    ChildAllocationORM.parent_task_id.in_(keys)
                )
            )
            cleared = {UUID(child_id) for child_id in result.scalars().all()}
            await session.execute(
                delete(ChildAllocationORM).where(ChildAllocationORM.parent_task_id.in_(keys))
            )
            if cleared:
                await session.execute(
                    update(TaskORM)
                    .where(TaskORM.id.in_([str(task_id) for task_id in cleared]))
                    .values(planned_start_date=None, planned_end_date=None, updated_at=now_utc())
                )
            await session.commit()
            return cleared
