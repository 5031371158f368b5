"""
Shared fixtures: an in-memory SQLite database and fully wired services.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workplan.core.config import Settings
from workplan.infrastructure.local.allocation_repository import SqliteAllocationRepository
from workplan.infrastructure.local.calendar_repository import SqliteCalendarRepository
from workplan.infrastructure.local.child_allocation_repository import SqliteChildAllocationRepository
from workplan.infrastructure.local.database import Base
from workplan.infrastructure.local.notification_repository import SqliteNotificationRepository
from workplan.infrastructure.local.permission_checker import AllowAllPermissionChecker
from workplan.infrastructure.local.project_repository import SqliteProjectRepository
from workplan.infrastructure.local.recurring_block_repository import SqliteRecurringBlockRepository
from workplan.infrastructure.local.task_repository import SqliteTaskRepository
from workplan.services.allocation_service import AllocationService
from workplan.services.availability_service import AvailabilityService
from workplan.services.child_allocation_service import ChildAllocationService
from workplan.services.dependency_replanner import DependencyReplanner
from workplan.services.push_forward_service import PushForwardService
from workplan.services.recurring_block_service import RecurringBlockService
from workplan.services.scheduling_locks import SchedulingLocks
from workplan.services.work_calendar import WorkCalendarService


@pytest.fixture
def test_user_id():
    return "test_user"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def settings():
    return Settings(SCHEDULING_HORIZON_DAYS=365, RECURRING_DEFAULT_HORIZON_DAYS=365)


@pytest.fixture
def wp(session_factory, settings):
    """Repositories and services sharing one in-memory database."""
    task_repo = SqliteTaskRepository(session_factory=session_factory)
    project_repo = SqliteProjectRepository(session_factory=session_factory)
    calendar_repo = SqliteCalendarRepository(session_factory=session_factory)
    allocation_repo = SqliteAllocationRepository(session_factory=session_factory)
    child_repo = SqliteChildAllocationRepository(session_factory=session_factory)
    block_repo = SqliteRecurringBlockRepository(session_factory=session_factory)
    notification_repo = SqliteNotificationRepository(session_factory=session_factory)
    permission_checker = AllowAllPermissionChecker()
    locks = SchedulingLocks()
    calendar_service = WorkCalendarService(calendar_repo, settings)
    replanner = DependencyReplanner(
        task_repo, allocation_repo, calendar_service, block_repo, locks, permission_checker, settings
    )
    return SimpleNamespace(
        task_repo=task_repo,
        project_repo=project_repo,
        calendar_repo=calendar_repo,
        allocation_repo=allocation_repo,
        child_repo=child_repo,
        block_repo=block_repo,
        notification_repo=notification_repo,
        calendar_service=calendar_service,
        replanner=replanner,
        allocations=AllocationService(
            task_repo,
            allocation_repo,
            calendar_service,
            block_repo,
            notification_repo,
            permission_checker,
            locks,
            replanner,
            settings,
        ),
        push_forward=PushForwardService(
            task_repo,
            allocation_repo,
            calendar_service,
            block_repo,
            notification_repo,
            permission_checker,
            locks,
            settings,
        ),
        availability=AvailabilityService(allocation_repo, calendar_service, block_repo),
        children=ChildAllocationService(task_repo, child_repo, permission_checker),
        recurring=RecurringBlockService(block_repo, settings),
    )
