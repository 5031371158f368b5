"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that wire repositories and
services to the local SQLite implementations.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from workplan.core.config import get_settings
from workplan.interfaces.allocation_repository import IAllocationRepository
from workplan.interfaces.calendar_repository import ICalendarRepository
from workplan.interfaces.child_allocation_repository import IChildAllocationRepository
from workplan.interfaces.notification_repository import INotificationRepository
from workplan.interfaces.permission_checker import IPermissionChecker
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.interfaces.task_repository import IProjectRepository, ITaskRepository
from workplan.services.allocation_service import AllocationService
from workplan.services.availability_service import AvailabilityService
from workplan.services.child_allocation_service import ChildAllocationService
from workplan.services.dependency_replanner import DependencyReplanner
from workplan.services.push_forward_service import PushForwardService
from workplan.services.recurring_block_service import RecurringBlockService
from workplan.services.scheduling_locks import SchedulingLocks
from workplan.services.work_calendar import WorkCalendarService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from workplan.infrastructure.local.task_repository import SqliteTaskRepository
    return SqliteTaskRepository()


@lru_cache()
def get_project_repository() -> IProjectRepository:
    """Get project repository instance."""
    from workplan.infrastructure.local.project_repository import SqliteProjectRepository
    return SqliteProjectRepository()


@lru_cache()
def get_calendar_repository() -> ICalendarRepository:
    """Get calendar repository instance."""
    from workplan.infrastructure.local.calendar_repository import SqliteCalendarRepository
    return SqliteCalendarRepository()


@lru_cache()
def get_allocation_repository() -> IAllocationRepository:
    """Get allocation repository instance."""
    from workplan.infrastructure.local.allocation_repository import SqliteAllocationRepository
    return SqliteAllocationRepository()


@lru_cache()
def get_child_allocation_repository() -> IChildAllocationRepository:
    """Get child allocation repository instance."""
    from workplan.infrastructure.local.child_allocation_repository import (
        SqliteChildAllocationRepository,
    )
    return SqliteChildAllocationRepository()


@lru_cache()
def get_recurring_block_repository() -> IRecurringBlockRepository:
    """Get recurring block repository instance."""
    from workplan.infrastructure.local.recurring_block_repository import (
        SqliteRecurringBlockRepository,
    )
    return SqliteRecurringBlockRepository()


@lru_cache()
def get_notification_repository() -> INotificationRepository:
    """Get notification repository instance."""
    from workplan.infrastructure.local.notification_repository import SqliteNotificationRepository
    return SqliteNotificationRepository()


@lru_cache()
def get_permission_checker() -> IPermissionChecker:
    """Get permission checker instance."""
    from workplan.infrastructure.local.permission_checker import AllowAllPermissionChecker
    return AllowAllPermissionChecker()


# ===========================================
# Service Dependencies
# ===========================================


@lru_cache()
def get_scheduling_locks() -> SchedulingLocks:
    """Process-wide per-user scheduling locks."""
    return SchedulingLocks()


def get_calendar_service(
    calendar_repo: ICalendarRepository = Depends(get_calendar_repository),
) -> WorkCalendarService:
    return WorkCalendarService(calendar_repo, get_settings())


def get_dependency_replanner(
    task_repo: ITaskRepository = Depends(get_task_repository),
    allocation_repo: IAllocationRepository = Depends(get_allocation_repository),
    calendar_service: WorkCalendarService = Depends(get_calendar_service),
    block_repo: IRecurringBlockRepository = Depends(get_recurring_block_repository),
    locks: SchedulingLocks = Depends(get_scheduling_locks),
    permission_checker: IPermissionChecker = Depends(get_permission_checker),
) -> DependencyReplanner:
    return DependencyReplanner(
        task_repo=task_repo,
        allocation_repo=allocation_repo,
        calendar_service=calendar_service,
        block_repo=block_repo,
        locks=locks,
        permission_checker=permission_checker,
        settings=get_settings(),
    )


def get_allocation_service(
    task_repo: ITaskRepository = Depends(get_task_repository),
    allocation_repo: IAllocationRepository = Depends(get_allocation_repository),
    calendar_service: WorkCalendarService = Depends(get_calendar_service),
    block_repo: IRecurringBlockRepository = Depends(get_recurring_block_repository),
    notification_repo: INotificationRepository = Depends(get_notification_repository),
    permission_checker: IPermissionChecker = Depends(get_permission_checker),
    locks: SchedulingLocks = Depends(get_scheduling_locks),
    replanner: DependencyReplanner = Depends(get_dependency_replanner),
) -> AllocationService:
    return AllocationService(
        task_repo=task_repo,
        allocation_repo=allocation_repo,
        calendar_service=calendar_service,
        block_repo=block_repo,
        notification_repo=notification_repo,
        permission_checker=permission_checker,
        locks=locks,
        replanner=replanner,
        settings=get_settings(),
    )


def get_push_forward_service(
    task_repo: ITaskRepository = Depends(get_task_repository),
    allocation_repo: IAllocationRepository = Depends(get_allocation_repository),
    calendar_service: WorkCalendarService = Depends(get_calendar_service),
    block_repo: IRecurringBlockRepository = Depends(get_recurring_block_repository),
    notification_repo: INotificationRepository = Depends(get_notification_repository),
    permission_checker: IPermissionChecker = Depends(get_permission_checker),
    locks: SchedulingLocks = Depends(get_scheduling_locks),
) -> PushForwardService:
    return PushForwardService(
        task_repo=task_repo,
        allocation_repo=allocation_repo,
        calendar_service=calendar_service,
        block_repo=block_repo,
        notification_repo=notification_repo,
        permission_checker=permission_checker,
        locks=locks,
        settings=get_settings(),
    )


def get_availability_service(
    allocation_repo: IAllocationRepository = Depends(get_allocation_repository),
    calendar_service: WorkCalendarService = Depends(get_calendar_service),
    block_repo: IRecurringBlockRepository = Depends(get_recurring_block_repository),
) -> AvailabilityService:
    return AvailabilityService(allocation_repo, calendar_service, block_repo)


def get_child_allocation_service(
    task_repo: ITaskRepository = Depends(get_task_repository),
    child_repo: IChildAllocationRepository = Depends(get_child_allocation_repository),
    permission_checker: IPermissionChecker = Depends(get_permission_checker),
) -> ChildAllocationService:
    return ChildAllocationService(task_repo, child_repo, permission_checker)


def get_recurring_block_service(
    block_repo: IRecurringBlockRepository = Depends(get_recurring_block_repository),
) -> RecurringBlockService:
    return RecurringBlockService(block_repo, get_settings())


# ===========================================
# Current user
# ===========================================


async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> str:
    """
    Identify the caller.

    Authentication belongs to the host platform, which forwards the user ID
    in the X-User-Id header. Local development falls back to DEV_USER_ID.
    """
    if x_user_id:
        return x_user_id
    return get_settings().DEV_USER_ID


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

CurrentUserId = Annotated[str, Depends(get_current_user_id)]
TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
ProjectRepo = Annotated[IProjectRepository, Depends(get_project_repository)]
AllocationRepo = Annotated[IAllocationRepository, Depends(get_allocation_repository)]
NotificationRepo = Annotated[INotificationRepository, Depends(get_notification_repository)]
PermissionChecker = Annotated[IPermissionChecker, Depends(get_permission_checker)]
CalendarSvc = Annotated[WorkCalendarService, Depends(get_calendar_service)]
AllocationSvc = Annotated[AllocationService, Depends(get_allocation_service)]
ReplannerSvc = Annotated[DependencyReplanner, Depends(get_dependency_replanner)]
PushForwardSvc = Annotated[PushForwardService, Depends(get_push_forward_service)]
AvailabilitySvc = Annotated[AvailabilityService, Depends(get_availability_service)]
ChildAllocationSvc = Annotated[ChildAllocationService, Depends(get_child_allocation_service)]
RecurringBlockSvc = Annotated[RecurringBlockService, Depends(get_recurring_block_service)]
