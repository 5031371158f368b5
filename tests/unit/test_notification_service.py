"""
Unit tests for notification_service.

Uses a mock repository to verify which notifications scheduling events create.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from workplan.models.allocation import TaskPlan
from workplan.models.notification import NotificationType
from workplan.models.task import Task
from workplan.services import notification_service as notify


@pytest.fixture
def mock_repo():
    """Mock notification repository."""
    repo = AsyncMock()
    repo.create = AsyncMock()
    repo.create_bulk = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def task():
    now = datetime.now(timezone.utc)
    return Task(
        id=uuid4(),
        user_id="owner",
        title="Write report",
        project_id=uuid4(),
        created_at=now,
        updated_at=now,
    )


def _plan(task_id):
    return TaskPlan(
        task_id=task_id,
        planned_start_date=date(2025, 3, 3),
        planned_end_date=date(2025, 3, 4),
        allocated_hours=10,
    )


class TestNotifyTaskAllocated:
    @pytest.mark.asyncio
    async def test_notifies_planned_user(self, mock_repo, task):
        await notify.notify_task_allocated(mock_repo, task, "user_B", "user_A", _plan(task.id))

        mock_repo.create.assert_called_once()
        notification = mock_repo.create.call_args[0][0]
        assert notification.user_id == "user_B"
        assert notification.type == NotificationType.TASK_ALLOCATED
        assert notification.task_id == task.id
        assert notification.project_id == task.project_id
        assert "Write report" in notification.message
        assert "2025-03-03 - 2025-03-04" in notification.message
        assert "user_A" in notification.message

    @pytest.mark.asyncio
    async def test_self_planning_is_silent(self, mock_repo, task):
        await notify.notify_task_allocated(mock_repo, task, "user_A", "user_A", _plan(task.id))

        mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_repository_errors_are_swallowed(self, mock_repo, task):
        mock_repo.create = AsyncMock(side_effect=RuntimeError("db down"))

        await notify.notify_task_allocated(mock_repo, task, "user_B", "user_A", _plan(task.id))


class TestNotifyAllocationsRemoved:
    @pytest.mark.asyncio
    async def test_notifies_everyone_but_actor(self, mock_repo, task):
        await notify.notify_allocations_removed(mock_repo, task, {"user_A", "user_B", "user_C"}, "user_A")

        mock_repo.create_bulk.assert_called_once()
        notifications = mock_repo.create_bulk.call_args[0][0]
        assert [n.user_id for n in notifications] == ["user_B", "user_C"]
        assert all(n.type == NotificationType.ALLOCATION_REMOVED for n in notifications)

    @pytest.mark.asyncio
    async def test_only_actor_skips_repository(self, mock_repo, task):
        await notify.notify_allocations_removed(mock_repo, task, {"user_A"}, "user_A")

        mock_repo.create_bulk.assert_not_called()
