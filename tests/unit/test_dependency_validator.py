"""
Tests for task dependency validation.

Tests self references, missing targets and circular chain detection.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import pytest

from workplan.core.exceptions import BusinessLogicError
from workplan.models.task import Task
from workplan.utils.dependency_validator import DependencyValidator


def create_test_task(title: str, depends_on_id: Optional[UUID] = None) -> Task:
    """Helper function to create a test task with required fields."""
    now = datetime.now(timezone.utc)
    return Task(
        id=uuid4(),
        user_id="test-user",
        title=title,
        depends_on_id=depends_on_id,
        created_at=now,
        updated_at=now,
    )


class MockTaskRepository:
    """Mock task repository for testing."""

    def __init__(self):
        self.tasks = {}

    async def get(self, task_id: UUID):
        return self.tasks.get(task_id)

    def add_task(self, task: Task):
        self.tasks[task.id] = task


@pytest.fixture
def mock_repo():
    return MockTaskRepository()


@pytest.fixture
def validator(mock_repo):
    return DependencyValidator(mock_repo)


@pytest.mark.asyncio
class TestDependencyValidator:
    """Test cases for dependency validation."""

    async def test_clearing_dependency_is_valid(self, validator):
        await validator.validate_dependency(uuid4(), None)

    async def test_valid_dependency(self, validator, mock_repo):
        upstream = create_test_task("Design")
        downstream = create_test_task("Build")
        mock_repo.add_task(upstream)
        mock_repo.add_task(downstream)

        await validator.validate_dependency(downstream.id, upstream.id)

    async def test_self_dependency(self, validator, mock_repo):
        task = create_test_task("Loop")
        mock_repo.add_task(task)

        with pytest.raises(BusinessLogicError, match="cannot depend on itself"):
            await validator.validate_dependency(task.id, task.id)

    async def test_missing_target(self, validator, mock_repo):
        task = create_test_task("Orphan")
        mock_repo.add_task(task)

        with pytest.raises(BusinessLogicError, match="not found"):
            await validator.validate_dependency(task.id, uuid4())

    async def test_direct_cycle(self, validator, mock_repo):
        """A -> B while B -> A."""
        task_a = create_test_task("A")
        task_b = create_test_task("B", depends_on_id=task_a.id)
        mock_repo.add_task(task_a)
        mock_repo.add_task(task_b)

        with pytest.raises(BusinessLogicError, match="Circular dependency"):
            await validator.validate_dependency(task_a.id, task_b.id)

    async def test_indirect_cycle(self, validator, mock_repo):
        """A -> C while C -> B -> A."""
        task_a = create_test_task("A")
        task_b = create_test_task("B", depends_on_id=task_a.id)
        task_c = create_test_task("C", depends_on_id=task_b.id)
        for task in (task_a, task_b, task_c):
            mock_repo.add_task(task)

        with pytest.raises(BusinessLogicError, match="Circular dependency"):
            await validator.validate_dependency(task_a.id, task_c.id)

    async def test_long_chain_without_cycle(self, validator, mock_repo):
        previous = None
        for index in range(20):
            task = create_test_task(f"T{index}", depends_on_id=previous.id if previous else None)
            mock_repo.add_task(task)
            previous = task
        new_task = create_test_task("New")
        mock_repo.add_task(new_task)

        await validator.validate_dependency(new_task.id, previous.id)
