"""
Integration tests for child allocations across the subtask hierarchy.
"""

from datetime import date
from uuid import uuid4

import pytest

from tests.helpers import create_task
from workplan.core.exceptions import NotFoundError, ValidationError
from workplan.models.child_allocation import ChildAllocationEntry
from workplan.models.enums import WorkMode
from workplan.models.task import TaskCreate


def entry(child_id, day: date, start: str = "09:00", end: str = "10:00", hours: float = 1) -> ChildAllocationEntry:
    return ChildAllocationEntry(
        child_task_id=child_id, allocation_date=day, hours=hours, start_time=start, end_time=end
    )


@pytest.fixture
async def tree(wp):
    """parent -> child -> grandchild, plus an unrelated task."""
    parent = await create_task(wp, "alice", "Parent")
    child = await wp.task_repo.create("alice", TaskCreate(title="Child", parent_id=parent.id))
    grandchild = await wp.task_repo.create("alice", TaskCreate(title="Grandchild", parent_id=child.id))
    unrelated = await create_task(wp, "alice", "Unrelated")
    return parent, child, grandchild, unrelated


@pytest.mark.asyncio
class TestChildAllocations:
    async def test_levels_and_planned_dates(self, wp, tree):
        parent, child, grandchild, _ = tree

        saved = await wp.children.save_child_allocations(
            parent.id,
            [
                entry(child.id, date(2025, 3, 3)),
                entry(child.id, date(2025, 3, 5)),
                entry(grandchild.id, date(2025, 3, 4)),
            ],
            actor_id="alice",
        )

        assert {row.child_task_id: row.level for row in saved} == {child.id: 1, grandchild.id: 2}
        stored_child = await wp.task_repo.get(child.id)
        assert (stored_child.planned_start_date, stored_child.planned_end_date) == (
            date(2025, 3, 3),
            date(2025, 3, 5),
        )
        assert [row.allocation_date for row in await wp.children.list_for_child(grandchild.id)] == [
            date(2025, 3, 4)
        ]

    async def test_save_replaces_previous_rows(self, wp, tree):
        parent, child, grandchild, _ = tree
        await wp.children.save_child_allocations(parent.id, [entry(child.id, date(2025, 3, 3))], actor_id="alice")

        await wp.children.save_child_allocations(
            parent.id, [entry(grandchild.id, date(2025, 3, 6))], actor_id="alice"
        )

        rows = await wp.children.list_for_parent(parent.id)
        assert [(row.child_task_id, row.allocation_date) for row in rows] == [(grandchild.id, date(2025, 3, 6))]
        assert (await wp.task_repo.get(child.id)).planned_start_date is None

    async def test_rejects_task_outside_hierarchy(self, wp, tree):
        parent, _, _, unrelated = tree

        with pytest.raises(ValidationError):
            await wp.children.save_child_allocations(
                parent.id, [entry(unrelated.id, date(2025, 3, 3))], actor_id="alice"
            )

    async def test_rejects_parent_itself(self, wp, tree):
        parent = tree[0]

        with pytest.raises(ValidationError):
            await wp.children.save_child_allocations(parent.id, [entry(parent.id, date(2025, 3, 3))], actor_id="alice")

    async def test_entry_validation(self):
        with pytest.raises(ValueError):
            entry(uuid4(), date(2025, 3, 3), start="10:00", end="09:00")
        with pytest.raises(ValueError):
            entry(uuid4(), date(2025, 3, 3), hours=0)

    async def test_delete_is_recursive(self, wp, tree):
        parent, child, grandchild, _ = tree
        await wp.children.save_child_allocations(parent.id, [entry(child.id, date(2025, 3, 3))], actor_id="alice")
        await wp.children.save_child_allocations(child.id, [entry(grandchild.id, date(2025, 3, 4))], actor_id="alice")

        cleared = await wp.children.delete_for_parent(parent.id, actor_id="alice")

        assert cleared == {child.id, grandchild.id}
        assert await wp.children.list_for_parent(parent.id) == []
        assert await wp.children.list_for_parent(child.id) == []
        assert (await wp.task_repo.get(grandchild.id)).planned_end_date is None

    async def test_list_for_user_on_date(self, wp, tree):
        parent, child, grandchild, _ = tree
        await wp.allocations.auto_plan_task(parent.id, "alice", 2, date(2025, 3, 3), actor_id="alice")
        await wp.children.save_child_allocations(
            parent.id,
            [
                entry(grandchild.id, date(2025, 3, 3), "10:00", "11:00"),
                entry(child.id, date(2025, 3, 3)),
                entry(child.id, date(2025, 3, 4)),
            ],
            actor_id="alice",
        )

        rows = await wp.children.list_for_user_on_date("alice", date(2025, 3, 3))

        assert [(row.child_task_id, row.start_time) for row in rows] == [
            (child.id, "09:00"),
            (grandchild.id, "10:00"),
        ]
        assert await wp.children.list_for_user_on_date("alice", date(2025, 3, 3), WorkMode.HOBBY) == []
        assert len(await wp.children.list_for_user_on_date("alice", date(2025, 3, 3), WorkMode.WORK)) == 2
        assert await wp.children.list_for_user_on_date("bob", date(2025, 3, 3)) == []

    async def test_unknown_parent(self, wp):
        with pytest.raises(NotFoundError):
            await wp.children.save_child_allocations(uuid4(), [], actor_id="alice")
