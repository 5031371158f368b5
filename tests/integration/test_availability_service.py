"""
Integration tests for per-date availability.
"""

from datetime import timedelta

import pytest

from tests.helpers import MONDAY, add_block, create_task, make_calendar
from workplan.core.exceptions import ValidationError
from workplan.models.allocation import AllocationEntry
from workplan.models.child_allocation import ChildAllocationEntry
from workplan.models.enums import WorkMode
from workplan.models.task import TaskCreate

TUESDAY = MONDAY + timedelta(days=1)
SATURDAY = MONDAY + timedelta(days=5)


@pytest.fixture
async def planned(wp):
    """3h planned Monday morning plus a 15:00-16:00 block."""
    await wp.calendar_repo.save(make_calendar("alice", lunch_start="12:00"))
    task = await create_task(wp, "alice")
    await wp.allocations.auto_plan_task(task.id, "alice", 3, MONDAY, actor_id="alice")
    await add_block(wp, "alice", MONDAY, "15:00", "16:00")
    return task


@pytest.mark.asyncio
class TestAvailability:
    async def test_counts_rows_and_blocks(self, wp, planned):
        days = await wp.availability.availability("alice", WorkMode.WORK, MONDAY, SATURDAY)

        assert [day.day for day in days] == [MONDAY + timedelta(days=offset) for offset in range(6)]
        monday = days[0]
        assert monday.day_of_week == "Monday"
        assert monday.capacity_hours == 8
        assert monday.allocated_hours == 4
        assert monday.available_hours == 4
        assert monday.start_time == "09:00"
        assert monday.latest_end_time == "12:00"
        assert (monday.remaining_window.start, monday.remaining_window.end) == ("12:00", "18:00")

    async def test_empty_day(self, wp, planned):
        tuesday = (await wp.availability.availability("alice", WorkMode.WORK, TUESDAY, TUESDAY))[0]

        assert tuesday.allocated_hours == 0
        assert tuesday.available_hours == 8
        assert tuesday.latest_end_time is None
        assert (tuesday.remaining_window.start, tuesday.remaining_window.end) == ("09:00", "18:00")

    async def test_zero_capacity_day(self, wp, planned):
        saturday = (await wp.availability.availability("alice", WorkMode.WORK, SATURDAY, SATURDAY))[0]

        assert saturday.capacity_hours == 0
        assert saturday.available_hours == 0
        assert saturday.remaining_window is None

    async def test_exclude_task(self, wp, planned):
        monday = (
            await wp.availability.availability(
                "alice", WorkMode.WORK, MONDAY, MONDAY, exclude_task_id=planned.id
            )
        )[0]

        assert monday.allocated_hours == 1
        assert monday.available_hours == 7
        assert monday.latest_end_time is None

    async def test_available_is_capped_by_window_tail(self, wp):
        await wp.calendar_repo.save(make_calendar("alice", lunch_minutes=0))
        task = await create_task(wp, "alice")
        await wp.allocations.save_manual_allocations(
            task.id,
            "alice",
            [AllocationEntry(allocation_date=MONDAY, start_time="15:00", end_time="16:00")],
            actor_id="alice",
        )

        monday = (await wp.availability.availability("alice", WorkMode.WORK, MONDAY, MONDAY))[0]

        assert monday.allocated_hours == 1
        assert monday.available_hours == 1
        assert monday.remaining_window.start == "16:00"

    async def test_child_allocations_do_not_count(self, wp, planned):
        child = await wp.task_repo.create("alice", TaskCreate(title="Child", parent_id=planned.id))
        await wp.children.save_child_allocations(
            planned.id,
            [ChildAllocationEntry(child_task_id=child.id, allocation_date=TUESDAY, hours=4, start_time="09:00", end_time="13:00")],
            actor_id="alice",
        )

        tuesday = (await wp.availability.availability("alice", WorkMode.WORK, TUESDAY, TUESDAY))[0]

        assert tuesday.allocated_hours == 0

    async def test_hobby_mode_is_separate(self, wp, planned):
        monday = (await wp.availability.availability("alice", WorkMode.HOBBY, MONDAY, MONDAY))[0]

        assert monday.capacity_hours == 0
        assert monday.mode == WorkMode.HOBBY

    async def test_rejects_reversed_range(self, wp):
        with pytest.raises(ValidationError):
            await wp.availability.availability("alice", WorkMode.WORK, TUESDAY, MONDAY)
