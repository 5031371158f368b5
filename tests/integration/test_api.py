"""
API tests over ASGITransport with repositories bound to the test database.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from workplan.api import deps
from workplan.infrastructure.local.allocation_repository import SqliteAllocationRepository
from workplan.infrastructure.local.calendar_repository import SqliteCalendarRepository
from workplan.infrastructure.local.child_allocation_repository import SqliteChildAllocationRepository
from workplan.infrastructure.local.notification_repository import SqliteNotificationRepository
from workplan.infrastructure.local.project_repository import SqliteProjectRepository
from workplan.infrastructure.local.recurring_block_repository import SqliteRecurringBlockRepository
from workplan.infrastructure.local.task_repository import SqliteTaskRepository
from workplan.services.scheduling_locks import SchedulingLocks

WEEKDAYS_8H = [{"capacity_hours": 8 if index < 5 else 0, "start": "09:00"} for index in range(7)]



def _provide(value):
    return lambda: value


@pytest.fixture
async def client(session_factory):
    repositories = {
        deps.get_task_repository: SqliteTaskRepository(session_factory=session_factory),
        deps.get_project_repository: SqliteProjectRepository(session_factory=session_factory),
        deps.get_calendar_repository: SqliteCalendarRepository(session_factory=session_factory),
        deps.get_allocation_repository: SqliteAllocationRepository(session_factory=session_factory),
        deps.get_child_allocation_repository: SqliteChildAllocationRepository(session_factory=session_factory),
        deps.get_recurring_block_repository: SqliteRecurringBlockRepository(session_factory=session_factory),
        deps.get_notification_repository: SqliteNotificationRepository(session_factory=session_factory),
    }
    locks = SchedulingLocks()
    for getter, repository in repositories.items():
        app.dependency_overrides[getter] = _provide(repository)
    app.dependency_overrides[deps.get_scheduling_locks] = _provide(locks)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers={"X-User-Id": "alice"}) as ac:
        yield ac
    app.dependency_overrides.clear()


async def _setup_calendar(client, lunch_start="13:00"):
    response = await client.put(
        "/api/calendar",
        json={"work_days": WEEKDAYS_8H, "lunch_start": lunch_start, "lunch_duration_minutes": 60},
    )
    assert response.status_code == 200


async def _create_task(client, title="Task", **fields):
    response = await client.post("/api/tasks", json={"title": title, **fields})
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_calendar_defaults_and_update(client):
    response = await client.get("/api/calendar")
    assert response.status_code == 200
    assert response.json()["user_id"] == "alice"
    assert len(response.json()["work_days"]) == 7

    await _setup_calendar(client, lunch_start="12:30")

    body = (await client.get("/api/calendar")).json()
    assert body["lunch_start"] == "12:30"

    response = await client.put("/api/calendar", json={"work_days": WEEKDAYS_8H[:3]})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_auto_plan_and_read_back(client):
    await _setup_calendar(client)
    task = await _create_task(client)

    response = await client.post(
        f"/api/allocations/tasks/{task['id']}/auto-plan",
        json={"user_id": "alice", "hours": 10, "from_date": "2025-03-03"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["plan"]["planned_end_date"] == "2025-03-04"
    assert body["bound_exceeded"] is False
    rows = (await client.get(f"/api/allocations/tasks/{task['id']}")).json()
    assert [(row["allocation_date"], row["start_time"], row["end_time"]) for row in rows] == [
        ("2025-03-03", "09:00", "13:00"),
        ("2025-03-03", "14:00", "18:00"),
        ("2025-03-04", "09:00", "11:00"),
    ]
    stored = (await client.get(f"/api/tasks/{task['id']}")).json()
    assert stored["planned_start_date"] == "2025-03-03"
    day_rows = (await client.get("/api/allocations/users/alice/dates/2025-03-04", params={"mode": "work"})).json()
    assert len(day_rows) == 1


@pytest.mark.asyncio
async def test_auto_plan_errors(client):
    task = await _create_task(client)

    response = await client.post(
        f"/api/allocations/tasks/{task['id']}/auto-plan",
        json={"user_id": "alice", "hours": 0, "from_date": "2025-03-03"},
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/allocations/tasks/00000000-0000-0000-0000-000000000000/auto-plan",
        json={"user_id": "alice", "hours": 2, "from_date": "2025-03-03"},
    )
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]["message"]


@pytest.mark.asyncio
async def test_manual_over_capacity_is_conflict(client):
    await _setup_calendar(client)
    task = await _create_task(client)

    response = await client.put(
        f"/api/allocations/tasks/{task['id']}",
        json={
            "user_id": "alice",
            "entries": [{"allocation_date": "2025-03-03", "start_time": "06:00", "end_time": "18:00"}],
        },
    )

    assert response.status_code == 409
    assert response.json()["detail"]["details"]["requested_hours"] == 11


@pytest.mark.asyncio
async def test_manual_then_remove(client):
    await _setup_calendar(client)
    task = await _create_task(client)
    response = await client.put(
        f"/api/allocations/tasks/{task['id']}",
        json={
            "user_id": "alice",
            "entries": [
                {"allocation_date": "2025-03-03", "start_time": "09:00", "end_time": "11:00"},
                {"allocation_date": "2025-03-04", "start_time": "09:00", "end_time": "11:00"},
            ],
        },
    )
    assert response.status_code == 200

    response = await client.delete(f"/api/allocations/tasks/{task['id']}/dates/2025-03-04")
    assert response.status_code == 204
    rows = (await client.get(f"/api/allocations/tasks/{task['id']}")).json()
    assert {row["allocation_date"] for row in rows} == {"2025-03-03"}

    response = await client.delete(f"/api/allocations/tasks/{task['id']}")
    assert response.status_code == 204
    assert (await client.get(f"/api/allocations/tasks/{task['id']}")).json() == []


@pytest.mark.asyncio
async def test_dependency_rules_and_replan(client):
    await _setup_calendar(client)
    upstream = await _create_task(client, "Upstream")
    downstream = await _create_task(client, "Downstream", depends_on_id=upstream["id"])

    response = await client.patch(
        f"/api/tasks/{upstream['id']}/dependency", json={"depends_on_id": downstream["id"]}
    )
    assert response.status_code == 400
    response = await client.patch(
        f"/api/tasks/{upstream['id']}/dependency", json={"depends_on_id": upstream["id"]}
    )
    assert response.status_code == 400

    await client.post(
        f"/api/allocations/tasks/{downstream['id']}/auto-plan",
        json={"user_id": "alice", "hours": 2, "from_date": "2025-03-05"},
    )
    response = await client.post(
        f"/api/allocations/tasks/{upstream['id']}/replan-dependents", json={"new_end_date": "2025-03-05"}
    )

    assert response.status_code == 200
    replanned = response.json()["replanned"]
    assert [plan["task_id"] for plan in replanned] == [downstream["id"]]
    assert replanned[0]["planned_start_date"] == "2025-03-06"

    response = await client.post(f"/api/allocations/tasks/{upstream['id']}/replan-dependents", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_push_forward(client):
    await _setup_calendar(client)
    existing = await _create_task(client, "Existing")
    urgent = await _create_task(client, "Urgent")
    await client.post(
        f"/api/allocations/tasks/{existing['id']}/auto-plan",
        json={"user_id": "alice", "hours": 8, "from_date": "2025-03-03"},
    )

    response = await client.post(
        "/api/allocations/push-forward",
        json={"user_id": "alice", "from_date": "2025-03-03", "new_task_id": urgent["id"], "new_task_hours": 4},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["plan"]["planned_end_date"] == "2025-03-03"
    assert [plan["task_id"] for plan in body["replanned"]] == [existing["id"]]


@pytest.mark.asyncio
async def test_availability(client):
    await _setup_calendar(client)

    response = await client.get(
        "/api/allocations/availability/alice",
        params={"start_date": "2025-03-03", "end_date": "2025-03-09"},
    )
    assert response.status_code == 200
    days = response.json()
    assert len(days) == 7
    assert days[0]["available_hours"] == 8
    assert days[5]["available_hours"] == 0

    response = await client.get(
        "/api/allocations/availability/alice",
        params={"start_date": "2025-03-09", "end_date": "2025-03-03"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_child_allocations(client):
    parent = await _create_task(client, "Parent")
    child = await _create_task(client, "Child", parent_id=parent["id"])
    other = await _create_task(client, "Other")
    entry = {"allocation_date": "2025-03-03", "hours": 1, "start_time": "09:00", "end_time": "10:00"}

    response = await client.put(
        f"/api/child-allocations/parents/{parent['id']}",
        json={"entries": [{**entry, "child_task_id": child["id"]}]},
    )
    assert response.status_code == 200
    assert response.json()[0]["level"] == 1
    assert len((await client.get(f"/api/child-allocations/children/{child['id']}")).json()) == 1
    assert (await client.get("/api/child-allocations/users/alice/dates/2025-03-03")).json() == []

    await client.post(
        f"/api/allocations/tasks/{parent['id']}/auto-plan",
        json={"user_id": "alice", "hours": 2, "from_date": "2025-03-03"},
    )
    response = await client.put(
        f"/api/child-allocations/parents/{parent['id']}",
        json={"entries": [{**entry, "child_task_id": child["id"]}]},
    )
    assert response.status_code == 200
    rows = (
        await client.get("/api/child-allocations/users/alice/dates/2025-03-03", params={"mode": "work"})
    ).json()
    assert [row["child_task_id"] for row in rows] == [child["id"]]

    response = await client.put(
        f"/api/child-allocations/parents/{parent['id']}",
        json={"entries": [{**entry, "child_task_id": other["id"]}]},
    )
    assert response.status_code == 400

    response = await client.delete(f"/api/child-allocations/parents/{parent['id']}")
    assert response.status_code == 204
    assert (await client.get(f"/api/child-allocations/parents/{parent['id']}")).json() == []


@pytest.mark.asyncio
async def test_recurring_blocks(client):
    response = await client.post(
        "/api/recurring-blocks",
        json={
            "title": "Gym",
            "recurrence_type": "custom_days",
            "days_of_week": "1,3",
            "start_date": "2025-03-03",
            "end_date": "2025-03-09",
            "start_time": "07:00",
            "end_time": "08:00",
        },
    )
    assert response.status_code == 201
    commitment = response.json()

    occurrences = (
        await client.get(
            "/api/recurring-blocks/occurrences",
            params={"start_date": "2025-03-01", "end_date": "2025-03-31"},
        )
    ).json()
    assert [block["block_date"] for block in occurrences] == ["2025-03-04", "2025-03-06"]
    assert len((await client.get("/api/recurring-blocks")).json()) == 1

    response = await client.post(
        "/api/recurring-blocks",
        json={
            "title": "Broken",
            "recurrence_type": "daily",
            "start_date": "2025-03-03",
            "start_time": "09:00",
            "end_time": "09:00",
        },
    )
    assert response.status_code == 400

    response = await client.put(f"/api/recurring-blocks/{commitment['id']}", json={"is_active": False})
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    occurrences = (
        await client.get(
            "/api/recurring-blocks/occurrences",
            params={"start_date": "2025-03-01", "end_date": "2025-03-31"},
        )
    ).json()
    assert occurrences == []
    assert (await client.get("/api/recurring-blocks")).json() == []
    assert len((await client.get("/api/recurring-blocks", params={"include_inactive": True})).json()) == 1

    response = await client.put(f"/api/recurring-blocks/{commitment['id']}", json={"end_time": "06:00"})
    assert response.status_code == 400

    assert (await client.delete(f"/api/recurring-blocks/{commitment['id']}")).status_code == 204
    assert (await client.get(f"/api/recurring-blocks/{commitment['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_notifications_for_other_user(client):
    await _setup_calendar(client)
    task = await _create_task(client)
    await client.post(
        f"/api/allocations/tasks/{task['id']}/auto-plan",
        json={"user_id": "bob", "hours": 2, "from_date": "2025-03-03"},
    )

    response = await client.get("/api/notifications", headers={"X-User-Id": "bob"})

    assert response.status_code == 200
    body = response.json()
    assert body["unread_count"] == 1
    assert body["notifications"][0]["type"] == "task_allocated"
