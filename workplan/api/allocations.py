"""
Allocations API endpoints.

Planning, manual entry, removal, dependency re-planning, push-forward and
availability for task allocations.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from workplan.api.deps import (
    AllocationRepo,
    AllocationSvc,
    AvailabilitySvc,
    CurrentUserId,
    PushForwardSvc,
    ReplannerSvc,
)
from workplan.api.errors import to_http_exception
from workplan.core.exceptions import WorkplanError
from workplan.models.allocation import (
    Allocation,
    AutoPlanRequest,
    DayAvailability,
    ManualAllocationRequest,
    PushForwardRequest,
    ReplanRequest,
    SchedulingResult,
)
from workplan.models.enums import WorkMode

router = APIRouter()


# ===========================================
# Reads
# ===========================================


@router.get("/tasks/{task_id}", response_model=list[Allocation])
async def list_task_allocations(task_id: UUID, user_id: CurrentUserId, allocation_repo: AllocationRepo):
    """List a task's allocation rows."""
    return await allocation_repo.list_for_task(task_id)


@router.get("/users/{target_user_id}/dates/{day}", response_model=list[Allocation])
async def list_user_allocations_on_date(
    target_user_id: str,
    day: date,
    user_id: CurrentUserId,
    allocation_repo: AllocationRepo,
    mode: Optional[WorkMode] = Query(None, description="Restrict to one calendar mode"),
):
    """List a user's rows on one date."""
    return await allocation_repo.list_for_user(target_user_id, day, day, mode=mode)


@router.get("/availability/{target_user_id}", response_model=list[DayAvailability])
async def get_availability(
    target_user_id: str,
    user_id: CurrentUserId,
    availability_service: AvailabilitySvc,
    start_date: date = Query(...),
    end_date: date = Query(...),
    mode: WorkMode = Query(WorkMode.WORK),
    exclude_task_id: Optional[UUID] = Query(None, description="Ignore this task's own rows"),
):
    """Per-date capacity, allocated and available hours for a user."""
    try:
        return await availability_service.availability(
            target_user_id, mode, start_date, end_date, exclude_task_id=exclude_task_id
        )
    except WorkplanError as e:
        raise to_http_exception(e)


# ===========================================
# Writes
# ===========================================


@router.post("/tasks/{task_id}/auto-plan", response_model=SchedulingResult)
async def auto_plan_task(
    task_id: UUID,
    request: AutoPlanRequest,
    user_id: CurrentUserId,
    allocation_service: AllocationSvc,
):
    """Replace a task's allocations with automatically placed hours."""
    try:
        return await allocation_service.auto_plan_task(
            task_id, request.user_id, request.hours, request.from_date, actor_id=user_id
        )
    except WorkplanError as e:
        raise to_http_exception(e)


@router.put("/tasks/{task_id}", response_model=SchedulingResult)
async def save_manual_allocations(
    task_id: UUID,
    request: ManualAllocationRequest,
    user_id: CurrentUserId,
    allocation_service: AllocationSvc,
):
    """Replace a task's allocations with hand-placed blocks."""
    try:
        return await allocation_service.save_manual_allocations(
            task_id, request.user_id, request.entries, actor_id=user_id
        )
    except WorkplanError as e:
        raise to_http_exception(e)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_task_allocations(task_id: UUID, user_id: CurrentUserId, allocation_service: AllocationSvc):
    """Remove every allocation of a task."""
    try:
        await allocation_service.clear_task_allocations(task_id, actor_id=user_id)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.delete("/tasks/{task_id}/dates/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_allocations_on_date(
    task_id: UUID,
    day: date,
    user_id: CurrentUserId,
    allocation_service: AllocationSvc,
    target_user_id: Optional[str] = Query(None, alias="user_id", description="Calendar owner (defaults to caller)"),
):
    """Remove one date of a task's allocations."""
    try:
        await allocation_service.remove_allocations_on_date(
            task_id, target_user_id or user_id, day, actor_id=user_id
        )
    except WorkplanError as e:
        raise to_http_exception(e)


@router.post("/tasks/{task_id}/replan-dependents", response_model=SchedulingResult)
async def replan_dependents(
    task_id: UUID,
    request: ReplanRequest,
    user_id: CurrentUserId,
    replanner: ReplannerSvc,
):
    """Move dependents that now start on or before the task's end date."""
    try:
        return await replanner.replan_dependents(task_id, actor_id=user_id, new_end_date=request.new_end_date)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.post("/push-forward", response_model=SchedulingResult)
async def push_forward(
    request: PushForwardRequest,
    user_id: CurrentUserId,
    push_forward_service: PushForwardSvc,
):
    """Put a task at the front of a user's queue and shift the rest."""
    try:
        return await push_forward_service.push_forward(
            request.user_id,
            request.from_date,
            request.new_task_id,
            request.new_task_hours,
            actor_id=user_id,
        )
    except WorkplanError as e:
        raise to_http_exception(e)
