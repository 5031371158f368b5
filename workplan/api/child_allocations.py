"""
Child allocations API endpoints.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from workplan.api.deps import ChildAllocationSvc, CurrentUserId
from workplan.api.errors import to_http_exception
from workplan.core.exceptions import WorkplanError
from workplan.models.child_allocation import ChildAllocation, ChildAllocationBatch
from workplan.models.enums import WorkMode

router = APIRouter()


@router.put("/parents/{parent_task_id}", response_model=list[ChildAllocation])
async def save_child_allocations(
    parent_task_id: UUID,
    batch: ChildAllocationBatch,
    user_id: CurrentUserId,
    child_service: ChildAllocationSvc,
):
    """Replace the child allocations handed out by a parent task."""
    try:
        return await child_service.save_child_allocations(parent_task_id, batch.entries, actor_id=user_id)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.get("/parents/{parent_task_id}", response_model=list[ChildAllocation])
async def list_for_parent(parent_task_id: UUID, user_id: CurrentUserId, child_service: ChildAllocationSvc):
    return await child_service.list_for_parent(parent_task_id)


@router.get("/children/{child_task_id}", response_model=list[ChildAllocation])
async def list_for_child(child_task_id: UUID, user_id: CurrentUserId, child_service: ChildAllocationSvc):
    return await child_service.list_for_child(child_task_id)


@router.get("/users/{target_user_id}/dates/{day}", response_model=list[ChildAllocation])
async def list_for_user_on_date(
    target_user_id: str,
    day: date,
    user_id: CurrentUserId,
    child_service: ChildAllocationSvc,
    mode: Optional[WorkMode] = Query(None, description="Restrict to parents planned in one calendar mode"),
):
    """List child rows on one date under the parent tasks a user holds."""
    return await child_service.list_for_user_on_date(target_user_id, day, mode)


@router.delete("/parents/{parent_task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_for_parent(parent_task_id: UUID, user_id: CurrentUserId, child_service: ChildAllocationSvc):
    """Delete a parent's child allocations and those below it."""
    try:
        await child_service.delete_for_parent(parent_task_id, actor_id=user_id)
    except WorkplanError as e:
        raise to_http_exception(e)
