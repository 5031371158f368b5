"""
Recurring commitments API endpoints.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from workplan.api.deps import CurrentUserId, RecurringBlockSvc
from workplan.api.errors import to_http_exception
from workplan.core.exceptions import WorkplanError
from workplan.models.recurring import (
    RecurringBlock,
    RecurringCommitment,
    RecurringCommitmentCreate,
    RecurringCommitmentUpdate,
)

router = APIRouter()


@router.post("", response_model=RecurringCommitment, status_code=status.HTTP_201_CREATED)
async def create_commitment(
    data: RecurringCommitmentCreate,
    user_id: CurrentUserId,
    block_service: RecurringBlockSvc,
):
    """Create a recurring commitment and its occurrences."""
    try:
        return await block_service.create_commitment(user_id, data)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.get("", response_model=list[RecurringCommitment])
async def list_commitments(
    user_id: CurrentUserId,
    block_service: RecurringBlockSvc,
    include_inactive: bool = Query(False),
):
    return await block_service.list_commitments(user_id, include_inactive)


@router.get("/occurrences", response_model=list[RecurringBlock])
async def list_occurrences(
    user_id: CurrentUserId,
    block_service: RecurringBlockSvc,
    start_date: date = Query(...),
    end_date: date = Query(...),
):
    """List the caller's blocks in a date range."""
    try:
        return await block_service.list_occurrences(user_id, start_date, end_date)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.get("/{commitment_id}", response_model=RecurringCommitment)
async def get_commitment(commitment_id: UUID, user_id: CurrentUserId, block_service: RecurringBlockSvc):
    try:
        return await block_service.get_commitment(commitment_id)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.put("/{commitment_id}", response_model=RecurringCommitment)
async def update_commitment(
    commitment_id: UUID,
    data: RecurringCommitmentUpdate,
    user_id: CurrentUserId,
    block_service: RecurringBlockSvc,
):
    """Edit a commitment and regenerate its occurrences."""
    try:
        return await block_service.update_commitment(commitment_id, data)
    except WorkplanError as e:
        raise to_http_exception(e)


@router.delete("/{commitment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_commitment(commitment_id: UUID, user_id: CurrentUserId, block_service: RecurringBlockSvc):
    """Delete a commitment and every occurrence."""
    try:
        await block_service.delete_commitment(commitment_id)
    except WorkplanError as e:
        raise to_http_exception(e)
