"""
Recurring commitment service.

Expands a commitment's recurrence rule into dated occurrences which the
allocator treats as immovable blocks.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from workplan.core.config import Settings, get_settings
from workplan.core.exceptions import NotFoundError, ValidationError
from workplan.core.logger import setup_logger
from workplan.interfaces.recurring_block_repository import IRecurringBlockRepository
from workplan.models.enums import RecurrenceType
from workplan.models.recurring import (
    RecurringBlock,
    RecurringCommitment,
    RecurringCommitmentCreate,
    RecurringCommitmentUpdate,
)

logger = setup_logger(__name__)


def generate_occurrence_dates(
    commitment: RecurringCommitmentCreate,
    default_horizon_days: int = 365,
) -> list[date]:
    """
    Dates on which a commitment occurs, from its start date through its end
    date (or default_horizon_days past the start when it has none).
    """
    start = commitment.start_date
    end = commitment.end_date or start + timedelta(days=default_horizon_days)
    interval = commitment.recurrence_interval or 1
    weekdays = commitment.weekday_numbers()
    rule = commitment.recurrence_type

    dates = []
    current = start
    while current <= end:
        if _occurs_on(rule, current, start, interval, weekdays):
            dates.append(current)
        current += timedelta(days=1)
    return dates


def _occurs_on(rule: RecurrenceType, current: date, start: date, interval: int, weekdays: set[int]) -> bool:
    days_since = (current - start).days
    months_since = (current.year - start.year) * 12 + (current.month - start.month)

    if rule == RecurrenceType.DAILY:
        return True
    if rule == RecurrenceType.WEEKLY:
        return current.weekday() == start.weekday()
    if rule == RecurrenceType.MONTHLY:
        return current.day == start.day
    if rule == RecurrenceType.CUSTOM_DAYS:
        return current.weekday() in weekdays
    if rule == RecurrenceType.INTERVAL_DAYS:
        return days_since % interval == 0
    if rule == RecurrenceType.INTERVAL_WEEKS:
        return current.weekday() == start.weekday() and (days_since // 7) % interval == 0
    if rule == RecurrenceType.INTERVAL_MONTHS:
        return current.day == start.day and months_since % interval == 0
    return False


class RecurringBlockService:
    """Creates commitments and serves their occurrences."""

    def __init__(self, block_repo: IRecurringBlockRepository, settings: Optional[Settings] = None):
        self.block_repo = block_repo
        self.settings = settings or get_settings()

    async def create_commitment(self, user_id: str, data: RecurringCommitmentCreate) -> RecurringCommitment:
        """
        Create a commitment and generate its occurrences.

        Raises:
            ValidationError: If end_time is not after start_time
        """
        if data.duration_minutes <= 0:
            raise ValidationError(
                "end_time must be after start_time",
                {"start_time": data.start_time, "end_time": data.end_time},
            )
        owner = data.user_id or user_id
        dates = generate_occurrence_dates(data, self.settings.RECURRING_DEFAULT_HORIZON_DAYS)
        commitment = await self.block_repo.create_commitment(owner, data, dates)
        logger.info(
            f"Created recurring commitment {commitment.id} ({data.recurrence_type.value}) "
            f"for {owner} with {len(dates)} occurrences"
        )
        return commitment

    async def list_commitments(self, user_id: str, include_inactive: bool = False) -> list[RecurringCommitment]:
        return await self.block_repo.list_commitments(user_id, include_inactive)

    async def get_commitment(self, commitment_id: UUID) -> RecurringCommitment:
        commitment = await self.block_repo.get_commitment(commitment_id)
        if not commitment:
            raise NotFoundError(f"Recurring commitment {commitment_id} not found")
        return commitment

    async def update_commitment(
        self, commitment_id: UUID, data: RecurringCommitmentUpdate
    ) -> RecurringCommitment:
        """
        Apply the set fields of data and regenerate the occurrences.

        An inactive commitment keeps no occurrences until it is reactivated.

        Raises:
            NotFoundError: If the commitment does not exist
            ValidationError: If the merged rule or times are invalid
        """
        existing = await self.get_commitment(commitment_id)
        changes = data.model_dump(exclude_unset=True)
        is_active = changes.pop("is_active", None)
        if is_active is None:
            is_active = existing.is_active

        fields = existing.model_dump(include=set(RecurringCommitmentCreate.model_fields))
        fields.update(changes)
        try:
            merged = RecurringCommitmentCreate(**fields)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid recurring commitment",
                {"errors": [error["msg"] for error in e.errors()]},
            )
        if merged.duration_minutes <= 0:
            raise ValidationError(
                "end_time must be after start_time",
                {"start_time": merged.start_time, "end_time": merged.end_time},
            )

        dates = (
            generate_occurrence_dates(merged, self.settings.RECURRING_DEFAULT_HORIZON_DAYS)
            if is_active
            else []
        )
        commitment = await self.block_repo.update_commitment(commitment_id, merged, is_active, dates)
        if not commitment:
            raise NotFoundError(f"Recurring commitment {commitment_id} not found")
        logger.info(
            f"Updated recurring commitment {commitment_id} (active={is_active}) "
            f"with {len(dates)} occurrences"
        )
        return commitment

    async def delete_commitment(self, commitment_id: UUID) -> None:
        if not await self.block_repo.delete_commitment(commitment_id):
            raise NotFoundError(f"Recurring commitment {commitment_id} not found")
        logger.info(f"Deleted recurring commitment {commitment_id}")

    async def list_occurrences(self, user_id: str, start_date: date, end_date: date) -> list[RecurringBlock]:
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        return await self.block_repo.list_blocks(user_id, start_date, end_date)
