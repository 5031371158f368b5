"""
Recurring commitment and block repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from workplan.models.recurring import (
    RecurringBlock,
    RecurringCommitment,
    RecurringCommitmentCreate,
)


class IRecurringBlockRepository(ABC):
    """Abstract interface for recurring commitments and their occurrences."""

    @abstractmethod
    async def create_commitment(
        self,
        user_id: str,
        commitment: RecurringCommitmentCreate,
        occurrence_dates: list[date],
    ) -> RecurringCommitment:
        """Create a commitment together with its generated occurrences."""
        pass

    @abstractmethod
    async def get_commitment(self, commitment_id: UUID) -> Optional[RecurringCommitment]:
        """Get a commitment by ID."""
        pass

    @abstractmethod
    async def list_commitments(self, user_id: str, include_inactive: bool = False) -> list[RecurringCommitment]:
        """List a user's commitments."""
        pass

    @abstractmethod
    async def update_commitment(
        self,
        commitment_id: UUID,
        commitment: RecurringCommitmentCreate,
        is_active: bool,
        occurrence_dates: list[date],
    ) -> Optional[RecurringCommitment]:
        """
        Overwrite a commitment and replace its occurrences in one transaction.

        Returns:
            Updated commitment, or None if it does not exist
        """
        pass

    @abstractmethod
    async def delete_commitment(self, commitment_id: UUID) -> bool:
        """Delete a commitment and all of its occurrences."""
        pass

    @abstractmethod
    async def list_blocks(self, user_id: str, start_date: date, end_date: date) -> list[RecurringBlock]:
        """List a user's occurrences in an inclusive date range ordered by date and start."""
        pass
