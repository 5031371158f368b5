"""
Unit tests for recurrence expansion and commitment validation.
"""

from datetime import date
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from workplan.core.config import Settings
from workplan.core.exceptions import NotFoundError, ValidationError
from workplan.models.enums import RecurrenceType
from workplan.models.recurring import RecurringCommitmentCreate
from workplan.services.recurring_block_service import RecurringBlockService, generate_occurrence_dates


def commitment(recurrence_type: RecurrenceType, start: date, end: date, **fields) -> RecurringCommitmentCreate:
    return RecurringCommitmentCreate(
        title="Commitment",
        recurrence_type=recurrence_type,
        start_date=start,
        end_date=end,
        start_time=fields.pop("start_time", "10:00"),
        end_time=fields.pop("end_time", "11:00"),
        **fields,
    )


class TestGenerateOccurrenceDates:
    def test_daily(self):
        dates = generate_occurrence_dates(commitment(RecurrenceType.DAILY, date(2025, 3, 3), date(2025, 3, 5)))

        assert dates == [date(2025, 3, 3), date(2025, 3, 4), date(2025, 3, 5)]

    def test_weekly_uses_start_weekday(self):
        dates = generate_occurrence_dates(
            commitment(RecurrenceType.WEEKLY, date(2025, 3, 5), date(2025, 3, 26))
        )

        assert dates == [date(2025, 3, 5), date(2025, 3, 12), date(2025, 3, 19), date(2025, 3, 26)]

    def test_monthly_skips_months_without_that_day(self):
        dates = generate_occurrence_dates(
            commitment(RecurrenceType.MONTHLY, date(2025, 1, 31), date(2025, 5, 31))
        )

        assert dates == [date(2025, 1, 31), date(2025, 3, 31), date(2025, 5, 31)]

    def test_custom_days(self):
        dates = generate_occurrence_dates(
            commitment(RecurrenceType.CUSTOM_DAYS, date(2025, 3, 3), date(2025, 3, 9), days_of_week="0, 2,4")
        )

        assert dates == [date(2025, 3, 3), date(2025, 3, 5), date(2025, 3, 7)]

    def test_interval_days(self):
        dates = generate_occurrence_dates(
            commitment(RecurrenceType.INTERVAL_DAYS, date(2025, 3, 1), date(2025, 3, 10), recurrence_interval=3)
        )

        assert dates == [date(2025, 3, 1), date(2025, 3, 4), date(2025, 3, 7), date(2025, 3, 10)]

    def test_interval_weeks(self):
        dates = generate_occurrence_dates(
            commitment(RecurrenceType.INTERVAL_WEEKS, date(2025, 3, 3), date(2025, 4, 7), recurrence_interval=2)
        )

        assert dates == [date(2025, 3, 3), date(2025, 3, 17), date(2025, 3, 31)]

    def test_interval_months(self):
        dates = generate_occurrence_dates(
            commitment(
                RecurrenceType.INTERVAL_MONTHS, date(2025, 1, 15), date(2025, 12, 31), recurrence_interval=4
            )
        )

        assert dates == [date(2025, 1, 15), date(2025, 5, 15), date(2025, 9, 15)]

    def test_open_ended_uses_default_horizon(self):
        data = commitment(RecurrenceType.DAILY, date(2025, 3, 1), None)

        dates = generate_occurrence_dates(data, default_horizon_days=9)

        assert len(dates) == 10
        assert dates[-1] == date(2025, 3, 10)


class TestCommitmentModel:
    def test_custom_days_requires_weekdays(self):
        with pytest.raises(ValueError):
            commitment(RecurrenceType.CUSTOM_DAYS, date(2025, 3, 3), date(2025, 3, 9))

    def test_interval_type_requires_interval(self):
        with pytest.raises(ValueError):
            commitment(RecurrenceType.INTERVAL_DAYS, date(2025, 3, 3), date(2025, 3, 9))

    def test_rejects_weekday_out_of_range(self):
        with pytest.raises(ValueError):
            commitment(RecurrenceType.CUSTOM_DAYS, date(2025, 3, 3), date(2025, 3, 9), days_of_week="1,7")

    def test_rejects_end_before_start(self):
        with pytest.raises(ValueError):
            commitment(RecurrenceType.DAILY, date(2025, 3, 3), date(2025, 3, 2))


@pytest.mark.asyncio
class TestRecurringBlockService:
    async def test_create_passes_generated_dates_to_repository(self):
        repo = AsyncMock()
        repo.create_commitment = AsyncMock(side_effect=lambda owner, data, dates: AsyncMock(id=uuid4()))
        service = RecurringBlockService(repo, Settings())
        data = commitment(RecurrenceType.DAILY, date(2025, 3, 3), date(2025, 3, 4))

        await service.create_commitment("caller", data)

        owner, _, dates = repo.create_commitment.call_args[0]
        assert owner == "caller"
        assert dates == [date(2025, 3, 3), date(2025, 3, 4)]

    async def test_create_for_explicit_user(self):
        repo = AsyncMock()
        repo.create_commitment = AsyncMock(side_effect=lambda owner, data, dates: AsyncMock(id=uuid4()))
        service = RecurringBlockService(repo, Settings())
        data = commitment(RecurrenceType.DAILY, date(2025, 3, 3), date(2025, 3, 3), user_id="bob")

        await service.create_commitment("caller", data)

        assert repo.create_commitment.call_args[0][0] == "bob"

    async def test_rejects_empty_time_range(self):
        repo = AsyncMock()
        service = RecurringBlockService(repo, Settings())
        data = commitment(
            RecurrenceType.DAILY, date(2025, 3, 3), date(2025, 3, 3), start_time="11:00", end_time="10:00"
        )

        with pytest.raises(ValidationError):
            await service.create_commitment("caller", data)
        repo.create_commitment.assert_not_called()

    async def test_delete_unknown_commitment(self):
        repo = AsyncMock()
        repo.delete_commitment = AsyncMock(return_value=False)
        service = RecurringBlockService(repo, Settings())

        with pytest.raises(NotFoundError):
            await service.delete_commitment(uuid4())
