"""
Calendar settings API endpoints.
"""

from fastapi import APIRouter

from workplan.api.deps import CalendarSvc, CurrentUserId
from workplan.models.calendar import WorkCalendar, WorkCalendarUpdate

router = APIRouter()


@router.get("", response_model=WorkCalendar)
async def get_calendar(user_id: CurrentUserId, calendar_service: CalendarSvc):
    """Get the current user's calendar (defaults when never saved)."""
    return await calendar_service.get_calendar(user_id)


@router.put("", response_model=WorkCalendar)
async def update_calendar(
    update: WorkCalendarUpdate,
    user_id: CurrentUserId,
    calendar_service: CalendarSvc,
):
    """Update the current user's calendar."""
    return await calendar_service.update_calendar(user_id, update)
