"""
Notifications API endpoints.
"""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from workplan.api.deps import CurrentUserId, NotificationRepo
from workplan.models.notification import Notification

router = APIRouter()


class NotificationListResponse(BaseModel):
    """Response for listing notifications."""

    notifications: list[Notification]
    unread_count: int
    total: int


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user_id: CurrentUserId,
    notification_repo: NotificationRepo,
    unread_only: bool = Query(False, description="Only return unread notifications"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """
    List notifications for the current user.
    """
    notifications = await notification_repo.list(
        user_id=user_id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    unread_count = await notification_repo.get_unread_count(user_id)

    return NotificationListResponse(
        notifications=notifications,
        unread_count=unread_count,
        total=len(notifications),
    )
