"""
Notification model definitions.

Notifications tell users that their calendar was changed by someone else.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Types of notifications."""

    TASK_ALLOCATED = "task_allocated"  # Hours were planned onto the user's calendar
    ALLOCATION_REMOVED = "allocation_removed"  # The user's planned hours were cleared


class NotificationCreate(BaseModel):
    """Notification creation payload."""

    user_id: str = Field(..., description="Recipient")
    type: NotificationType
    title: str = Field(..., max_length=200)
    message: str = Field(..., max_length=500)
    task_id: Optional[UUID] = None
    project_id: Optional[UUID] = None


class Notification(NotificationCreate):
    """User notification model."""

    id: UUID
    is_read: bool = Field(False)
    created_at: datetime
