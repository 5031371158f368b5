"""
Notification repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from workplan.models.notification import Notification, NotificationCreate


class INotificationRepository(ABC):
    """Abstract interface for notification persistence."""

    @abstractmethod
    async def create(self, notification: NotificationCreate) -> Notification:
        """Create a new notification."""
        pass

    @abstractmethod
    async def create_bulk(self, notifications: list[NotificationCreate]) -> list[Notification]:
        """Create multiple notifications at once."""
        pass

    @abstractmethod
    async def list(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        """List notifications for a user, newest first."""
        pass

    @abstractmethod
    async def get_unread_count(self, user_id: str) -> int:
        """Get count of unread notifications."""
        pass
