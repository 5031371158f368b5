"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class WorkplanError(Exception):
    """Base exception for workplan."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(WorkplanError):
    """Resource not found."""

    pass


class ValidationError(WorkplanError):
    """Invalid input, rejected before any mutation."""

    pass


class AuthorizationError(WorkplanError):
    """Authorization failed."""

    pass


class ForbiddenError(AuthorizationError):
    """Forbidden operation (permission check denied)."""

    pass


class BusinessLogicError(WorkplanError):
    """Business logic constraint violation."""

    pass


class InsufficientCapacityError(BusinessLogicError):
    """A manual allocation exceeds the remaining capacity of its day."""

    def __init__(self, message: str, day=None, capacity_hours: float = 0.0, requested_hours: float = 0.0):
        super().__init__(
            message,
            details={
                "date": day.isoformat() if day else None,
                "capacity_hours": capacity_hours,
                "requested_hours": requested_hours,
            },
        )
        self.day = day
        self.capacity_hours = capacity_hours
        self.requested_hours = requested_hours

