"""
Enum definitions for the application.

These enums are used across models and provide type-safe mode/recurrence values.
"""

from enum import Enum


class WorkMode(str, Enum):
    """
    Calendar a task draws its hours from.

    WORK = Regular working hours (lunch break applies)
    HOBBY = Parallel personal-time calendar (no lunch break)
    """

    WORK = "work"
    HOBBY = "hobby"


class RecurrenceType(str, Enum):
    """Recurrence rule of a recurring commitment."""

    DAILY = "daily"
    WEEKLY = "weekly"  # Same weekday as the start date
    MONTHLY = "monthly"  # Same day-of-month as the start date
    CUSTOM_DAYS = "custom_days"  # Listed weekdays (0=Monday)
    INTERVAL_DAYS = "interval_days"
    INTERVAL_WEEKS = "interval_weeks"
    INTERVAL_MONTHS = "interval_months"
