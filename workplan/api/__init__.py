"""API routers."""

from workplan.api import (
    allocations,
    calendar,
    child_allocations,
    notifications,
    projects,
    recurring_blocks,
    tasks,
)

__all__ = [
    "allocations",
    "calendar",
    "child_allocations",
    "notifications",
    "projects",
    "recurring_blocks",
    "tasks",
]
