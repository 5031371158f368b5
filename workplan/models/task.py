"""
Task and project model definitions.

Only the fields the scheduler reads or writes are modelled here; the rest of
task management lives outside this service.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from workplan.models.enums import WorkMode


class ProjectCreate(BaseModel):
    """Project creation payload."""

    name: str = Field(..., min_length=1, max_length=200, description="Project name")
    mode: WorkMode = Field(WorkMode.WORK, description="Calendar used by the project's tasks")


class Project(ProjectCreate):
    """Project with persistence metadata."""

    id: UUID
    user_id: str
    created_at: datetime
    updated_at: datetime


class TaskCreate(BaseModel):
    """Task creation payload."""

    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    project_id: Optional[UUID] = Field(None, description="Owning project (work mode when empty)")
    parent_id: Optional[UUID] = Field(None, description="Parent task (subtask hierarchy)")
    depends_on_id: Optional[UUID] = Field(
        None, description="Task that must finish before this one starts"
    )
    assigned_to: Optional[str] = Field(None, description="User the task is planned for")


class Task(TaskCreate):
    """Task with derived planning dates."""

    id: UUID
    user_id: str
    mode: WorkMode = Field(WorkMode.WORK, description="Inherited from the owning project")
    planned_start_date: Optional[date] = Field(None, description="MIN of the task's allocation dates")
    planned_end_date: Optional[date] = Field(None, description="MAX of the task's allocation dates")
    created_at: datetime
    updated_at: datetime


class DependencyUpdate(BaseModel):
    """Set or clear a task's finish-to-start dependency."""

    depends_on_id: Optional[UUID] = None
