"""
Projects API endpoints.
"""

from fastapi import APIRouter, status

from workplan.api.deps import CurrentUserId, ProjectRepo
from workplan.models.task import Project, ProjectCreate

router = APIRouter()


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(project: ProjectCreate, user_id: CurrentUserId, project_repo: ProjectRepo):
    """Create a project. Its mode selects the calendar its tasks draw from."""
    return await project_repo.create(user_id, project)
