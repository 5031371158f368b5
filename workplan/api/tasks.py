"""
Tasks API endpoints.

Only what the scheduler needs: creating tasks, reading their planned dates
and setting finish-to-start dependencies.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from workplan.api.deps import CurrentUserId, ProjectRepo, TaskRepo
from workplan.core.exceptions import BusinessLogicError, NotFoundError
from workplan.models.enums import WorkMode
from workplan.models.task import DependencyUpdate, Task, TaskCreate
from workplan.utils.dependency_validator import DependencyValidator

router = APIRouter()


async def _get_task_or_404(task_repo: TaskRepo, task_id: UUID) -> Task:
    task = await task_repo.get(task_id)
    if task:
        return task
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Task {task_id} not found",
    )


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    user_id: CurrentUserId,
    task_repo: TaskRepo,
    project_repo: ProjectRepo,
):
    """Create a task. The mode is inherited from the project (work without one)."""
    mode = WorkMode.WORK
    if task.project_id:
        project = await project_repo.get(task.project_id)
        if not project:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Project {task.project_id} not found",
            )
        mode = project.mode
    if task.parent_id:
        await _get_task_or_404(task_repo, task.parent_id)
    if task.depends_on_id and not await task_repo.get(task.depends_on_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Dependency target {task.depends_on_id} not found",
        )
    return await task_repo.create(user_id, task, mode)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: UUID, user_id: CurrentUserId, task_repo: TaskRepo):
    """Get a task with its planned dates."""
    return await _get_task_or_404(task_repo, task_id)


@router.patch("/{task_id}/dependency", response_model=Task)
async def set_dependency(
    task_id: UUID,
    update: DependencyUpdate,
    user_id: CurrentUserId,
    task_repo: TaskRepo,
):
    """Set or clear the task this one depends on."""
    await _get_task_or_404(task_repo, task_id)
    try:
        await DependencyValidator(task_repo).validate_dependency(task_id, update.depends_on_id)
        return await task_repo.set_dependency(task_id, update.depends_on_id)
    except BusinessLogicError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
