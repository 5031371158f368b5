"""
Notification helper functions for scheduling events.

Each function creates notifications for one event and filters out the
actor. Failures are logged and never propagate to the scheduling
operation that triggered them.
"""

from typing import Iterable

from workplan.core.logger import setup_logger
from workplan.interfaces.notification_repository import INotificationRepository
from workplan.models.allocation import TaskPlan
from workplan.models.notification import NotificationCreate, NotificationType
from workplan.models.task import Task

logger = setup_logger(__name__)


async def notify_task_allocated(
    notification_repo: INotificationRepository,
    task: Task,
    user_id: str,
    actor_user_id: str,
    plan: TaskPlan,
):
    """Tell a user that hours were planned onto their calendar by someone else."""
    if user_id == actor_user_id:
        return

    if plan.planned_start_date and plan.planned_end_date:
        span = f"{plan.planned_start_date.isoformat()} - {plan.planned_end_date.isoformat()}"
    else:
        span = "no dates"
    try:
        await notification_repo.create(
            NotificationCreate(
                user_id=user_id,
                type=NotificationType.TASK_ALLOCATED,
                title="Task planned on your calendar",
                message=f"{actor_user_id} planned {plan.allocated_hours:.2f}h of \"{task.title}\" ({span})",
                task_id=task.id,
                project_id=task.project_id,
            )
        )
    except Exception:
        logger.exception(f"Failed to notify {user_id} about allocation of task {task.id}")


async def notify_allocations_removed(
    notification_repo: INotificationRepository,
    task: Task,
    user_ids: Iterable[str],
    actor_user_id: str,
):
    """Tell users that their planned hours for a task were cleared."""
    recipients = set(user_ids) - {actor_user_id}
    if not recipients:
        return

    notifications = [
        NotificationCreate(
            user_id=uid,
            type=NotificationType.ALLOCATION_REMOVED,
            title="Planned hours removed",
            message=f"{actor_user_id} removed your planned hours for \"{task.title}\"",
            task_id=task.id,
            project_id=task.project_id,
        )
        for uid in sorted(recipients)
    ]
    try:
        await notification_repo.create_bulk(notifications)
    except Exception:
        logger.exception(f"Failed to notify {len(notifications)} users about removal of task {task.id}")
