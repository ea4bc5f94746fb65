"""
Task lifecycle business logic.

Every mutation appends exactly one activity event. There is no transition
guard: supervisors may force any status.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.errors import NotFoundError
from labmonitor.models.constants import ActivityKind, ReviewAction, TaskStatus
from labmonitor.models.task import Task
from labmonitor.models.task_activity import TaskActivity
from labmonitor.repositories.task_activity_repository import TaskActivityRepository
from labmonitor.repositories.task_repository import TaskRepository
from labmonitor.schemas.task import ChecklistItem

logger = logging.getLogger(__name__)

# Review action -> resulting task status
_REVIEW_TRANSITIONS = {
    ReviewAction.SUBMIT: TaskStatus.IN_PROGRESS,
    ReviewAction.APPROVE: TaskStatus.COMPLETED,
    ReviewAction.REJECT: TaskStatus.PENDING,
}


def clamp_progress(pct: int) -> int:
    return max(0, min(100, int(pct)))


class TaskLifecycleService:
    """Service for task state changes and the activity trail."""
    
    def __init__(self, db: AsyncSession):
        self.repository = TaskRepository(db)
        self.activity = TaskActivityRepository(db)

    async def get_task(self, task_id: UUID) -> Task:
        task = await self.repository.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task", task_id)
        return task

    async def list_by_project(self, project_id: UUID) -> List[Task]:
        return await self.repository.list_by_project(project_id)

    async def list_by_assignee(self, user_id: UUID) -> List[Task]:
        return await self.repository.list_by_assignee(user_id)

    async def list_activity(self, task_id: UUID) -> List[TaskActivity]:
        """Activity trail for a task, newest first."""
        await self.get_task(task_id)
        return await self.activity.list_for_task(task_id)

    async def set_status(
        self,
        task_id: UUID,
        status: str,
        actor_id: Optional[UUID],
        note: Optional[str] = None,
    ) -> Task:
        task = await self.get_task(task_id)
        fields = {"status": status}
        if status == TaskStatus.COMPLETED:
            fields["progress_pct"] = 100
        task = await self.repository.update(task, **fields)
        await self.activity.append(task.id, actor_id, ActivityKind.STATUS, note or f"Status changed to {status}")
        return task

    async def set_progress(
        self,
        task_id: UUID,
        pct: int,
        actor_id: Optional[UUID],
        note: Optional[str] = None,
    ) -> Task:
        """Store a clamped progress value; 100 also completes the task."""
        task = await self.get_task(task_id)
        progress = clamp_progress(pct)
        fields = {"progress_pct": progress}
        if progress == 100:
            fields["status"] = TaskStatus.COMPLETED
        elif task.status == TaskStatus.COMPLETED:
            # A completed task always sits at 100
            fields["status"] = TaskStatus.IN_PROGRESS
        task = await self.repository.update(task, **fields)
        await self.activity.append(
            task.id, actor_id, ActivityKind.PROGRESS, note or f"Progress updated to {progress}%"
        )
        return task

    async def update_checklist(
        self,
        task_id: UUID,
        items: Sequence[ChecklistItem],
        actor_id: Optional[UUID],
    ) -> Task:
        task = await self.get_task(task_id)
        checklist = [item.model_dump() for item in items]
        task = await self.repository.update(task, checklist=checklist)
        done = sum(1 for item in checklist if item["done"])
        await self.activity.append(
            task.id,
            actor_id,
            ActivityKind.COMMENT,
            f"Checklist updated ({len(checklist)} items, {done} done)",
        )
        return task

    async def set_reminder(
        self,
        task_id: UUID,
        reminder_at: Optional[datetime],
        actor_id: Optional[UUID],
    ) -> Task:
        task = await self.get_task(task_id)
        task = await self.repository.update(task, reminder_at=reminder_at)
        message = f"Reminder set for {reminder_at.isoformat()}" if reminder_at else "Reminder cleared"
        await self.activity.append(task.id, actor_id, ActivityKind.COMMENT, message)
        return task

    async def review(
        self,
        task_id: UUID,
        action: str,
        actor_id: Optional[UUID],
        note: Optional[str] = None,
    ) -> Task:
        """Apply a submit/approve/reject review decision."""
        if action not in _REVIEW_TRANSITIONS:
            raise ValueError(f"Unknown review action: {action}")
        task = await self.get_task(task_id)
        fields = {"status": _REVIEW_TRANSITIONS[action]}
        if action == ReviewAction.APPROVE:
            fields["progress_pct"] = 100
        task = await self.repository.update(task, **fields)
        message = f"Review {action}: {note}" if note else f"Review {action}"
        await self.activity.append(task.id, actor_id, ActivityKind.STATUS, message)
        logger.info("Task %s review %s by %s", task.id, action, actor_id)
        return task

    async def add_comment(self, task_id: UUID, actor_id: Optional[UUID], message: str) -> TaskActivity:
        task = await self.get_task(task_id)
        return await self.activity.append(task.id, actor_id, ActivityKind.COMMENT, message)
