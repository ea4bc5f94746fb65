"""
Repository for Task database operations.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.models.constants import TaskStatus
from labmonitor.models.person import Person
from labmonitor.models.task import Task, TaskAssignment
from labmonitor.utils.time import utc_now


class TaskRepository:
    """Repository for Task operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        return result.scalar_one_or_none()
    
    async def list_by_project(self, project_id: UUID) -> List[Task]:
        result = await self.db.execute(
            select(Task).where(Task.project_id == project_id).order_by(Task.created_at)
        )
        return list(result.scalars().all())

    async def list_by_projects(self, project_ids: List[UUID]) -> List[Task]:
        if not project_ids:
            return []
        result = await self.db.execute(
            select(Task).where(Task.project_id.in_(project_ids)).order_by(Task.project_id, Task.created_at)
        )
        return list(result.scalars().all())
    
    async def list_by_assignee(self, user_id: UUID) -> List[Task]:
        """Tasks actively assigned to a person, earliest due first."""
        query = (
            select(Task)
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .where(
                and_(
                    TaskAssignment.user_id == user_id,
                    TaskAssignment.is_active.is_(True),
                )
            )
            .order_by(Task.due_date.asc().nulls_last(), Task.created_at)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_overdue(self, due_before: datetime) -> List[Task]:
        """Incomplete tasks with a due date before the cutoff."""
        query = (
            select(Task)
            .where(
                and_(
                    Task.due_date.is_not(None),
                    Task.due_date < due_before,
                    Task.status != TaskStatus.COMPLETED,
                )
            )
            .order_by(Task.due_date)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_by_status(self, status: str) -> List[Task]:
        result = await self.db.execute(select(Task).where(Task.status == status).order_by(Task.updated_at))
        return list(result.scalars().all())

    async def list_with_due_reminders(self, now: datetime) -> List[Task]:
        result = await self.db.execute(
            select(Task)
            .where(and_(Task.reminder_at.is_not(None), Task.reminder_at <= now))
            .order_by(Task.reminder_at)
        )
        return list(result.scalars().all())

    async def list_assignees(self, task_id: UUID, active_only: bool = True) -> List[Person]:
        query = (
            select(Person)
            .join(TaskAssignment, TaskAssignment.user_id == Person.id)
            .where(
                and_(
                    TaskAssignment.task_id == task_id,
                    TaskAssignment.is_active.is_(True),
                )
            )
        )
        if active_only:
            query = query.where(Person.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def first_assignee_ids(self, task_ids: List[UUID]) -> dict[UUID, UUID]:
        """Map each task to one active assignee, for linking alerts to a person."""
        if not task_ids:
            return {}
        result = await self.db.execute(
            select(TaskAssignment.task_id, TaskAssignment.user_id)
            .where(
                and_(
                    TaskAssignment.task_id.in_(task_ids),
                    TaskAssignment.is_active.is_(True),
                )
            )
            .order_by(TaskAssignment.created_at)
        )
        mapping: dict[UUID, UUID] = {}
        for task_id, user_id in result.all():
            mapping.setdefault(task_id, user_id)
        return mapping

    async def update(self, task: Task, **fields: Any) -> Task:
        """Apply field changes in a single update."""
        for field, value in fields.items():
            setattr(task, field, value)
        task.updated_at = utc_now()
        await self.db.flush()
        await self.db.refresh(task)
        return task
