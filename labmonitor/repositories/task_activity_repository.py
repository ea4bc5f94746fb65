"""
Repository for the append-only task activity trail.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.models.constants import ActivityKind
from labmonitor.models.task import Task
from labmonitor.models.task_activity import TaskActivity


class TaskActivityRepository:
    """Append and query activity events. There is no update or delete."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def append(
        self,
        task_id: UUID,
        user_id: Optional[UUID],
        kind: str,
        message: str,
        created_at: Optional[datetime] = None,
    ) -> TaskActivity:
        event = TaskActivity(task_id=task_id, user_id=user_id, type=kind, message=message)
        if created_at is not None:
            event.created_at = created_at
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)
        return event
    
    async def list_for_task(self, task_id: UUID, limit: int = 200) -> List[TaskActivity]:
        """Activity for one task, newest first."""
        result = await self.db.execute(
            select(TaskActivity)
            .where(TaskActivity.task_id == task_id)
            .order_by(TaskActivity.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_since(
        self,
        since: datetime,
        user_ids: Optional[List[UUID]] = None,
    ) -> List[Tuple[TaskActivity, UUID]]:
        """Events at or after ``since`` paired with the owning task's project id."""
        query = (
            select(TaskActivity, Task.project_id)
            .join(Task, Task.id == TaskActivity.task_id)
            .where(
                and_(
                    TaskActivity.created_at >= since,
                    TaskActivity.user_id.is_not(None),
                )
            )
            .order_by(TaskActivity.created_at.desc())
        )
        if user_ids is not None:
            if not user_ids:
                return []
            query = query.where(TaskActivity.user_id.in_(user_ids))
        result = await self.db.execute(query)
        return [(event, project_id) for event, project_id in result.all()]

    async def last_activity_by_user(self, user_ids: List[UUID]) -> dict[UUID, datetime]:
        """Most recent event time per actor; actors without events are absent."""
        if not user_ids:
            return {}
        result = await self.db.execute(
            select(TaskActivity.user_id, func.max(TaskActivity.created_at))
            .where(TaskActivity.user_id.in_(user_ids))
            .group_by(TaskActivity.user_id)
        )
        return {user_id: last_at for user_id, last_at in result.all()}

    async def last_status_change_by_task(self, task_ids: List[UUID]) -> dict[UUID, datetime]:
        if not task_ids:
            return {}
        result = await self.db.execute(
            select(TaskActivity.task_id, func.max(TaskActivity.created_at))
            .where(
                and_(
                    TaskActivity.task_id.in_(task_ids),
                    TaskActivity.type == ActivityKind.STATUS,
                )
            )
            .group_by(TaskActivity.task_id)
        )
        return {task_id: changed_at for task_id, changed_at in result.all()}
