"""
Task router - lifecycle endpoints and the activity trail.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.dependencies import get_actor_id, get_db
from labmonitor.schemas.task import (
    TaskActivityRead,
    TaskChecklistUpdate,
    TaskCommentCreate,
    TaskProgressUpdate,
    TaskRead,
    TaskReminderUpdate,
    TaskReviewRequest,
    TaskStatusUpdate,
)
from labmonitor.services.task_lifecycle_service import TaskLifecycleService

router = APIRouter(tags=["tasks"])


@router.get("/tasks/{task_id}", response_model=TaskRead)
async def get_task(task_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a task by ID."""
    return await TaskLifecycleService(db).get_task(task_id)


@router.get("/tasks/{task_id}/activity", response_model=List[TaskActivityRead])
async def list_task_activity(task_id: UUID, db: AsyncSession = Depends(get_db)):
    """Activity trail for a task, newest first."""
    return await TaskLifecycleService(db).list_activity(task_id)


@router.get("/projects/{project_id}/tasks", response_model=List[TaskRead])
async def list_project_tasks(project_id: UUID, db: AsyncSession = Depends(get_db)):
    return await TaskLifecycleService(db).list_by_project(project_id)


@router.get("/users/{user_id}/tasks", response_model=List[TaskRead])
async def list_user_tasks(user_id: UUID, db: AsyncSession = Depends(get_db)):
    return await TaskLifecycleService(db).list_by_assignee(user_id)


@router.put("/tasks/{task_id}/status", response_model=TaskRead)
async def update_task_status(
    task_id: UUID,
    data: TaskStatusUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Set the status directly. Completing a task also sets progress to 100."""
    return await TaskLifecycleService(db).set_status(task_id, data.status, actor_id, data.note)


@router.put("/tasks/{task_id}/progress", response_model=TaskRead)
async def update_task_progress(
    task_id: UUID,
    data: TaskProgressUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Set progress (clamped to 0-100). Reaching 100 completes the task."""
    return await TaskLifecycleService(db).set_progress(task_id, data.progress_pct, actor_id, data.note)


@router.put("/tasks/{task_id}/checklist", response_model=TaskRead)
async def update_task_checklist(
    task_id: UUID,
    data: TaskChecklistUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TaskLifecycleService(db).update_checklist(task_id, data.items, actor_id)


@router.put("/tasks/{task_id}/reminder", response_model=TaskRead)
async def update_task_reminder(
    task_id: UUID,
    data: TaskReminderUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TaskLifecycleService(db).set_reminder(task_id, data.reminder_at, actor_id)


@router.post("/tasks/{task_id}/review", response_model=TaskRead)
async def review_task(
    task_id: UUID,
    data: TaskReviewRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit, approve or reject a task."""
    return await TaskLifecycleService(db).review(task_id, data.action, actor_id, data.note)


@router.post(
    "/tasks/{task_id}/comments",
    response_model=TaskActivityRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_task_comment(
    task_id: UUID,
    data: TaskCommentCreate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TaskLifecycleService(db).add_comment(task_id, actor_id, data.message)
