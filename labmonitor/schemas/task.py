"""
Task Pydantic schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from labmonitor.schemas.base import RecordRead

TaskStatusValue = Literal["pending", "in-progress", "completed", "blocked"]
ReviewActionValue = Literal["submit", "approve", "reject"]


class ChecklistItem(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    done: bool = False


class TaskRead(RecordRead):
    """Schema for reading task data (API response)."""
    
    project_id: UUID
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: str
    progress_pct: int
    priority: str
    is_required: bool
    reminder_at: Optional[datetime] = None
    checklist: Optional[List[ChecklistItem]] = None
    created_by: Optional[UUID] = None


class TaskActivityRead(BaseModel):
    """Schema for an activity trail entry."""

    id: UUID
    task_id: UUID
    user_id: Optional[UUID] = None
    type: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskStatusUpdate(BaseModel):
    status: TaskStatusValue
    note: Optional[str] = None


class TaskProgressUpdate(BaseModel):
    # Out-of-range values are clamped by the lifecycle service
    progress_pct: int
    note: Optional[str] = None


class TaskChecklistUpdate(BaseModel):
    items: List[ChecklistItem]


class TaskReminderUpdate(BaseModel):
    reminder_at: Optional[datetime] = None


class TaskReviewRequest(BaseModel):
    action: ReviewActionValue
    note: Optional[str] = None


class TaskCommentCreate(BaseModel):
    message: str = Field(..., min_length=1)
