"""
Task models.

Represents a unit of assigned project work and who it is assigned to.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labmonitor.models.base_model import JsonType, TimestampedModel
from labmonitor.models.constants import TaskPriority, TaskStatus


class Task(TimestampedModel):
    """
    Task table - a unit of work inside a project.

    Invariant: status "completed" implies progress_pct == 100.
    """
    
    __tablename__ = "project_tasks"
    
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TaskStatus.PENDING, index=True)
    progress_pct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=TaskPriority.MEDIUM)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reminder_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    # Ordered list of {"text": str, "done": bool}
    checklist: Mapped[Optional[list]] = mapped_column(JsonType, nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_project_tasks_due_status", "due_date", "status"),
        Index("ix_project_tasks_reminder_at", "reminder_at"),
    )


class TaskAssignment(TimestampedModel):
    """Assignment of a task to a lab member."""

    __tablename__ = "task_assignments"

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project_tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="uq_task_assignment_task_user"),
    )
