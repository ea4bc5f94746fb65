"""
Alert models.

Alert rows are created by detectors, resolved one-way, and never deleted.
The partial unique index enforces at most one unresolved alert per
(type, linked entity).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from labmonitor.models.base_model import JsonType, TimestampedModel


def build_dedup_key(
    task_id: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> str:
    """Key of the most specific linked entity: task, then project, then user."""
    if task_id is not None:
        return f"task:{task_id}"
    if project_id is not None:
        return f"project:{project_id}"
    if user_id is not None:
        return f"user:{user_id}"
    return "system"


class Alert(TimestampedModel):
    """A detected risk condition."""

    __tablename__ = "alerts"

    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    task_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project_tasks.id", ondelete="SET NULL"),
        nullable=True,
    )
    dedup_key: Mapped[str] = mapped_column(String(80), nullable=False)
    # Evidence payload, shape depends on type (see schemas.alert)
    data: Mapped[dict] = mapped_column(JsonType, nullable=False, default=dict)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index(
            "uq_alerts_unresolved_dedup",
            "type",
            "dedup_key",
            unique=True,
            postgresql_where=text("resolved = false"),
            sqlite_where=text("resolved = 0"),
        ),
        Index("ix_alerts_resolved_created", "resolved", "created_at"),
    )

    @property
    def related_entity_type(self) -> str:
        if self.task_id:
            return "task"
        if self.project_id:
            return "project"
        if self.user_id:
            return "user"
        return "system"

    @property
    def related_entity_id(self) -> Optional[uuid.UUID]:
        return self.task_id or self.project_id or self.user_id


class AlertConfiguration(TimestampedModel):
    """Per-type detection policy."""

    __tablename__ = "alert_configurations"

    alert_type: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    thresholds: Mapped[dict] = mapped_column(JsonType, nullable=False, default=dict)
    notify_in_app: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_alerts_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    cooldown_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
