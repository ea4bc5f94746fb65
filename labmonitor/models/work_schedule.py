"""
Work schedule models.

A person declares one WorkSchedule per ISO week, made of ScheduleBlocks.
total_scheduled_hours is a cache recomputed whenever blocks change.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labmonitor.models.base_model import TimestampedModel
from labmonitor.models.constants import ScheduleStatus


class WorkSchedule(TimestampedModel):
    """A person's schedule declaration for one week."""

    __tablename__ = "work_schedules"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_scheduled_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ScheduleStatus.DRAFT)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_work_schedules_user_week", "user_id", "week_start_date"),
    )


class ScheduleBlock(TimestampedModel):
    """One contiguous planned interval on a day of the week."""

    __tablename__ = "schedule_blocks"

    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("work_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    planned_activity: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
