"""
Project model.

Read-only from the engine's point of view; used to group tasks for the
project-risk detector.
"""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from labmonitor.models.base_model import TimestampedModel


class Project(TimestampedModel):
    """Research project owning a set of tasks."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="active")
