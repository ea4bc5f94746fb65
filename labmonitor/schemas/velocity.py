"""
Velocity metric schema (derived, never persisted).
"""

from typing import Dict, Literal
from uuid import UUID

from pydantic import BaseModel, Field

VelocityTrend = Literal["increasing", "decreasing", "stable", "new", "inactive"]


class VelocityMetric(BaseModel):
    user_id: UUID
    user_name: str = ""
    window_days: int
    total_activity: int = 0
    progress_updates: int = 0
    status_changes: int = 0
    comments: int = 0
    unique_tasks_worked_on: int = 0
    unique_projects_active: int = 0
    # ISO date -> event count
    daily_activity: Dict[str, int] = Field(default_factory=dict)
    velocity_score: int = 0
    velocity_trend: VelocityTrend = "inactive"
