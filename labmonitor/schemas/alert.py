"""
Alert Pydantic schemas.

Each detector records its evidence as one member of the AlertEvidence
union, discriminated by ``alert_type``, and stored in the alert's JSON column.
"""

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from labmonitor.schemas.base import RecordRead

SeverityValue = Literal["low", "medium", "high", "critical"]


class OverdueTaskEvidence(BaseModel):
    alert_type: Literal["task_overdue"] = "task_overdue"
    task_title: str
    project_id: UUID
    due_date: datetime
    days_overdue: int
    status: str
    progress_pct: int


class InactiveStudentEvidence(BaseModel):
    alert_type: Literal["student_inactive"] = "student_inactive"
    student_name: str
    inactive_days_threshold: int
    last_activity_at: Optional[datetime] = None
    days_inactive: Optional[int] = None


class RiskyTask(BaseModel):
    task_id: UUID
    title: str
    risk_score: int
    factors: List[str]


class ProjectRiskEvidence(BaseModel):
    alert_type: Literal["project_risk"] = "project_risk"
    project_name: str
    total_tasks: int
    high_risk_tasks: int
    risk_percentage: int
    risky_tasks: List[RiskyTask] = Field(default_factory=list)


class VelocityDropEvidence(BaseModel):
    alert_type: Literal["velocity_drop"] = "velocity_drop"
    student_name: str
    window_days: int
    velocity_score: int
    velocity_trend: str
    total_activity: int


class BlockedTaskEvidence(BaseModel):
    alert_type: Literal["task_blocked"] = "task_blocked"
    task_title: str
    project_id: UUID
    blocked_since: datetime
    hours_blocked: int


AlertEvidence = Annotated[
    Union[
        OverdueTaskEvidence,
        InactiveStudentEvidence,
        ProjectRiskEvidence,
        VelocityDropEvidence,
        BlockedTaskEvidence,
    ],
    Field(discriminator="alert_type"),
]


class AlertRead(RecordRead):
    """Schema for reading alert data (API response)."""

    type: str
    severity: str
    title: str
    message: str
    user_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    task_id: Optional[UUID] = None
    data: AlertEvidence
    resolved: bool
    resolved_by: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    resolution_reason: Optional[str] = None

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
    def related_entity_id(self) -> Optional[UUID]:
        return self.task_id or self.project_id or self.user_id


class AlertResolveRequest(BaseModel):
    reason: Optional[str] = None


class AlertStatistics(BaseModel):
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)


class AlertConfigurationRead(RecordRead):
    alert_type: str
    enabled: bool
    thresholds: Dict[str, float]
    notify_in_app: bool
    notify_email: bool
    max_alerts_per_day: int
    cooldown_hours: int


class AlertConfigurationUpdate(BaseModel):
    """Schema for updating a configuration. All fields optional."""

    enabled: Optional[bool] = None
    # Merged into the stored thresholds
    thresholds: Optional[Dict[str, float]] = None
    notify_in_app: Optional[bool] = None
    notify_email: Optional[bool] = None
    max_alerts_per_day: Optional[int] = Field(default=None, ge=0)
    cooldown_hours: Optional[int] = Field(default=None, ge=0)

