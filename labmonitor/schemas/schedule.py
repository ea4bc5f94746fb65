"""
Work schedule Pydantic schemas.
"""

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from labmonitor.schemas.base import RecordRead

DayOfWeek = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class ScheduleBlockCreate(BaseModel):
    """Schema for adding a block to a schedule."""

    day_of_week: DayOfWeek
    start_time: str = Field(..., max_length=5)
    end_time: str = Field(..., max_length=5)
    location: Optional[str] = None
    planned_activity: Optional[str] = None


class ScheduleBlockUpdate(BaseModel):
    """Schema for editing a block. All fields optional."""

    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[str] = Field(default=None, max_length=5)
    end_time: Optional[str] = Field(default=None, max_length=5)
    location: Optional[str] = None
    planned_activity: Optional[str] = None


class ScheduleBlockRead(RecordRead):
    schedule_id: UUID
    day_of_week: str
    start_time: str
    end_time: str
    location: Optional[str] = None
    planned_activity: Optional[str] = None


class WorkScheduleRead(RecordRead):
    user_id: UUID
    week_start_date: date
    total_scheduled_hours: float
    status: str
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    notes: Optional[str] = None


class ScheduleValidation(BaseModel):
    """Result of validating one person's week."""

    is_valid: bool
    total_hours: float
    violations: List[str] = Field(default_factory=list)


class ScheduleComplianceRow(BaseModel):
    user_id: UUID
    user_name: str
    week_start_date: date
    total_hours: float
    status: str
    approved: bool
    compliant: bool
    requires_attention: bool

    model_config = ConfigDict(from_attributes=True)
