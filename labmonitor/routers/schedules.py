"""
Schedule router - validation, block edits, approval and compliance.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.dependencies import get_db, require_actor_id
from labmonitor.schemas.schedule import (
    ScheduleBlockCreate,
    ScheduleBlockRead,
    ScheduleBlockUpdate,
    ScheduleComplianceRow,
    ScheduleValidation,
    WorkScheduleRead,
)
from labmonitor.services.schedule_service import ScheduleService

router = APIRouter(tags=["schedules"])


@router.get("/schedule-validation/{user_id}", response_model=ScheduleValidation)
async def validate_schedule(
    user_id: UUID,
    week_start: date = Query(..., description="ISO week start date"),
    db: AsyncSession = Depends(get_db),
):
    """Check a person's week for overlapping blocks and the minimum-hours policy."""
    return await ScheduleService(db).validate(user_id, week_start)


@router.get("/work-schedules/{schedule_id}/blocks", response_model=List[ScheduleBlockRead])
async def list_schedule_blocks(schedule_id: UUID, db: AsyncSession = Depends(get_db)):
    return await ScheduleService(db).list_blocks(schedule_id)


@router.post(
    "/work-schedules/{schedule_id}/blocks",
    response_model=ScheduleBlockRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_schedule_block(
    schedule_id: UUID,
    data: ScheduleBlockCreate,
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService(db).add_block(schedule_id, data)


@router.put("/schedule-blocks/{block_id}", response_model=ScheduleBlockRead)
async def update_schedule_block(
    block_id: UUID,
    data: ScheduleBlockUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService(db).update_block(block_id, data)


@router.delete("/schedule-blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule_block(block_id: UUID, db: AsyncSession = Depends(get_db)):
    await ScheduleService(db).delete_block(block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/work-schedules/{schedule_id}/submit", response_model=WorkScheduleRead)
async def submit_schedule(schedule_id: UUID, db: AsyncSession = Depends(get_db)):
    """Submit for approval. Returns 400 with the violations if the week is invalid."""
    return await ScheduleService(db).submit(schedule_id)


@router.put("/work-schedules/{schedule_id}/approve", response_model=WorkScheduleRead)
async def approve_schedule(
    schedule_id: UUID,
    approver_id: UUID = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService(db).approve(schedule_id, approver_id)


@router.put("/work-schedules/{schedule_id}/reject", response_model=WorkScheduleRead)
async def reject_schedule(
    schedule_id: UUID,
    notes: Optional[str] = Body(None, embed=True),
    approver_id: UUID = Depends(require_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService(db).reject(schedule_id, approver_id, notes)


@router.get("/schedule-compliance", response_model=List[ScheduleComplianceRow])
async def schedule_compliance(
    user_id: Optional[UUID] = None,
    week_start: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
):
    """Per-schedule compliance rows, newest week first."""
    return await ScheduleService(db).compliance(user_id, week_start)
