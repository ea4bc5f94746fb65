"""
Weekly schedule validation and the schedule submission workflow.
"""

import logging
from datetime import date
from itertools import combinations
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.config import settings
from labmonitor.errors import AppError, InvalidFormatError, NotFoundError
from labmonitor.models.constants import ScheduleStatus
from labmonitor.models.work_schedule import ScheduleBlock, WorkSchedule
from labmonitor.repositories.person_repository import PersonRepository
from labmonitor.repositories.schedule_repository import ScheduleRepository
from labmonitor.schemas.schedule import (
    ScheduleBlockCreate,
    ScheduleBlockUpdate,
    ScheduleComplianceRow,
    ScheduleValidation,
)
from labmonitor.utils.time import utc_now
from labmonitor.utils.time_intervals import block_duration_hours, intervals_overlap, parse_time_to_minutes

logger = logging.getLogger(__name__)


def evaluate_blocks(blocks: Sequence[ScheduleBlock]) -> Tuple[float, List[str]]:
    """Sum block hours and collect structural violations for one schedule.

    Blocks with a malformed time add a violation and are left out of both the
    hour total and the overlap checks.
    """
    violations: List[str] = []
    usable: List[ScheduleBlock] = []
    hours = 0.0

    for block in blocks:
        try:
            hours += block_duration_hours(block.start_time, block.end_time)
        except InvalidFormatError as exc:
            violations.append(f"Invalid time format in {block.day_of_week} block: {exc.message}")
            continue
        usable.append(block)

    for first, second in combinations(usable, 2):
        if first.day_of_week != second.day_of_week:
            continue
        if intervals_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
            violations.append(f"Overlapping time blocks on {first.day_of_week}")

    return hours, violations


class ScheduleService:
    """Service for schedule validation, block edits and approval state."""

    def __init__(self, db: AsyncSession, minimum_weekly_hours: Optional[float] = None):
        self.db = db
        self.repo = ScheduleRepository(db)
        self.people = PersonRepository(db)
        self.minimum_weekly_hours = (
            settings.MINIMUM_WEEKLY_HOURS if minimum_weekly_hours is None else minimum_weekly_hours
        )

    async def validate(self, person_id: UUID, week_start: date) -> ScheduleValidation:
        """Check one person's week for overlaps and the minimum-hours policy."""
        schedules = await self.repo.list_for_user_week(person_id, week_start)
        violations: List[str] = []
        total_hours = 0.0

        for schedule in schedules:
            blocks = await self.repo.list_blocks(schedule.id)
            hours, schedule_violations = evaluate_blocks(blocks)
            total_hours += hours
            violations.extend(schedule_violations)

        if total_hours < self.minimum_weekly_hours:
            violations.append(
                f"Weekly schedule must include at least {self.minimum_weekly_hours:g} hours "
                f"(current: {total_hours:.1f})"
            )

        return ScheduleValidation(
            is_valid=not violations,
            total_hours=round(total_hours, 1),
            violations=violations,
        )

    # ------------------------------------------------------------------
    # Block edits (each one refreshes the cached total)
    # ------------------------------------------------------------------
    async def _get_schedule(self, schedule_id: UUID) -> WorkSchedule:
        schedule = await self.repo.get_schedule(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)
        return schedule

    async def recompute_total_hours(self, schedule_id: UUID) -> WorkSchedule:
        schedule = await self._get_schedule(schedule_id)
        blocks = await self.repo.list_blocks(schedule_id)
        hours, _ = evaluate_blocks(blocks)
        return await self.repo.update_schedule(schedule, total_scheduled_hours=round(hours, 2))

    async def list_blocks(self, schedule_id: UUID) -> List[ScheduleBlock]:
        await self._get_schedule(schedule_id)
        return await self.repo.list_blocks(schedule_id)

    async def add_block(self, schedule_id: UUID, data: ScheduleBlockCreate) -> ScheduleBlock:
        await self._get_schedule(schedule_id)
        parse_time_to_minutes(data.start_time)
        parse_time_to_minutes(data.end_time)
        block = await self.repo.create_block(schedule_id, data)
        await self.recompute_total_hours(schedule_id)
        return block

    async def update_block(self, block_id: UUID, data: ScheduleBlockUpdate) -> ScheduleBlock:
        block = await self.repo.get_block(block_id)
        if not block:
            raise NotFoundError("Schedule block", block_id)
        if data.start_time is not None:
            parse_time_to_minutes(data.start_time)
        if data.end_time is not None:
            parse_time_to_minutes(data.end_time)
        block = await self.repo.update_block(block, data)
        await self.recompute_total_hours(block.schedule_id)
        return block

    async def delete_block(self, block_id: UUID) -> None:
        block = await self.repo.get_block(block_id)
        if not block:
            raise NotFoundError("Schedule block", block_id)
        schedule_id = block.schedule_id
        await self.repo.delete_block(block)
        await self.recompute_total_hours(schedule_id)

    # ------------------------------------------------------------------
    # Approval workflow
    # ------------------------------------------------------------------
    async def submit(self, schedule_id: UUID) -> WorkSchedule:
        """Validate the owner's week and move the schedule to submitted."""
        schedule = await self._get_schedule(schedule_id)
        validation = await self.validate(schedule.user_id, schedule.week_start_date)
        if not validation.is_valid:
            raise AppError(
                status.HTTP_400_BAD_REQUEST,
                "SCHEDULE_INVALID",
                "Schedule validation failed",
                {"violations": validation.violations},
            )
        logger.info("Schedule %s submitted with %.1f hours", schedule_id, validation.total_hours)
        return await self.repo.update_schedule(
            schedule,
            status=ScheduleStatus.SUBMITTED,
            total_scheduled_hours=validation.total_hours,
        )

    async def approve(self, schedule_id: UUID, approver_id: UUID) -> WorkSchedule:
        schedule = await self._get_schedule(schedule_id)
        return await self.repo.update_schedule(
            schedule,
            status=ScheduleStatus.APPROVED,
            approved_by=approver_id,
            approved_at=utc_now(),
        )

    async def reject(self, schedule_id: UUID, approver_id: UUID, notes: Optional[str] = None) -> WorkSchedule:
        schedule = await self._get_schedule(schedule_id)
        fields = {
            "status": ScheduleStatus.REJECTED,
            "approved_by": approver_id,
            "approved_at": utc_now(),
        }
        if notes is not None:
            fields["notes"] = notes
        return await self.repo.update_schedule(schedule, **fields)

    async def compliance(
        self,
        person_id: Optional[UUID] = None,
        week_start: Optional[date] = None,
    ) -> List[ScheduleComplianceRow]:
        """Per-schedule compliance rows for the dashboard."""
        rows = await self.repo.list_with_owner(person_id, week_start)
        return [
            ScheduleComplianceRow(
                user_id=person.id,
                user_name=person.display_name,
                week_start_date=schedule.week_start_date,
                total_hours=float(schedule.total_scheduled_hours or 0),
                status=schedule.status,
                approved=schedule.status == ScheduleStatus.APPROVED,
                compliant=float(schedule.total_scheduled_hours or 0) >= self.minimum_weekly_hours,
                requires_attention=schedule.status in (ScheduleStatus.DRAFT, ScheduleStatus.SUBMITTED),
            )
            for schedule, person in rows
        ]
