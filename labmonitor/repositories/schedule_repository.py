"""
Repository for work schedules and their blocks.
"""

from datetime import date
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.models.person import Person
from labmonitor.models.work_schedule import ScheduleBlock, WorkSchedule
from labmonitor.schemas.schedule import ScheduleBlockCreate, ScheduleBlockUpdate
from labmonitor.utils.time import utc_now


class ScheduleRepository:
    """Repository for WorkSchedule and ScheduleBlock operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_schedule(self, schedule_id: UUID) -> Optional[WorkSchedule]:
        result = await self.db.execute(select(WorkSchedule).where(WorkSchedule.id == schedule_id))
        return result.scalar_one_or_none()

    async def list_for_user_week(self, user_id: UUID, week_start: date) -> List[WorkSchedule]:
        """Schedules for one person and week, newest first (normally one)."""
        result = await self.db.execute(
            select(WorkSchedule)
            .where(
                and_(
                    WorkSchedule.user_id == user_id,
                    WorkSchedule.week_start_date == week_start,
                )
            )
            .order_by(WorkSchedule.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_blocks(self, schedule_id: UUID) -> List[ScheduleBlock]:
        result = await self.db.execute(
            select(ScheduleBlock)
            .where(ScheduleBlock.schedule_id == schedule_id)
            .order_by(ScheduleBlock.day_of_week, ScheduleBlock.start_time)
        )
        return list(result.scalars().all())

    async def get_block(self, block_id: UUID) -> Optional[ScheduleBlock]:
        result = await self.db.execute(select(ScheduleBlock).where(ScheduleBlock.id == block_id))
        return result.scalar_one_or_none()

    async def create_block(self, schedule_id: UUID, data: ScheduleBlockCreate) -> ScheduleBlock:
        block = ScheduleBlock(schedule_id=schedule_id, **data.model_dump())
        self.db.add(block)
        await self.db.flush()
        await self.db.refresh(block)
        return block

    async def update_block(self, block: ScheduleBlock, data: ScheduleBlockUpdate) -> ScheduleBlock:
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(block, field, value)
        await self.db.flush()
        await self.db.refresh(block)
        return block

    async def delete_block(self, block: ScheduleBlock) -> None:
        await self.db.delete(block)
        await self.db.flush()

    async def update_schedule(self, schedule: WorkSchedule, **fields: Any) -> WorkSchedule:
        for field, value in fields.items():
            setattr(schedule, field, value)
        schedule.updated_at = utc_now()
        await self.db.flush()
        await self.db.refresh(schedule)
        return schedule

    async def list_with_owner(
        self,
        user_id: Optional[UUID] = None,
        week_start: Optional[date] = None,
    ) -> List[Tuple[WorkSchedule, Person]]:
        """Schedules joined with their owner, newest week first."""
        query = (
            select(WorkSchedule, Person)
            .join(Person, Person.id == WorkSchedule.user_id)
            .order_by(WorkSchedule.week_start_date.desc(), Person.first_name)
        )
        if user_id:
            query = query.where(WorkSchedule.user_id == user_id)
        if week_start:
            query = query.where(WorkSchedule.week_start_date == week_start)
        result = await self.db.execute(query)
        return [(schedule, person) for schedule, person in result.all()]
