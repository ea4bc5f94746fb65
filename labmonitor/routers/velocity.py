"""Velocity router."""

from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.dependencies import get_db
from labmonitor.schemas.velocity import VelocityMetric
from labmonitor.services.velocity_service import VelocityService

router = APIRouter(tags=["velocity"])


@router.get("/velocity", response_model=Union[VelocityMetric, List[VelocityMetric]])
async def get_velocity(
    user_id: Optional[UUID] = None,
    days: Optional[int] = Query(None, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """One person's metric when user_id is given, otherwise every monitored person with activity."""
    return await VelocityService(db).analyze(user_id, days)
