"""
Alert router - active alerts, statistics, manual runs and configuration.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.dependencies import get_actor_id, get_db, get_monitoring_runner
from labmonitor.schemas.alert import (
    AlertConfigurationRead,
    AlertConfigurationUpdate,
    AlertRead,
    AlertResolveRequest,
    AlertStatistics,
)
from labmonitor.services.alert_service import AlertService
from labmonitor.workers.monitoring_runner import MonitoringRunner

router = APIRouter(tags=["alerts"])


@router.get("/alerts", response_model=List[AlertRead])
async def list_active_alerts(
    user_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
):
    """Unresolved alerts, newest first, optionally for one linked person."""
    return await AlertService(db).get_active(user_id)


@router.get("/alerts/statistics", response_model=AlertStatistics)
async def alert_statistics(db: AsyncSession = Depends(get_db)):
    return await AlertService(db).get_statistics()


@router.post("/alerts/run", response_model=List[AlertRead])
async def run_alert_detection(runner: MonitoringRunner = Depends(get_monitoring_runner)):
    """
    Run all detectors now.

    Returns the alerts created by this pass. If a pass is already running
    the request returns an empty list without starting another.
    """
    return await runner.run_alert_sweep_once()


@router.post("/alerts/{alert_id}/resolve", response_model=AlertRead)
async def resolve_alert(
    alert_id: UUID,
    data: Optional[AlertResolveRequest] = None,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    reason = data.reason if data else None
    return await AlertService(db).resolve(alert_id, actor_id, reason)


@router.get("/alert-configurations", response_model=List[AlertConfigurationRead])
async def list_alert_configurations(db: AsyncSession = Depends(get_db)):
    return await AlertService(db).list_configurations()


@router.put("/alert-configurations/{alert_type}", response_model=AlertConfigurationRead)
async def update_alert_configuration(
    alert_type: str,
    data: AlertConfigurationUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Change enabled flag, thresholds (merged), channels or limits for one type."""
    return await AlertService(db).update_configuration(alert_type, data)
