"""
Repository for alerts and alert configurations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.errors import DuplicateAlertError
from labmonitor.models.alert import Alert, AlertConfiguration

DEDUP_INDEX_NAME = "uq_alerts_unresolved_dedup"


def _is_dedup_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    # PostgreSQL names the index; SQLite names the columns
    return DEDUP_INDEX_NAME in text or "alerts.dedup_key" in text


class AlertRepository:
    """Repository for Alert operations. Alerts are never deleted."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, alert_id: UUID) -> Optional[Alert]:
        result = await self.db.execute(select(Alert).where(Alert.id == alert_id))
        return result.scalar_one_or_none()

    async def get_unresolved(self, alert_type: str, dedup_key: str) -> Optional[Alert]:
        result = await self.db.execute(
            select(Alert).where(
                and_(
                    Alert.type == alert_type,
                    Alert.dedup_key == dedup_key,
                    Alert.resolved.is_(False),
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_unresolved(self, user_id: Optional[UUID] = None) -> List[Alert]:
        """Active alerts, newest first, optionally for one linked person."""
        query = select(Alert).where(Alert.resolved.is_(False))
        if user_id:
            query = query.where(Alert.user_id == user_id)
        query = query.order_by(Alert.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_created_since(self, alert_type: str, since: datetime) -> int:
        result = await self.db.execute(
            select(func.count(Alert.id)).where(
                and_(Alert.type == alert_type, Alert.created_at >= since)
            )
        )
        return int(result.scalar_one())

    async def create(self, **fields: Any) -> Alert:
        """Insert an alert in its own savepoint.

        Raises:
            DuplicateAlertError: an unresolved alert with the same type and
                dedup key was inserted first.
        """
        alert = Alert(**fields)
        try:
            async with self.db.begin_nested():
                self.db.add(alert)
        except IntegrityError as exc:
            if not _is_dedup_violation(exc):
                raise
            raise DuplicateAlertError(fields["type"], fields["dedup_key"]) from exc
        await self.db.refresh(alert)
        return alert

    async def mark_resolved(
        self,
        alert: Alert,
        resolved_by: Optional[UUID],
        resolved_at: datetime,
        reason: Optional[str] = None,
    ) -> Alert:
        alert.resolved = True
        alert.resolved_by = resolved_by
        alert.resolved_at = resolved_at
        alert.resolution_reason = reason
        alert.updated_at = resolved_at
        await self.db.flush()
        await self.db.refresh(alert)
        return alert

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    async def get_config(self, alert_type: str) -> Optional[AlertConfiguration]:
        result = await self.db.execute(
            select(AlertConfiguration).where(AlertConfiguration.alert_type == alert_type)
        )
        return result.scalar_one_or_none()

    async def list_configs(self) -> List[AlertConfiguration]:
        result = await self.db.execute(select(AlertConfiguration).order_by(AlertConfiguration.alert_type))
        return list(result.scalars().all())

    async def insert_config_if_absent(self, alert_type: str, defaults: Dict[str, Any]) -> bool:
        """Insert a configuration row unless one exists. Existing rows are never touched."""
        if await self.get_config(alert_type) is not None:
            return False
        record = AlertConfiguration(alert_type=alert_type, **defaults)
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            # Seeded concurrently by another process
            return False
        return True

    async def update_config(self, config: AlertConfiguration, **fields: Any) -> AlertConfiguration:
        for field, value in fields.items():
            setattr(config, field, value)
        await self.db.flush()
        await self.db.refresh(config)
        return config
