"""
Alert lifecycle: detection passes, notification fan-out, resolution,
queries and configuration.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.config import settings
from labmonitor.core.permissions import Roles
from labmonitor.errors import NotFoundError
from labmonitor.models.alert import Alert, AlertConfiguration
from labmonitor.models.constants import AlertSeverity, AlertType
from labmonitor.repositories.alert_repository import AlertRepository
from labmonitor.repositories.person_repository import PersonRepository
from labmonitor.schemas.alert import AlertConfigurationUpdate, AlertRead, AlertStatistics
from labmonitor.schemas.notification import OutboundNotification
from labmonitor.services.notifications import LogNotificationDispatcher, NotificationDispatcher, deliver
from labmonitor.services.risk_detection_service import (
    DEFAULT_ALERT_CONFIGURATIONS,
    RiskDetectionService,
    default_configuration,
)
from labmonitor.utils.time import utc_now

logger = logging.getLogger(__name__)


class AlertService:
    """Service for running detectors and managing alert state."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: Optional[NotificationDispatcher] = None,
        detector_timeout: Optional[float] = None,
        notification_timeout: Optional[float] = None,
    ):
        self.db = db
        self.repository = AlertRepository(db)
        self.people = PersonRepository(db)
        self.detection = RiskDetectionService(db)
        self.dispatcher = dispatcher or LogNotificationDispatcher()
        self.detector_timeout = detector_timeout or settings.DETECTOR_TIMEOUT_SECONDS
        self.notification_timeout = notification_timeout or settings.NOTIFICATION_TIMEOUT_SECONDS

    async def run_all_detectors(self, now: Optional[datetime] = None) -> List[AlertRead]:
        """Run every detector and notify supervisors about the new alerts.

        Each detector runs in its own transaction with a bounded timeout. A
        failing detector is rolled back and logged; the rest still run.
        """
        now = now or utc_now()
        created: List[AlertRead] = []

        for alert_type in AlertType.ALL:
            try:
                alerts = await asyncio.wait_for(
                    self.detection.run_detector(alert_type, now),
                    timeout=self.detector_timeout,
                )
                snapshot = [AlertRead.model_validate(alert) for alert in alerts]
                await self.db.commit()
            except asyncio.TimeoutError:
                await self.db.rollback()
                logger.error(
                    "Detector %s timed out after %.1fs, store unavailable; skipping this pass",
                    alert_type,
                    self.detector_timeout,
                )
            except (OperationalError, InterfaceError) as exc:
                await self.db.rollback()
                logger.error("Detector %s abandoned, store unavailable: %s", alert_type, exc)
            except Exception:
                await self.db.rollback()
                logger.exception("Detector %s failed", alert_type)
            else:
                created.extend(snapshot)

        for alert in created:
            await self.notify_supervisors(alert)

        logger.info("Alert pass finished: %d new alert(s)", len(created))
        return created

    async def notify_supervisors(self, alert: AlertRead) -> int:
        """Fan one alert out to every active supervisor. Returns deliveries made."""
        recipients = await self.people.list_by_roles(Roles.SUPERVISORY)
        config = await self.repository.get_config(alert.type)
        delivered = 0

        for recipient in recipients:
            notification = OutboundNotification(
                recipient_id=recipient.id,
                title=alert.title,
                message=alert.message,
                kind="alert",
                related_type=alert.related_entity_type,
                related_id=alert.related_entity_id,
                metadata={
                    "alert_id": str(alert.id),
                    "alert_type": alert.type,
                    "severity": alert.severity,
                    "original_data": alert.data.model_dump(mode="json"),
                    "notify_in_app": config.notify_in_app if config else True,
                    "notify_email": config.notify_email if config else False,
                    "cooldown_hours": config.cooldown_hours if config else 24,
                },
            )
            if await deliver(self.dispatcher, notification, self.notification_timeout):
                delivered += 1
        return delivered

    async def resolve(
        self,
        alert_id: UUID,
        resolver_id: Optional[UUID],
        reason: Optional[str] = None,
    ) -> Alert:
        """Mark an alert resolved. Already resolved alerts are returned unchanged."""
        alert = await self.repository.get_by_id(alert_id)
        if not alert:
            raise NotFoundError("Alert", alert_id)
        if alert.resolved:
            return alert
        alert = await self.repository.mark_resolved(alert, resolver_id, utc_now(), reason)
        logger.info("Alert %s (%s) resolved by %s", alert.id, alert.type, resolver_id)
        return alert

    async def get_active(self, person_id: Optional[UUID] = None) -> List[Alert]:
        return await self.repository.list_unresolved(person_id)

    async def get_statistics(self) -> AlertStatistics:
        active = await self.repository.list_unresolved()
        severities = Counter(alert.severity for alert in active)
        by_type: Dict[str, int] = {alert_type: 0 for alert_type in AlertType.ALL}
        for alert in active:
            by_type[alert.type] = by_type.get(alert.type, 0) + 1
        return AlertStatistics(
            total=len(active),
            critical=severities[AlertSeverity.CRITICAL],
            high=severities[AlertSeverity.HIGH],
            medium=severities[AlertSeverity.MEDIUM],
            low=severities[AlertSeverity.LOW],
            by_type=by_type,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    async def ensure_default_configurations(self) -> int:
        """Seed missing configuration rows. Returns how many were inserted."""
        inserted = 0
        for alert_type in DEFAULT_ALERT_CONFIGURATIONS:
            if await self.repository.insert_config_if_absent(alert_type, default_configuration(alert_type)):
                inserted += 1
        if inserted:
            logger.info("Seeded %d default alert configuration(s)", inserted)
        return inserted

    async def list_configurations(self) -> List[AlertConfiguration]:
        return await self.repository.list_configs()

    async def update_configuration(self, alert_type: str, data: AlertConfigurationUpdate) -> AlertConfiguration:
        if alert_type not in DEFAULT_ALERT_CONFIGURATIONS:
            raise NotFoundError("Alert configuration", alert_type)
        config = await self.repository.get_config(alert_type)
        if config is None:
            await self.repository.insert_config_if_absent(alert_type, default_configuration(alert_type))
            config = await self.repository.get_config(alert_type)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "thresholds" in changes:
            changes["thresholds"] = {**(config.thresholds or {}), **changes["thresholds"]}
        return await self.repository.update_config(config, **changes)
