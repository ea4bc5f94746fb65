"""Default dispatcher that records notifications in the application log."""

import logging

from labmonitor.schemas.notification import OutboundNotification

logger = logging.getLogger(__name__)


class LogNotificationDispatcher:
    """Used when no delivery collaborator is wired in."""

    async def dispatch(self, notification: OutboundNotification) -> None:
        logger.info(
            "[%s] to=%s related=%s:%s title=%s",
            notification.kind,
            notification.recipient_id,
            notification.related_type,
            notification.related_id,
            notification.title,
        )
