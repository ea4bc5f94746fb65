"""
Dispatcher interface for notification delivery.

Delivery (push, email, in-app storage) is owned by the surrounding system;
the engine only hands over OutboundNotification payloads.
"""

import asyncio
import logging
from typing import Protocol

from labmonitor.schemas.notification import OutboundNotification

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    """Interface for delivery collaborators."""

    async def dispatch(self, notification: OutboundNotification) -> None:
        ...


async def deliver(
    dispatcher: NotificationDispatcher,
    notification: OutboundNotification,
    timeout: float,
) -> bool:
    """Hand one notification to the dispatcher with a bounded wait.

    Failures are logged and reported as False; they never propagate.
    """
    try:
        await asyncio.wait_for(dispatcher.dispatch(notification), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        logger.error(
            "Notification to %s timed out after %.1fs (%s)",
            notification.recipient_id,
            timeout,
            notification.title,
        )
    except Exception:
        logger.exception("Failed to deliver notification to %s", notification.recipient_id)
    return False
