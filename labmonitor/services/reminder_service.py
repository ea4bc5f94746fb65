"""
Due-reminder dispatch for tasks.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.config import settings
from labmonitor.repositories.task_repository import TaskRepository
from labmonitor.schemas.notification import OutboundNotification
from labmonitor.services.notifications import LogNotificationDispatcher, NotificationDispatcher, deliver
from labmonitor.services.task_lifecycle_service import TaskLifecycleService
from labmonitor.utils.time import utc_now

logger = logging.getLogger(__name__)


class ReminderService:
    """Sends reminders for tasks whose reminder time has passed, then clears them."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: Optional[NotificationDispatcher] = None,
        notification_timeout: Optional[float] = None,
    ):
        self.tasks = TaskRepository(db)
        self.lifecycle = TaskLifecycleService(db)
        self.dispatcher = dispatcher or LogNotificationDispatcher()
        self.notification_timeout = notification_timeout or settings.NOTIFICATION_TIMEOUT_SECONDS

    async def dispatch_due_reminders(self, now: Optional[datetime] = None) -> int:
        """Returns the number of tasks whose reminder was sent."""
        now = now or utc_now()
        tasks = await self.tasks.list_with_due_reminders(now)

        for task in tasks:
            assignees = await self.tasks.list_assignees(task.id)
            for assignee in assignees:
                await deliver(
                    self.dispatcher,
                    OutboundNotification(
                        recipient_id=assignee.id,
                        title=f"Task reminder: {task.title}",
                        message=task.description or f'Reminder for task "{task.title}"',
                        kind="reminder",
                        related_type="task",
                        related_id=task.id,
                        metadata={"task_id": str(task.id), "due_date": task.due_date.isoformat() if task.due_date else None},
                    ),
                    self.notification_timeout,
                )
            await self.lifecycle.set_reminder(task.id, None, None)

        if tasks:
            logger.info("Dispatched reminders for %d task(s)", len(tasks))
        return len(tasks)
