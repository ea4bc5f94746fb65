"""Notification dispatchers."""

from labmonitor.services.notifications.base import NotificationDispatcher, deliver
from labmonitor.services.notifications.log_dispatcher import LogNotificationDispatcher

__all__ = [
    "NotificationDispatcher",
    "LogNotificationDispatcher",
    "deliver",
]
