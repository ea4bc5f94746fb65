"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from labmonitor.models.person import Person
from labmonitor.models.project import Project
from labmonitor.models.task import Task, TaskAssignment
from labmonitor.models.task_activity import TaskActivity
from labmonitor.models.work_schedule import WorkSchedule, ScheduleBlock
from labmonitor.models.alert import Alert, AlertConfiguration

# Export all models
__all__ = [
    "Person",
    "Project",
    "Task",
    "TaskAssignment",
    "TaskActivity",
    "WorkSchedule",
    "ScheduleBlock",
    "Alert",
    "AlertConfiguration",
]
