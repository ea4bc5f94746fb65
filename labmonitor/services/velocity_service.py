"""
Velocity analysis over the task activity trail.
"""

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.config import settings
from labmonitor.core.permissions import Roles
from labmonitor.errors import NotFoundError
from labmonitor.models.constants import ActivityKind
from labmonitor.models.person import Person
from labmonitor.models.task_activity import TaskActivity
from labmonitor.repositories.person_repository import PersonRepository
from labmonitor.repositories.task_activity_repository import TaskActivityRepository
from labmonitor.schemas.velocity import VelocityMetric
from labmonitor.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def classify_trend(first_half: int, second_half: int) -> str:
    if first_half == 0 and second_half == 0:
        return "inactive"
    if first_half == 0:
        return "new"
    if second_half > first_half:
        return "increasing"
    if second_half < first_half:
        return "decreasing"
    return "stable"


def summarize_activity(
    user_id: UUID,
    events: Iterable[Tuple[TaskActivity, UUID]],
    window_days: int,
    now: datetime,
    user_name: str = "",
) -> VelocityMetric:
    """Build one person's metric from (event, project_id) pairs inside the window.

    score = round(total / window_days * 10 + min(distinct_tasks * 2, 20)).
    The trend compares event counts before and after now - floor(window_days / 2) days.
    """
    midpoint = now - timedelta(days=window_days // 2)
    kinds: Counter = Counter()
    daily: Dict[str, int] = defaultdict(int)
    tasks = set()
    projects = set()
    first_half = second_half = 0

    for event, project_id in events:
        created_at = ensure_utc(event.created_at)
        kinds[event.type] += 1
        daily[created_at.date().isoformat()] += 1
        tasks.add(event.task_id)
        projects.add(project_id)
        if created_at >= midpoint:
            second_half += 1
        else:
            first_half += 1

    total = first_half + second_half
    score = round(total / window_days * 10 + min(len(tasks) * 2, 20)) if window_days > 0 else 0

    return VelocityMetric(
        user_id=user_id,
        user_name=user_name,
        window_days=window_days,
        total_activity=total,
        progress_updates=kinds[ActivityKind.PROGRESS],
        status_changes=kinds[ActivityKind.STATUS],
        comments=kinds[ActivityKind.COMMENT],
        unique_tasks_worked_on=len(tasks),
        unique_projects_active=len(projects),
        daily_activity=dict(sorted(daily.items())),
        velocity_score=score,
        velocity_trend=classify_trend(first_half, second_half),
    )


class VelocityService:
    """Service for per-person velocity metrics."""

    def __init__(self, db: AsyncSession):
        self.activity = TaskActivityRepository(db)
        self.people = PersonRepository(db)

    async def analyze(
        self,
        person_id: Optional[UUID] = None,
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Union[VelocityMetric, List[VelocityMetric]]:
        """Metric for one person, or for every monitored person with activity."""
        window_days = window_days or settings.VELOCITY_WINDOW_DAYS
        now = now or utc_now()

        if person_id is None:
            persons = await self.people.list_by_roles(Roles.MONITORED)
            return await self.analyze_many(persons, window_days, now)

        person = await self.people.get_by_id(person_id)
        if not person:
            raise NotFoundError("Person", person_id)
        events = await self.activity.list_since(now - timedelta(days=window_days), [person_id])
        return summarize_activity(person_id, events, window_days, now, person.display_name)

    async def analyze_many(
        self,
        persons: List[Person],
        window_days: int,
        now: datetime,
    ) -> List[VelocityMetric]:
        """Metrics for the given persons; persons without events in the window are omitted."""
        by_id = {person.id: person for person in persons}
        events = await self.activity.list_since(now - timedelta(days=window_days), list(by_id))

        grouped: Dict[UUID, List[Tuple[TaskActivity, UUID]]] = defaultdict(list)
        for event, project_id in events:
            grouped[event.user_id].append((event, project_id))

        metrics = [
            summarize_activity(user_id, user_events, window_days, now, by_id[user_id].display_name)
            for user_id, user_events in grouped.items()
        ]
        logger.debug("Computed velocity for %d of %d persons", len(metrics), len(persons))
        return metrics
