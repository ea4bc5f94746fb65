"""
Risk detectors.

Five independent detectors read current task, activity and directory state
and emit Alert rows. Each one consults its AlertConfiguration for thresholds
and skips entities that already carry an unresolved alert of the same type.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.core.permissions import Roles
from labmonitor.errors import DuplicateAlertError
from labmonitor.models.alert import Alert, build_dedup_key
from labmonitor.models.constants import AlertSeverity, AlertType, TaskStatus
from labmonitor.models.task import Task
from labmonitor.repositories.alert_repository import AlertRepository
from labmonitor.repositories.person_repository import PersonRepository
from labmonitor.repositories.project_repository import ProjectRepository
from labmonitor.repositories.task_activity_repository import TaskActivityRepository
from labmonitor.repositories.task_repository import TaskRepository
from labmonitor.schemas.alert import (
    BlockedTaskEvidence,
    InactiveStudentEvidence,
    OverdueTaskEvidence,
    ProjectRiskEvidence,
    RiskyTask,
    VelocityDropEvidence,
)
from labmonitor.services.velocity_service import VelocityService
from labmonitor.utils.time import ensure_utc

logger = logging.getLogger(__name__)


def _defaults(thresholds: Dict[str, float], notify_email: bool) -> Dict[str, Any]:
    return {
        "enabled": True,
        "thresholds": thresholds,
        "notify_in_app": True,
        "notify_email": notify_email,
        "max_alerts_per_day": 100,
        "cooldown_hours": 24,
    }


DEFAULT_ALERT_CONFIGURATIONS: Dict[str, Dict[str, Any]] = {
    AlertType.TASK_OVERDUE: _defaults({"grace_days": 1, "high_days": 3, "critical_days": 7}, True),
    AlertType.STUDENT_INACTIVE: _defaults({"inactive_days": 7}, False),
    AlertType.PROJECT_RISK: _defaults({"high_risk_pct": 60, "critical_pct": 80}, True),
    AlertType.VELOCITY_DROP: _defaults({"window_days": 14, "max_score": 30}, False),
    AlertType.TASK_BLOCKED: _defaults({"blocked_hours": 48}, True),
}


def default_configuration(alert_type: str) -> Dict[str, Any]:
    """Fresh copy of the seed row for one alert type."""
    defaults = DEFAULT_ALERT_CONFIGURATIONS[alert_type]
    return dict(defaults, thresholds=dict(defaults["thresholds"]))


# ----------------------------------------------------------------------
# Per-task risk
# ----------------------------------------------------------------------
HIGH_RISK_SCORE = 50
MEDIUM_RISK_SCORE = 25


@dataclass
class TaskRisk:
    score: int
    level: str
    factors: List[str] = field(default_factory=list)


def classify_task_risk(task: Task, now: datetime) -> TaskRisk:
    """Additive risk score for one task.

    +40 overdue and incomplete, +30 blocked, +20 no update in over 7 days,
    +10 under 25% progress with no update in over 3 days.
    """
    score = 0
    factors: List[str] = []
    due_date = ensure_utc(task.due_date)
    updated_at = ensure_utc(task.updated_at) or now
    idle = now - updated_at

    if due_date is not None and due_date < now and task.status != TaskStatus.COMPLETED:
        score += 40
        factors.append("overdue")
    if task.status == TaskStatus.BLOCKED:
        score += 30
        factors.append("blocked")
    if idle > timedelta(days=7):
        score += 20
        factors.append("stale")
    if task.progress_pct < 25 and idle > timedelta(days=3):
        score += 10
        factors.append("low_progress")

    if score >= HIGH_RISK_SCORE:
        level = "high"
    elif score >= MEDIUM_RISK_SCORE:
        level = "medium"
    else:
        level = "low"
    return TaskRisk(score=score, level=level, factors=factors)


# ----------------------------------------------------------------------
# Policy
# ----------------------------------------------------------------------
@dataclass
class DetectionPolicy:
    """Effective configuration for one detector run."""

    alert_type: str
    enabled: bool
    thresholds: Dict[str, float]
    # New alerts still allowed today under max_alerts_per_day
    remaining_today: int

    def threshold(self, name: str) -> float:
        if name in self.thresholds:
            return float(self.thresholds[name])
        return float(DEFAULT_ALERT_CONFIGURATIONS[self.alert_type]["thresholds"][name])


class RiskDetectionService:
    """Runs the individual detectors against one session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.alerts = AlertRepository(db)
        self.tasks = TaskRepository(db)
        self.activity = TaskActivityRepository(db)
        self.people = PersonRepository(db)
        self.projects = ProjectRepository(db)
        self.velocity = VelocityService(db)
        self._detectors: Dict[str, Callable[[DetectionPolicy, datetime], Awaitable[List[Alert]]]] = {
            AlertType.TASK_OVERDUE: self.detect_overdue_tasks,
            AlertType.STUDENT_INACTIVE: self.detect_inactive_students,
            AlertType.PROJECT_RISK: self.detect_project_risk,
            AlertType.VELOCITY_DROP: self.detect_velocity_drop,
            AlertType.TASK_BLOCKED: self.detect_blocked_tasks,
        }

    async def load_policy(self, alert_type: str, now: datetime) -> DetectionPolicy:
        config = await self.alerts.get_config(alert_type)
        defaults = DEFAULT_ALERT_CONFIGURATIONS[alert_type]
        if config is None:
            enabled = defaults["enabled"]
            thresholds = dict(defaults["thresholds"])
            max_per_day = defaults["max_alerts_per_day"]
        else:
            enabled = config.enabled
            thresholds = {**defaults["thresholds"], **(config.thresholds or {})}
            max_per_day = config.max_alerts_per_day

        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        created_today = await self.alerts.count_created_since(alert_type, day_start)
        return DetectionPolicy(
            alert_type=alert_type,
            enabled=enabled,
            thresholds=thresholds,
            remaining_today=max(0, max_per_day - created_today),
        )

    async def run_detector(self, alert_type: str, now: datetime) -> List[Alert]:
        """Run one detector under its stored policy and return the alerts it created."""
        detector = self._detectors[alert_type]
        policy = await self.load_policy(alert_type, now)
        if not policy.enabled:
            logger.info("Detector %s disabled, skipping", alert_type)
            return []
        logger.info("Running detector %s", alert_type)
        created = await detector(policy, now)
        logger.info("Detector %s created %d alert(s)", alert_type, len(created))
        return created

    async def _emit(
        self,
        policy: DetectionPolicy,
        severity: str,
        title: str,
        message: str,
        evidence: Any,
        user_id: Optional[UUID] = None,
        project_id: Optional[UUID] = None,
        task_id: Optional[UUID] = None,
    ) -> Optional[Alert]:
        """Create an alert unless one is already open for the same entity."""
        dedup_key = build_dedup_key(task_id=task_id, project_id=project_id, user_id=user_id)
        if await self.alerts.get_unresolved(policy.alert_type, dedup_key):
            return None
        if policy.remaining_today <= 0:
            logger.warning("Daily limit reached for %s, not alerting on %s", policy.alert_type, dedup_key)
            return None
        try:
            alert = await self.alerts.create(
                type=policy.alert_type,
                severity=severity,
                title=title,
                message=message,
                user_id=user_id,
                project_id=project_id,
                task_id=task_id,
                dedup_key=dedup_key,
                data=evidence.model_dump(mode="json"),
            )
        except DuplicateAlertError as exc:
            logger.debug("Skipped duplicate alert: %s", exc)
            return None
        policy.remaining_today -= 1
        return alert

    # ------------------------------------------------------------------
    # Detectors
    # ------------------------------------------------------------------
    async def detect_overdue_tasks(self, policy: DetectionPolicy, now: datetime) -> List[Alert]:
        grace = timedelta(days=policy.threshold("grace_days"))
        high_days = policy.threshold("high_days")
        critical_days = policy.threshold("critical_days")

        tasks = await self.tasks.list_overdue(now - grace)
        assignees = await self.tasks.first_assignee_ids([task.id for task in tasks])
        created: List[Alert] = []

        for task in tasks:
            due_date = ensure_utc(task.due_date)
            days_overdue = (now - due_date).days
            if days_overdue >= critical_days:
                severity = AlertSeverity.CRITICAL
            elif days_overdue >= high_days:
                severity = AlertSeverity.HIGH
            else:
                severity = AlertSeverity.MEDIUM

            alert = await self._emit(
                policy,
                severity,
                title=f"Overdue task: {task.title}",
                message=f'Task "{task.title}" is {days_overdue} day(s) overdue',
                evidence=OverdueTaskEvidence(
                    task_title=task.title,
                    project_id=task.project_id,
                    due_date=due_date,
                    days_overdue=days_overdue,
                    status=task.status,
                    progress_pct=task.progress_pct,
                ),
                user_id=assignees.get(task.id),
                project_id=task.project_id,
                task_id=task.id,
            )
            if alert:
                created.append(alert)
        return created

    async def detect_inactive_students(self, policy: DetectionPolicy, now: datetime) -> List[Alert]:
        inactive_days = int(policy.threshold("inactive_days"))
        cutoff = now - timedelta(days=inactive_days)

        students = await self.people.list_by_roles(Roles.MONITORED)
        last_seen = await self.activity.last_activity_by_user([person.id for person in students])
        created: List[Alert] = []

        for student in students:
            last_activity_at = ensure_utc(last_seen.get(student.id))
            if last_activity_at is not None and last_activity_at >= cutoff:
                continue
            days_inactive = (now - last_activity_at).days if last_activity_at else None
            if days_inactive is None:
                message = f"{student.display_name} has no recorded task activity"
            else:
                message = f"{student.display_name} has had no task activity for {days_inactive} day(s)"

            alert = await self._emit(
                policy,
                AlertSeverity.MEDIUM,
                title=f"Inactive student: {student.display_name}",
                message=message,
                evidence=InactiveStudentEvidence(
                    student_name=student.display_name,
                    inactive_days_threshold=inactive_days,
                    last_activity_at=last_activity_at,
                    days_inactive=days_inactive,
                ),
                user_id=student.id,
            )
            if alert:
                created.append(alert)
        return created

    async def detect_project_risk(self, policy: DetectionPolicy, now: datetime) -> List[Alert]:
        high_risk_pct = policy.threshold("high_risk_pct")
        critical_pct = policy.threshold("critical_pct")

        projects = await self.projects.list_active()
        tasks = await self.tasks.list_by_projects([project.id for project in projects])
        by_project: Dict[UUID, List[Task]] = {}
        for task in tasks:
            by_project.setdefault(task.project_id, []).append(task)

        created: List[Alert] = []
        for project in projects:
            project_tasks = by_project.get(project.id, [])
            if not project_tasks:
                continue

            risky = []
            for task in project_tasks:
                risk = classify_task_risk(task, now)
                if risk.level == "high":
                    risky.append(RiskyTask(task_id=task.id, title=task.title, risk_score=risk.score, factors=risk.factors))

            percentage = len(risky) / len(project_tasks) * 100
            if percentage < high_risk_pct:
                continue
            severity = AlertSeverity.CRITICAL if percentage >= critical_pct else AlertSeverity.HIGH

            alert = await self._emit(
                policy,
                severity,
                title=f"Project at risk: {project.name}",
                message=(
                    f"{len(risky)} of {len(project_tasks)} tasks in {project.name} "
                    f"are high risk ({int(percentage)}%)"
                ),
                evidence=ProjectRiskEvidence(
                    project_name=project.name,
                    total_tasks=len(project_tasks),
                    high_risk_tasks=len(risky),
                    risk_percentage=int(percentage),
                    risky_tasks=risky,
                ),
                project_id=project.id,
            )
            if alert:
                created.append(alert)
        return created

    async def detect_velocity_drop(self, policy: DetectionPolicy, now: datetime) -> List[Alert]:
        window_days = int(policy.threshold("window_days"))
        max_score = policy.threshold("max_score")

        students = await self.people.list_by_roles(Roles.MONITORED)
        metrics = await self.velocity.analyze_many(students, window_days, now)
        created: List[Alert] = []

        for metric in metrics:
            if metric.velocity_trend != "decreasing" or metric.velocity_score >= max_score:
                continue
            alert = await self._emit(
                policy,
                AlertSeverity.MEDIUM,
                title=f"Velocity drop: {metric.user_name}",
                message=(
                    f"{metric.user_name}'s activity is decreasing "
                    f"(velocity score {metric.velocity_score} over {window_days} days)"
                ),
                evidence=VelocityDropEvidence(
                    student_name=metric.user_name,
                    window_days=window_days,
                    velocity_score=metric.velocity_score,
                    velocity_trend=metric.velocity_trend,
                    total_activity=metric.total_activity,
                ),
                user_id=metric.user_id,
            )
            if alert:
                created.append(alert)
        return created

    async def detect_blocked_tasks(self, policy: DetectionPolicy, now: datetime) -> List[Alert]:
        blocked_hours = policy.threshold("blocked_hours")

        tasks = await self.tasks.list_by_status(TaskStatus.BLOCKED)
        task_ids = [task.id for task in tasks]
        last_change = await self.activity.last_status_change_by_task(task_ids)
        assignees = await self.tasks.first_assignee_ids(task_ids)
        created: List[Alert] = []

        for task in tasks:
            blocked_since = ensure_utc(last_change.get(task.id) or task.updated_at)
            hours = (now - blocked_since).total_seconds() / 3600
            if hours < blocked_hours:
                continue

            alert = await self._emit(
                policy,
                AlertSeverity.HIGH,
                title=f"Blocked task: {task.title}",
                message=f'Task "{task.title}" has been blocked for {int(hours)} hours',
                evidence=BlockedTaskEvidence(
                    task_title=task.title,
                    project_id=task.project_id,
                    blocked_since=blocked_since,
                    hours_blocked=int(hours),
                ),
                user_id=assignees.get(task.id),
                project_id=task.project_id,
                task_id=task.id,
            )
            if alert:
                created.append(alert)
        return created
