from datetime import timedelta

import pytest

from labmonitor.core.permissions import Roles
from labmonitor.errors import DuplicateAlertError
from labmonitor.models.alert import build_dedup_key
from labmonitor.models.constants import ActivityKind, AlertSeverity, AlertType, TaskStatus
from labmonitor.models.task import Task
from labmonitor.repositories.alert_repository import AlertRepository
from labmonitor.schemas.alert import AlertConfigurationUpdate
from labmonitor.services.alert_service import AlertService
from labmonitor.services.risk_detection_service import RiskDetectionService, classify_task_risk
from labmonitor.utils.time import utc_now
from tests.factories import add_activity, create_person, create_project, create_task


@pytest.mark.unit
def test_classify_task_risk_factors():
    now = utc_now()
    task = Task(
        title="Write chapter",
        status=TaskStatus.BLOCKED,
        progress_pct=10,
        due_date=now - timedelta(days=1),
        updated_at=now - timedelta(days=8),
    )

    risk = classify_task_risk(task, now)

    assert risk.score == 100
    assert risk.level == "high"
    assert risk.factors == ["overdue", "blocked", "stale", "low_progress"]


@pytest.mark.unit
def test_classify_task_risk_levels():
    now = utc_now()
    fresh = Task(title="a", status=TaskStatus.PENDING, progress_pct=0, updated_at=now)
    overdue = Task(title="b", status=TaskStatus.PENDING, progress_pct=50, updated_at=now, due_date=now - timedelta(hours=1))
    done = Task(title="c", status=TaskStatus.COMPLETED, progress_pct=100, updated_at=now, due_date=now - timedelta(days=3))

    assert classify_task_risk(fresh, now).level == "low"
    assert classify_task_risk(overdue, now).level == "medium"
    assert classify_task_risk(done, now).score == 0


@pytest.mark.db
@pytest.mark.asyncio
async def test_task_due_ten_days_ago_is_one_critical_alert(db):
    now = utc_now()
    student = await create_person(db)
    project = await create_project(db)
    task = await create_task(db, project, due_date=now - timedelta(days=10), assignee=student)

    alerts = await RiskDetectionService(db).run_detector(AlertType.TASK_OVERDUE, now)

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.severity == AlertSeverity.CRITICAL
    assert alert.task_id == task.id
    assert alert.user_id == student.id
    assert alert.data["days_overdue"] == 10
    assert alert.data["alert_type"] == AlertType.TASK_OVERDUE


@pytest.mark.db
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "days_overdue, severity",
    [(2, AlertSeverity.MEDIUM), (3, AlertSeverity.HIGH), (6, AlertSeverity.HIGH), (7, AlertSeverity.CRITICAL)],
)
async def test_overdue_severity_bands(db, days_overdue, severity):
    now = utc_now()
    project = await create_project(db)
    await create_task(db, project, due_date=now - timedelta(days=days_overdue, minutes=5))

    alerts = await RiskDetectionService(db).run_detector(AlertType.TASK_OVERDUE, now)

    assert [a.severity for a in alerts] == [severity]


@pytest.mark.db
@pytest.mark.asyncio
async def test_overdue_within_grace_day_or_completed_is_ignored(db):
    now = utc_now()
    project = await create_project(db)
    await create_task(db, project, due_date=now - timedelta(hours=20))
    await create_task(
        db, project, status=TaskStatus.COMPLETED, progress_pct=100, due_date=now - timedelta(days=9)
    )

    alerts = await RiskDetectionService(db).run_detector(AlertType.TASK_OVERDUE, now)

    assert alerts == []


@pytest.mark.db
@pytest.mark.asyncio
async def test_overdue_detector_twice_creates_one_alert(db):
    now = utc_now()
    project = await create_project(db)
    await create_task(db, project, due_date=now - timedelta(days=4))
    service = RiskDetectionService(db)

    first = await service.run_detector(AlertType.TASK_OVERDUE, now)
    second = await service.run_detector(AlertType.TASK_OVERDUE, now)

    assert len(first) == 1
    assert second == []
    assert len(await AlertRepository(db).list_unresolved()) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_unique_index_rejects_concurrent_duplicate(db):
    project = await create_project(db)
    repo = AlertRepository(db)
    fields = dict(
        type=AlertType.PROJECT_RISK,
        severity=AlertSeverity.HIGH,
        title="Project at risk",
        message="",
        project_id=project.id,
        dedup_key=build_dedup_key(project_id=project.id),
        data={},
    )

    first = await repo.create(**fields)
    with pytest.raises(DuplicateAlertError):
        await repo.create(**fields)

    # A resolved alert frees the slot for a new unresolved one
    await repo.mark_resolved(first, None, utc_now())
    again = await repo.create(**fields)
    assert again.id != first.id


@pytest.mark.db
@pytest.mark.asyncio
async def test_inactive_students(db):
    now = utc_now()
    idle = await create_person(db, first_name="Idle")
    busy = await create_person(db, first_name="Busy")
    await create_person(db, first_name="Gone", is_active=False)
    await create_person(db, role=Roles.PROFESSOR, first_name="Prof")
    lapsed = await create_person(db, first_name="Lapsed")
    project = await create_project(db)
    task = await create_task(db, project)
    await add_activity(db, task, busy, now - timedelta(days=2))
    await add_activity(db, task, lapsed, now - timedelta(days=9))

    alerts = await RiskDetectionService(db).run_detector(AlertType.STUDENT_INACTIVE, now)

    by_user = {alert.user_id: alert for alert in alerts}
    assert set(by_user) == {idle.id, lapsed.id}
    assert all(alert.severity == AlertSeverity.MEDIUM for alert in alerts)
    assert by_user[idle.id].data["days_inactive"] is None
    assert by_user[lapsed.id].data["days_inactive"] == 9


@pytest.mark.db
@pytest.mark.asyncio
async def test_project_with_two_of_three_high_risk_tasks_is_high(db):
    now = utc_now()
    stale = now - timedelta(days=10)
    project = await create_project(db)
    await create_task(db, project, title="Overdue", due_date=now - timedelta(days=2), updated_at=stale)
    await create_task(db, project, title="Blocked", status=TaskStatus.BLOCKED, updated_at=stale)
    await create_task(db, project, title="Fresh", due_date=now + timedelta(days=5))

    alerts = await RiskDetectionService(db).run_detector(AlertType.PROJECT_RISK, now)

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.severity == AlertSeverity.HIGH
    assert alert.project_id == project.id
    assert alert.task_id is None
    assert alert.data["risk_percentage"] == 66
    assert alert.data["high_risk_tasks"] == 2
    assert {t["title"] for t in alert.data["risky_tasks"]} == {"Overdue", "Blocked"}


@pytest.mark.db
@pytest.mark.asyncio
async def test_project_with_all_tasks_high_risk_is_critical(db):
    now = utc_now()
    stale = now - timedelta(days=10)
    project = await create_project(db)
    await create_task(db, project, status=TaskStatus.BLOCKED, updated_at=stale)
    await create_task(db, project, due_date=now - timedelta(days=3), updated_at=stale)
    # Inactive projects are not evaluated
    archived = await create_project(db, name="Archived", status="archived")
    await create_task(db, archived, status=TaskStatus.BLOCKED, updated_at=stale)

    alerts = await RiskDetectionService(db).run_detector(AlertType.PROJECT_RISK, now)

    assert [(a.project_id, a.severity) for a in alerts] == [(project.id, AlertSeverity.CRITICAL)]


@pytest.mark.db
@pytest.mark.asyncio
async def test_velocity_drop(db):
    now = utc_now()
    dropping = await create_person(db, first_name="Drop")
    steady = await create_person(db, first_name="Steady")
    project = await create_project(db)
    task = await create_task(db, project)
    for days_ago in (13, 12, 11, 10):
        await add_activity(db, task, dropping, now - timedelta(days=days_ago))
    for days_ago in (12, 3):
        await add_activity(db, task, steady, now - timedelta(days=days_ago))

    alerts = await RiskDetectionService(db).run_detector(AlertType.VELOCITY_DROP, now)

    assert [a.user_id for a in alerts] == [dropping.id]
    assert alerts[0].severity == AlertSeverity.MEDIUM
    assert alerts[0].data["velocity_trend"] == "decreasing"
    assert alerts[0].data["velocity_score"] < 30


@pytest.mark.db
@pytest.mark.asyncio
async def test_blocked_tasks_use_last_status_change(db):
    now = utc_now()
    student = await create_person(db)
    project = await create_project(db)
    long_blocked = await create_task(db, project, title="Long", status=TaskStatus.BLOCKED, updated_at=now)
    await add_activity(db, long_blocked, student, now - timedelta(hours=50), kind=ActivityKind.STATUS)
    recently_blocked = await create_task(
        db, project, title="Recent", status=TaskStatus.BLOCKED, updated_at=now - timedelta(days=5)
    )
    await add_activity(db, recently_blocked, student, now - timedelta(hours=10), kind=ActivityKind.STATUS)
    no_history = await create_task(
        db, project, title="Old", status=TaskStatus.BLOCKED, updated_at=now - timedelta(days=3)
    )

    alerts = await RiskDetectionService(db).run_detector(AlertType.TASK_BLOCKED, now)

    assert {a.task_id for a in alerts} == {long_blocked.id, no_history.id}
    assert all(a.severity == AlertSeverity.HIGH for a in alerts)
    hours = {a.task_id: a.data["hours_blocked"] for a in alerts}
    assert hours[long_blocked.id] == 50
    assert hours[no_history.id] == 72


@pytest.mark.db
@pytest.mark.asyncio
async def test_configuration_controls_detection(db):
    now = utc_now()
    project = await create_project(db)
    await create_task(db, project, due_date=now - timedelta(days=10))
    await create_task(db, project, due_date=now - timedelta(days=10))
    alert_service = AlertService(db)
    await alert_service.ensure_default_configurations()
    detection = RiskDetectionService(db)

    await alert_service.update_configuration(AlertType.TASK_OVERDUE, AlertConfigurationUpdate(enabled=False))
    assert await detection.run_detector(AlertType.TASK_OVERDUE, now) == []

    await alert_service.update_configuration(
        AlertType.TASK_OVERDUE,
        AlertConfigurationUpdate(enabled=True, thresholds={"critical_days": 20}, max_alerts_per_day=1),
    )
    alerts = await detection.run_detector(AlertType.TASK_OVERDUE, now)

    assert len(alerts) == 1
    assert alerts[0].severity == AlertSeverity.HIGH
