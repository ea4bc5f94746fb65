import asyncio
import uuid
from datetime import timedelta

import pytest

from labmonitor.core.permissions import Roles
from labmonitor.errors import NotFoundError
from labmonitor.models.constants import AlertSeverity, AlertType, TaskStatus
from labmonitor.repositories.alert_repository import AlertRepository
from labmonitor.schemas.alert import AlertConfigurationUpdate
from labmonitor.services.alert_service import AlertService
from labmonitor.services.risk_detection_service import RiskDetectionService
from labmonitor.utils.time import utc_now
from labmonitor.workers.monitoring_runner import MonitoringRunner
from tests.factories import add_activity, create_person, create_project, create_task

pytestmark = pytest.mark.db


async def _overdue_scenario(db):
    """One student with fresh activity on a task that is 10 days overdue."""
    now = utc_now()
    professor = await create_person(db, role=Roles.PROFESSOR, first_name="Prof")
    admin = await create_person(db, role=Roles.ADMIN, first_name="Admin")
    await create_person(db, role=Roles.ADMIN, first_name="Retired", is_active=False)
    student = await create_person(db)
    project = await create_project(db)
    task = await create_task(db, project, due_date=now - timedelta(days=10), assignee=student)
    await add_activity(db, task, student, now - timedelta(hours=1))
    return professor, admin, student, task


@pytest.mark.asyncio
async def test_run_all_detectors_fans_out_to_active_supervisors(db, dispatcher):
    professor, admin, student, task = await _overdue_scenario(db)

    created = await AlertService(db, dispatcher=dispatcher).run_all_detectors()

    assert [alert.type for alert in created] == [AlertType.TASK_OVERDUE]
    alert = created[0]
    assert alert.data.days_overdue == 10
    assert {n.recipient_id for n in dispatcher.sent} == {professor.id, admin.id}
    notification = dispatcher.sent[0]
    assert notification.title == alert.title
    assert notification.related_type == "task"
    assert notification.related_id == task.id
    assert notification.metadata["alert_id"] == str(alert.id)
    assert notification.metadata["severity"] == AlertSeverity.CRITICAL
    assert notification.metadata["original_data"]["days_overdue"] == 10


@pytest.mark.asyncio
async def test_second_pass_creates_nothing(db, dispatcher):
    await _overdue_scenario(db)
    service = AlertService(db, dispatcher=dispatcher)

    await service.run_all_detectors()
    second = await service.run_all_detectors()

    assert second == []
    assert len(await service.get_active()) == 1


@pytest.mark.asyncio
async def test_resolve_then_rerun_creates_new_alert(db, dispatcher):
    professor, _, _, _ = await _overdue_scenario(db)
    service = AlertService(db, dispatcher=dispatcher)
    [first] = await service.run_all_detectors()

    resolved = await service.resolve(first.id, professor.id, "Extended deadline")
    assert resolved.resolved is True
    assert resolved.resolved_by == professor.id
    assert resolved.resolution_reason == "Extended deadline"
    assert resolved.resolved_at is not None

    [second] = await service.run_all_detectors()

    assert second.id != first.id
    assert [a.id for a in await service.get_active()] == [second.id]


@pytest.mark.asyncio
async def test_resolve_is_one_way_and_idempotent(db):
    professor, admin, _, _ = await _overdue_scenario(db)
    service = AlertService(db)
    [alert] = await service.run_all_detectors()

    first = await service.resolve(alert.id, professor.id, "done")
    again = await service.resolve(alert.id, admin.id, "other reason")

    assert again.resolved_by == professor.id
    assert again.resolution_reason == "done"
    assert again.resolved_at == first.resolved_at

    with pytest.raises(NotFoundError):
        await service.resolve(uuid.uuid4(), professor.id)


@pytest.mark.asyncio
async def test_get_active_filters_by_person_and_statistics(db):
    _, _, student, _ = await _overdue_scenario(db)
    idle = await create_person(db, first_name="Idle")
    service = AlertService(db)
    await service.run_all_detectors()

    assert [a.type for a in await service.get_active(idle.id)] == [AlertType.STUDENT_INACTIVE]
    assert [a.type for a in await service.get_active(student.id)] == [AlertType.TASK_OVERDUE]

    stats = await service.get_statistics()
    assert stats.total == 2
    assert stats.critical == 1
    assert stats.medium == 1
    assert stats.high == 0
    assert stats.by_type[AlertType.TASK_OVERDUE] == 1
    assert stats.by_type[AlertType.STUDENT_INACTIVE] == 1
    assert stats.by_type[AlertType.TASK_BLOCKED] == 0


@pytest.mark.asyncio
async def test_failing_detector_does_not_stop_the_others(db, monkeypatch):
    await _overdue_scenario(db)

    async def broken(self, policy, now):
        raise RuntimeError("boom")

    monkeypatch.setattr(RiskDetectionService, "detect_inactive_students", broken)
    monkeypatch.setattr(RiskDetectionService, "detect_project_risk", broken)

    created = await AlertService(db).run_all_detectors()

    assert [alert.type for alert in created] == [AlertType.TASK_OVERDUE]


@pytest.mark.asyncio
async def test_slow_detector_times_out(db, monkeypatch):
    await _overdue_scenario(db)

    async def slow(self, policy, now):
        await asyncio.sleep(5)
        return []

    monkeypatch.setattr(RiskDetectionService, "detect_velocity_drop", slow)

    created = await AlertService(db, detector_timeout=0.1).run_all_detectors()

    assert [alert.type for alert in created] == [AlertType.TASK_OVERDUE]


@pytest.mark.asyncio
async def test_failed_notification_does_not_fail_the_pass(db):
    await _overdue_scenario(db)

    class BrokenDispatcher:
        async def dispatch(self, notification):
            raise ConnectionError("smtp down")

    created = await AlertService(db, dispatcher=BrokenDispatcher()).run_all_detectors()

    assert len(created) == 1
    assert len(await AlertRepository(db).list_unresolved()) == 1


@pytest.mark.asyncio
async def test_ensure_default_configurations_is_insert_if_absent(db):
    service = AlertService(db)

    assert await service.ensure_default_configurations() == 5
    await service.update_configuration(
        AlertType.STUDENT_INACTIVE, AlertConfigurationUpdate(thresholds={"inactive_days": 14})
    )
    assert await service.ensure_default_configurations() == 0

    configs = {c.alert_type: c for c in await service.list_configurations()}
    assert set(configs) == set(AlertType.ALL)
    assert configs[AlertType.STUDENT_INACTIVE].thresholds == {"inactive_days": 14}
    assert configs[AlertType.TASK_OVERDUE].thresholds == {"grace_days": 1, "high_days": 3, "critical_days": 7}
    assert configs[AlertType.TASK_BLOCKED].notify_email is True
    assert configs[AlertType.VELOCITY_DROP].notify_email is False


@pytest.mark.asyncio
async def test_update_configuration_merges_thresholds(db):
    service = AlertService(db)

    updated = await service.update_configuration(
        AlertType.PROJECT_RISK, AlertConfigurationUpdate(thresholds={"critical_pct": 90}, cooldown_hours=6)
    )

    assert updated.thresholds == {"high_risk_pct": 60, "critical_pct": 90}
    assert updated.cooldown_hours == 6
    with pytest.raises(NotFoundError):
        await service.update_configuration("budget_overrun", AlertConfigurationUpdate(enabled=False))


@pytest.mark.asyncio
async def test_runner_ignores_trigger_while_sweep_in_flight(db, session_factory, dispatcher):
    await _overdue_scenario(db)
    await db.commit()
    runner = MonitoringRunner(session_factory=session_factory, dispatcher=dispatcher)

    first = asyncio.create_task(runner.run_alert_sweep_once())
    await asyncio.sleep(0)
    assert runner.sweep_in_flight is True

    assert await runner.run_alert_sweep_once() == []

    created = await first
    assert [alert.type for alert in created] == [AlertType.TASK_OVERDUE]
    assert runner.sweep_in_flight is False


@pytest.mark.asyncio
async def test_blocked_task_severity_in_full_pass(db):
    now = utc_now()
    await create_person(db, role=Roles.PROFESSOR)
    project = await create_project(db)
    await create_task(db, project, status=TaskStatus.BLOCKED, updated_at=now - timedelta(days=3))

    created = await AlertService(db).run_all_detectors(now)

    assert [(a.type, a.severity) for a in created] == [(AlertType.TASK_BLOCKED, AlertSeverity.HIGH)]
