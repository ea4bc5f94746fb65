import uuid
from datetime import datetime, timedelta, timezone

import pytest

from labmonitor.core.permissions import Roles
from labmonitor.models.constants import ActivityKind
from labmonitor.models.task_activity import TaskActivity
from labmonitor.services.velocity_service import VelocityService, classify_trend, summarize_activity
from tests.factories import add_activity, create_person, create_project, create_task

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _events(offsets_days, task_ids=None, kind=ActivityKind.PROGRESS):
    project_id = uuid.uuid4()
    task_ids = task_ids or [uuid.uuid4()]
    events = []
    for i, offset in enumerate(offsets_days):
        event = TaskActivity(
            task_id=task_ids[i % len(task_ids)],
            user_id=uuid.uuid4(),
            type=kind,
            message="",
            created_at=NOW - timedelta(days=offset),
        )
        events.append((event, project_id))
    return events


@pytest.mark.unit
@pytest.mark.parametrize(
    "first, second, trend",
    [(0, 0, "inactive"), (0, 3, "new"), (2, 5, "increasing"), (5, 2, "decreasing"), (4, 4, "stable")],
)
def test_classify_trend(first, second, trend):
    assert classify_trend(first, second) == trend


@pytest.mark.unit
def test_activity_only_in_first_half_is_decreasing():
    metric = summarize_activity(uuid.uuid4(), _events([13, 12, 10, 8]), 14, NOW)

    assert metric.velocity_trend == "decreasing"
    assert metric.total_activity == 4


@pytest.mark.unit
def test_activity_only_in_second_half_is_new():
    metric = summarize_activity(uuid.uuid4(), _events([6, 3, 1]), 14, NOW)

    assert metric.velocity_trend == "new"


@pytest.mark.unit
def test_score_combines_frequency_and_task_diversity():
    tasks = [uuid.uuid4() for _ in range(3)]
    # 14 events over 7 days across 3 tasks: 14/7*10 + min(3*2, 20) = 26
    metric = summarize_activity(uuid.uuid4(), _events([i % 7 for i in range(14)], tasks), 7, NOW)

    assert metric.velocity_score == 26
    assert metric.unique_tasks_worked_on == 3
    assert metric.unique_projects_active == 1
    assert metric.progress_updates == 14
    assert sum(metric.daily_activity.values()) == 14


@pytest.mark.unit
def test_task_diversity_bonus_is_capped():
    tasks = [uuid.uuid4() for _ in range(15)]
    metric = summarize_activity(uuid.uuid4(), _events([1] * 15, tasks), 30, NOW)

    # 15/30*10 = 5, diversity capped at 20
    assert metric.velocity_score == 25


@pytest.mark.db
@pytest.mark.asyncio
async def test_single_person_without_events_is_inactive(db):
    student = await create_person(db)

    metric = await VelocityService(db).analyze(student.id, 7, now=NOW)

    assert metric.velocity_trend == "inactive"
    assert metric.total_activity == 0
    assert metric.velocity_score == 0


@pytest.mark.db
@pytest.mark.asyncio
async def test_all_persons_only_includes_monitored_roles(db):
    student = await create_person(db, first_name="Sam")
    postdoc = await create_person(db, role=Roles.POSTDOC, first_name="Pat")
    project = await create_project(db)
    task = await create_task(db, project)
    await add_activity(db, task, student, NOW - timedelta(days=1))
    await add_activity(db, task, student, NOW - timedelta(days=2), kind=ActivityKind.COMMENT)
    await add_activity(db, task, postdoc, NOW - timedelta(days=1))
    # Outside the window
    await add_activity(db, task, student, NOW - timedelta(days=30))

    metrics = await VelocityService(db).analyze(window_days=7, now=NOW)

    assert [m.user_id for m in metrics] == [student.id]
    assert metrics[0].total_activity == 2
    assert metrics[0].comments == 1
    assert metrics[0].user_name == "Sam Lovelace"
