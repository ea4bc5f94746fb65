import uuid
from datetime import datetime, timezone

import pytest

from labmonitor.errors import NotFoundError
from labmonitor.models.constants import ActivityKind, TaskStatus
from labmonitor.schemas.task import ChecklistItem
from labmonitor.services.task_lifecycle_service import TaskLifecycleService
from tests.factories import create_person, create_project, create_task

pytestmark = pytest.mark.db


async def _setup(db, **task_fields):
    person = await create_person(db)
    project = await create_project(db)
    task = await create_task(db, project, assignee=person, **task_fields)
    return person, project, task


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "requested, stored, status",
    [
        (100, 100, TaskStatus.COMPLETED),
        (150, 100, TaskStatus.COMPLETED),
        (-5, 0, TaskStatus.PENDING),
        (40, 40, TaskStatus.PENDING),
    ],
)
async def test_set_progress_clamps_and_completes(db, requested, stored, status):
    person, _, task = await _setup(db)
    service = TaskLifecycleService(db)

    updated = await service.set_progress(task.id, requested, person.id)

    assert updated.progress_pct == stored
    assert updated.status == status
    activity = await service.list_activity(task.id)
    assert len(activity) == 1
    assert activity[0].type == ActivityKind.PROGRESS
    assert activity[0].message == f"Progress updated to {stored}%"


@pytest.mark.asyncio
async def test_lowering_progress_reopens_completed_task(db):
    person, _, task = await _setup(db, status=TaskStatus.COMPLETED, progress_pct=100)

    updated = await TaskLifecycleService(db).set_progress(task.id, 80, person.id)

    assert updated.status == TaskStatus.IN_PROGRESS
    assert updated.progress_pct == 80


@pytest.mark.asyncio
async def test_set_status_has_no_transition_guard(db):
    person, _, task = await _setup(db, status=TaskStatus.COMPLETED, progress_pct=100)
    service = TaskLifecycleService(db)

    blocked = await service.set_status(task.id, TaskStatus.BLOCKED, person.id)
    assert blocked.status == TaskStatus.BLOCKED

    completed = await service.set_status(task.id, TaskStatus.COMPLETED, person.id, "Done after all")
    assert completed.progress_pct == 100

    activity = await service.list_activity(task.id)
    assert [event.type for event in activity] == [ActivityKind.STATUS, ActivityKind.STATUS]
    messages = {event.message for event in activity}
    assert messages == {"Status changed to blocked", "Done after all"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, status",
    [("submit", TaskStatus.IN_PROGRESS), ("approve", TaskStatus.COMPLETED), ("reject", TaskStatus.PENDING)],
)
async def test_review_transitions(db, action, status):
    person, _, task = await _setup(db, status=TaskStatus.IN_PROGRESS, progress_pct=60)
    service = TaskLifecycleService(db)

    updated = await service.review(task.id, action, person.id, "looks good")

    assert updated.status == status
    assert updated.progress_pct == (100 if action == "approve" else 60)
    activity = await service.list_activity(task.id)
    assert activity[0].type == ActivityKind.STATUS
    assert activity[0].message == f"Review {action}: looks good"


@pytest.mark.asyncio
async def test_checklist_reminder_and_comment_append_comment_events(db):
    person, _, task = await _setup(db)
    service = TaskLifecycleService(db)
    remind_at = datetime(2026, 11, 1, 9, 0, tzinfo=timezone.utc)

    await service.update_checklist(
        task.id,
        [ChecklistItem(text="Order reagents", done=True), ChecklistItem(text="Book microscope")],
        person.id,
    )
    updated = await service.set_reminder(task.id, remind_at, person.id)
    await service.add_comment(task.id, person.id, "Waiting on supplier")

    assert updated.checklist == [
        {"text": "Order reagents", "done": True},
        {"text": "Book microscope", "done": False},
    ]
    assert updated.reminder_at is not None
    assert updated.status == TaskStatus.PENDING

    activity = await service.list_activity(task.id)
    assert len(activity) == 3
    assert all(event.type == ActivityKind.COMMENT for event in activity)
    messages = {event.message for event in activity}
    assert "Checklist updated (2 items, 1 done)" in messages
    assert f"Reminder set for {remind_at.isoformat()}" in messages
    assert "Waiting on supplier" in messages

    cleared = await service.set_reminder(task.id, None, None)
    assert cleared.reminder_at is None


@pytest.mark.asyncio
async def test_missing_task_raises_not_found(db):
    service = TaskLifecycleService(db)
    missing = uuid.uuid4()

    with pytest.raises(NotFoundError):
        await service.set_status(missing, TaskStatus.BLOCKED, None)
    with pytest.raises(NotFoundError):
        await service.set_progress(missing, 10, None)
    with pytest.raises(NotFoundError):
        await service.add_comment(missing, None, "hello")
    with pytest.raises(NotFoundError):
        await service.list_activity(missing)


@pytest.mark.asyncio
async def test_read_model_by_project_and_assignee(db):
    person, project, task = await _setup(db)
    other_project = await create_project(db, name="Other")
    await create_task(db, other_project, title="Unassigned")
    service = TaskLifecycleService(db)

    assert [t.id for t in await service.list_by_project(project.id)] == [task.id]
    assert [t.id for t in await service.list_by_assignee(person.id)] == [task.id]
