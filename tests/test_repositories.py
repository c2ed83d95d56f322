"""Tests for the SQLAlchemy repositories."""

import uuid
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from agencyops.engine.ports import TaskFilter
from agencyops.models.planned_task import PlannedTaskEntry
from agencyops.models.task import TaskPriority, TaskStatus

from tests.conftest import ON_HOLD_PROJECT_ID, PLAN_DATE, TEAMMATE_ID, TEST_USER_ID


def _entry(task_id, user_id=TEST_USER_ID, plan_date=PLAN_DATE, **extra):
    return PlannedTaskEntry(id=str(uuid.uuid4()), task_id=task_id, user_id=user_id, plan_date=plan_date, **extra)


class TestTaskRepository:
    """Test TaskRepository reads and TaskFilter translation."""

    def test_create_and_get(self, task_repository, create_task):
        task = create_task(name="Write brief", priority=TaskPriority.URGENT)

        loaded = task_repository.get(task.id)

        assert loaded.name == "Write brief"
        assert loaded.priority == "URGENT"
        assert loaded.project.status == "ACTIVE"
        assert task_repository.get("missing") is None

    def test_filters(self, task_repository, create_task):
        mine = create_task(status=TaskStatus.TODO)
        done = create_task(status=TaskStatus.DONE)
        theirs = create_task(assignee_id=TEAMMATE_ID)
        unassigned = create_task(assignee_id=None)
        on_hold = create_task(project_id=ON_HOLD_PROJECT_ID)

        def found(**kwargs):
            return {t.id for t in task_repository.find_tasks(TaskFilter(**kwargs))}

        assert found(assignee_id=TEST_USER_ID) == {mine.id, done.id, on_hold.id}
        assert unassigned.id not in found(require_assignee=True)
        assert theirs.id in found(require_assignee=True)
        assert found(assignee_id=TEST_USER_ID, status_not_in=["DONE", "COMPLETED"]) == {mine.id, on_hold.id}
        assert found(assignee_id=TEST_USER_ID, project_status_in=["ACTIVE", "IN_PROGRESS"]) == {mine.id, done.id}
        assert found(assignee_id=TEST_USER_ID, exclude_ids=[mine.id, done.id]) == {on_hold.id}
        assert found(ids_in=[mine.id, theirs.id, "missing"]) == {mine.id, theirs.id}

    def test_due_window_skips_undated_tasks(self, task_repository, create_task):
        start = datetime(2024, 6, 10)
        inside = create_task(due_date=start + timedelta(hours=23, minutes=59))
        create_task(due_date=start + timedelta(days=1))
        create_task(due_date=None)

        tasks = task_repository.find_tasks(TaskFilter(due_from=start, due_before=start + timedelta(days=1)))

        assert [t.id for t in tasks] == [inside.id]

    def test_order_by_priority_then_created_at(self, task_repository, create_task):
        low = create_task(priority=TaskPriority.LOW, created_at=datetime(2024, 5, 1))
        high_new = create_task(priority=TaskPriority.HIGH, created_at=datetime(2024, 5, 9))
        high_old = create_task(priority=TaskPriority.HIGH, created_at=datetime(2024, 5, 2))
        critical = create_task(priority=TaskPriority.CRITICAL, created_at=datetime(2024, 5, 10))

        ordered = task_repository.find_tasks(TaskFilter(order_by_priority=True, limit=3))

        assert [t.id for t in ordered] == [critical.id, high_old.id, high_new.id]
        assert low.id not in [t.id for t in ordered]


class TestPlannedTaskRepository:
    """Test daily-plan persistence."""

    def test_create_many_and_get_for_date(self, plan_repository, create_task):
        a = create_task(created_at=datetime(2024, 5, 1))
        b = create_task(created_at=datetime(2024, 5, 2))

        created = plan_repository.create_many([
            _entry(a.id, created_at=datetime(2024, 6, 10, 8)),
            _entry(b.id, created_at=datetime(2024, 6, 10, 9)),
        ])

        assert [e.task_id for e in created] == [a.id, b.id]
        loaded = plan_repository.get_for_date(TEST_USER_ID, PLAN_DATE)
        assert [e.task_id for e in loaded] == [a.id, b.id]
        assert loaded[0].task.id == a.id
        assert plan_repository.get_for_date(TEST_USER_ID, date(2024, 6, 11)) == []

    def test_same_task_may_be_planned_on_different_days(self, plan_repository, create_task):
        task = create_task()

        plan_repository.create(_entry(task.id, plan_date=PLAN_DATE))
        plan_repository.create(_entry(task.id, plan_date=PLAN_DATE + timedelta(days=1)))

        assert plan_repository.exists(TEST_USER_ID, task.id, PLAN_DATE)
        assert plan_repository.exists(TEST_USER_ID, task.id, PLAN_DATE + timedelta(days=1))
        assert not plan_repository.exists(TEAMMATE_ID, task.id, PLAN_DATE)

    def test_duplicate_entry_rolls_back_whole_batch(self, plan_repository, create_task):
        planned = create_task()
        fresh = create_task()
        plan_repository.create(_entry(planned.id))

        with pytest.raises(IntegrityError):
            plan_repository.create_many([_entry(fresh.id), _entry(planned.id)])

        assert [e.task_id for e in plan_repository.get_for_date(TEST_USER_ID, PLAN_DATE)] == [planned.id]

    def test_list_for_date_by_priority(self, plan_repository, create_task):
        low = create_task(priority=TaskPriority.LOW)
        urgent = create_task(priority=TaskPriority.URGENT)
        medium = create_task(priority=TaskPriority.MEDIUM)
        for task in (low, urgent, medium):
            plan_repository.create(_entry(task.id))

        entries = plan_repository.list_for_date_by_priority(TEST_USER_ID, PLAN_DATE)

        assert [e.task_id for e in entries] == [urgent.id, medium.id, low.id]

    def test_update_and_clear(self, plan_repository, create_task):
        entry = plan_repository.create(_entry(create_task().id))
        done_at = datetime(2024, 6, 10, 16, 0)

        updated = plan_repository.update(entry.id, completed_at=done_at)
        assert updated.completed_at == done_at

        cleared = plan_repository.update(entry.id, completed_at=None, deferred_to=datetime(2024, 6, 11, 9))
        assert cleared.completed_at is None
        assert cleared.deferred_to == datetime(2024, 6, 11, 9)

        assert plan_repository.update("missing", completed_at=done_at) is None

    def test_delete(self, plan_repository, create_task):
        entry = plan_repository.create(_entry(create_task().id))

        assert plan_repository.delete(entry.id) is True
        assert plan_repository.get(entry.id) is None
        assert plan_repository.delete(entry.id) is False


class TestTimerRepository:
    def test_start_switch_and_stop(self, timer_repository, create_task):
        first = create_task()
        second = create_task()

        timer_repository.start(TEST_USER_ID, first.id)
        assert timer_repository.list_active_timer_task_ids() == {first.id}

        timer_repository.start(TEST_USER_ID, second.id)
        timer_repository.start(TEAMMATE_ID, first.id)
        assert timer_repository.list_active_timer_task_ids() == {first.id, second.id}

        assert timer_repository.stop(TEST_USER_ID) is True
        assert timer_repository.stop(TEST_USER_ID) is False
        assert timer_repository.list_active_timer_task_ids() == {first.id}
