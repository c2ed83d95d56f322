"""Tests for the priority reminder sweep (ReminderScheduler)."""

import time
from datetime import datetime, timedelta

from agencyops.engine.config import ReminderConfig
from agencyops.engine.reminders import REMINDER_TYPE, ReminderScheduler, build_reminder
from agencyops.models.notification import NotificationPreference
from agencyops.models.task import TaskPriority, TaskStatus
from agencyops.notifications.service import NotificationService

from tests.conftest import NOW, TEAMMATE_ID, TEST_USER_ID
from tests.fakes import FakeSink, FakeTaskStore, FakeTimers, FixedClock


def scheduler_for(tasks, timers=(), sink=None, **config):
    sink = sink if sink is not None else FakeSink()
    return ReminderScheduler(
        store=FakeTaskStore(tasks),
        timers=FakeTimers(set(timers)),
        sink=sink,
        ledger=sink,
        config=ReminderConfig(**config),
        clock=FixedClock(NOW),
    )


class TestRunSweep:
    """Candidate selection, suppression and rate limiting."""

    def test_overdue_task_gets_one_reminder(self, make_task):
        task = make_task(name="Launch checklist", priority=TaskPriority.HIGH, due_date=NOW - timedelta(days=1))
        sink = FakeSink()

        result = scheduler_for([task], sink=sink).run_sweep(NOW)

        assert result.tasks_checked == 1
        assert result.reminders_sent == 1
        assert result.timestamp == NOW
        assert len(sink.sent) == 1
        assert "OVERDUE" in sink.sent[0].title
        assert sink.sent[0].user_id == TEST_USER_ID

    def test_active_timer_suppresses_reminder(self, make_task):
        task = make_task(priority=TaskPriority.HIGH, due_date=NOW - timedelta(days=1))
        sink = FakeSink()

        result = scheduler_for([task], timers={task.id}, sink=sink).run_sweep(NOW)

        assert result.tasks_checked == 1
        assert result.reminders_sent == 0
        assert result.suppressed == 1
        assert sink.sent == []

    def test_suppression_ignores_elapsed_time(self, make_task):
        """A timed task is skipped even when it was never reminded."""
        task = make_task(priority=TaskPriority.CRITICAL, due_date=NOW - timedelta(days=30))

        result = scheduler_for([task], timers={task.id}).run_sweep(NOW)

        assert result.reminders_sent == 0

    def test_high_priority_cadence(self, make_task):
        task = make_task(priority=TaskPriority.HIGH)

        sink = FakeSink()
        sink.sent.append(build_reminder(task, NOW - timedelta(minutes=20)))
        result = scheduler_for([task], sink=sink).run_sweep(NOW)
        assert result.reminders_sent == 0
        assert result.rate_limited == 1

        sink = FakeSink()
        sink.sent.append(build_reminder(task, NOW - timedelta(minutes=31)))
        result = scheduler_for([task], sink=sink).run_sweep(NOW)
        assert result.reminders_sent == 1

    def test_interval_boundary_sends(self, make_task):
        task = make_task(priority=TaskPriority.URGENT)
        sink = FakeSink()
        sink.sent.append(build_reminder(task, NOW - timedelta(minutes=5)))

        assert scheduler_for([task], sink=sink).run_sweep(NOW).reminders_sent == 1

    def test_medium_interval_is_two_hours(self, make_task):
        task = make_task(priority=TaskPriority.MEDIUM)
        recent, stale = FakeSink(), FakeSink()
        recent.sent.append(build_reminder(task, NOW - timedelta(minutes=119)))
        stale.sent.append(build_reminder(task, NOW - timedelta(minutes=121)))

        assert scheduler_for([task], sink=recent).run_sweep(NOW).reminders_sent == 0
        assert scheduler_for([task], sink=stale).run_sweep(NOW).reminders_sent == 1

    def test_repeated_sweep_is_rate_limited_by_its_own_history(self, make_task):
        tasks = [make_task(priority=p) for p in TaskPriority]
        sink = FakeSink()
        scheduler = scheduler_for(tasks, sink=sink)

        first = scheduler.run_sweep(NOW)
        second = scheduler.run_sweep(NOW + timedelta(minutes=1))

        assert first.reminders_sent == len(tasks)
        assert second.reminders_sent == 0
        assert second.rate_limited == len(tasks)

    def test_reminder_history_is_keyed_per_assignee(self, make_task):
        """A reminder sent to a previous assignee does not rate limit the new one."""
        task = make_task(priority=TaskPriority.HIGH)
        old = build_reminder(task.model_copy(update={"assignee_id": TEAMMATE_ID}), NOW - timedelta(minutes=1))
        sink = FakeSink()
        sink.sent.append(old)

        assert scheduler_for([task], sink=sink).run_sweep(NOW).reminders_sent == 1

    def test_closed_and_unassigned_tasks_are_not_checked(self, make_task):
        tasks = [
            make_task(status=TaskStatus.COMPLETED),
            make_task(status=TaskStatus.DONE),
            make_task(assignee_id=None),
            make_task(status=TaskStatus.BLOCKED),
        ]

        result = scheduler_for(tasks).run_sweep(NOW)

        assert result.tasks_checked == 1
        assert result.reminders_sent == 1

    def test_eligible_priorities_are_configurable(self, make_task):
        tasks = [make_task(priority=TaskPriority.LOW), make_task(priority=TaskPriority.URGENT)]

        result = scheduler_for(tasks, eligible_priorities=(TaskPriority.URGENT.value,)).run_sweep(NOW)

        assert result.tasks_checked == 1

    def test_send_failure_does_not_abort_sweep(self, make_task):
        broken = make_task(name="broken", priority=TaskPriority.HIGH, created_at=datetime(2024, 6, 1))
        healthy = make_task(name="healthy", priority=TaskPriority.HIGH, created_at=datetime(2024, 6, 2))
        sink = FakeSink(failing_task_ids={broken.id})

        result = scheduler_for([broken, healthy], sink=sink).run_sweep(NOW)

        assert result.tasks_checked == 2
        assert result.reminders_sent == 1
        assert result.failed == 1
        assert [n.metadata["task_id"] for n in sink.sent] == [healthy.id]

    def test_slow_send_times_out(self, make_task):
        task = make_task(priority=TaskPriority.HIGH)
        sink = FakeSink(delay_seconds=0.3)

        result = scheduler_for([task], sink=sink, send_timeout_seconds=0.05).run_sweep(NOW)

        assert result.reminders_sent == 0
        assert result.failed == 1

        # The abandoned worker finishes later but must not deliver.
        time.sleep(0.5)
        assert len(sink.sent) == result.reminders_sent

    def test_timed_send_within_limit_is_counted(self, make_task):
        task = make_task(priority=TaskPriority.HIGH)
        sink = FakeSink()

        result = scheduler_for([task], sink=sink, send_timeout_seconds=5.0).run_sweep(NOW)

        assert result.reminders_sent == 1
        assert result.failed == 0
        assert len(sink.sent) == 1

    def test_defaults_to_clock(self, make_task):
        result = scheduler_for([make_task()]).run_sweep()
        assert result.timestamp == NOW


class TestBuildReminder:
    """Reminder message composition."""

    def test_overdue_message(self, make_task):
        task = make_task(
            id="task-1",
            name="Publish landing page",
            priority=TaskPriority.HIGH,
            status=TaskStatus.IN_PROGRESS,
            due_date=NOW - timedelta(hours=50),
        )

        notification = build_reminder(task, NOW)

        assert notification.title == '🟠 OVERDUE: "Publish landing page" needs attention'
        assert notification.message == "Acme Co · Website Relaunch · Status: IN PROGRESS · 3 days overdue"
        assert notification.priority == "HIGH"
        assert notification.type == "TASK_DUE_SOON"
        assert notification.category == "TASK"
        assert notification.link == "/tasks?taskId=task-1"
        assert notification.metadata == {
            "task_id": "task-1",
            "task_priority": "HIGH",
            "reminder_type": REMINDER_TYPE,
            "is_overdue": True,
        }
        assert notification.created_at == NOW

    def test_reminder_message_without_project(self, make_task):
        task = make_task(name="Call back", priority=TaskPriority.CRITICAL, project=None, project_id=None, client=None)

        notification = build_reminder(task, NOW)

        assert notification.title == '🔴 CRITICAL task reminder: "Call back"'
        assert notification.message == "Status: TODO"
        assert notification.priority == "URGENT"
        assert notification.metadata["is_overdue"] is False

    def test_due_later_is_not_overdue(self, make_task):
        task = make_task(priority=TaskPriority.LOW, due_date=NOW + timedelta(hours=1))

        notification = build_reminder(task, NOW)

        assert notification.title.startswith("🟢 LOW task reminder")
        assert notification.priority == "NORMAL"

    def test_one_day_overdue_is_singular(self, make_task):
        task = make_task(due_date=NOW - timedelta(hours=3))
        assert build_reminder(task, NOW).message.endswith("· 1 day overdue")


class TestSweepAgainstDatabase:
    """ReminderScheduler driven through the SQLAlchemy repositories."""

    def _scheduler(self, task_store, timer_repository, notification_repository, now=NOW):
        service = NotificationService(notification_repository)
        return ReminderScheduler(
            store=task_store,
            timers=timer_repository,
            sink=service,
            ledger=service,
            clock=FixedClock(now),
        )

    def test_sweep_stores_reminder_and_rate_limits(
        self, task_store, timer_repository, notification_repository, create_task
    ):
        task = create_task(name="Launch checklist", priority=TaskPriority.HIGH, due_date=NOW - timedelta(days=1))
        create_task(status=TaskStatus.DONE)

        first = self._scheduler(task_store, timer_repository, notification_repository).run_sweep(NOW)
        stored = notification_repository.list_for_user(TEST_USER_ID)

        assert first.tasks_checked == 1
        assert first.reminders_sent == 1
        assert len(stored) == 1
        assert stored[0].metadata["task_id"] == task.id
        assert stored[0].metadata["reminder_type"] == REMINDER_TYPE
        assert "OVERDUE" in stored[0].title

        later = NOW + timedelta(minutes=20)
        second = self._scheduler(task_store, timer_repository, notification_repository, later).run_sweep(later)
        assert second.reminders_sent == 0

        later = NOW + timedelta(minutes=31)
        third = self._scheduler(task_store, timer_repository, notification_repository, later).run_sweep(later)
        assert third.reminders_sent == 1

    def test_active_timer_suppresses(self, task_store, timer_repository, notification_repository, create_task):
        task = create_task(priority=TaskPriority.HIGH, due_date=NOW - timedelta(days=1))
        timer_repository.start(TEST_USER_ID, task.id, started_at=NOW - timedelta(minutes=10))

        result = self._scheduler(task_store, timer_repository, notification_repository).run_sweep(NOW)

        assert result.reminders_sent == 0
        assert notification_repository.list_for_user(TEST_USER_ID) == []

    def test_quiet_hours_skip_delivery(self, task_store, timer_repository, notification_repository, create_task):
        create_task(priority=TaskPriority.URGENT)
        notification_repository.upsert_preferences(
            NotificationPreference(user_id=TEST_USER_ID, quiet_hours_start=8, quiet_hours_end=17)
        )

        result = self._scheduler(task_store, timer_repository, notification_repository).run_sweep(NOW)

        assert result.tasks_checked == 1
        assert result.reminders_sent == 0
        assert result.failed == 0
        assert notification_repository.list_for_user(TEST_USER_ID) == []

    def test_quiet_hours_follow_sweep_time(
        self, task_store, timer_repository, notification_repository, create_task
    ):
        create_task(priority=TaskPriority.URGENT)
        notification_repository.upsert_preferences(
            NotificationPreference(user_id=TEST_USER_ID, quiet_hours_start=22, quiet_hours_end=7)
        )
        night = datetime(2024, 6, 10, 23, 30)

        # The scheduler's clock says 09:00; the explicit sweep time decides.
        result = self._scheduler(task_store, timer_repository, notification_repository).run_sweep(night)

        assert result.reminders_sent == 0
        assert notification_repository.list_for_user(TEST_USER_ID) == []
