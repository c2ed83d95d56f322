"""Priority reminder sweep for agencyops.

One sweep evaluates every open, assigned task:

- tasks the assignee is actively timing are suppressed;
- tasks reminded more recently than their priority's interval are rate limited;
- everything else gets one reminder.

The notification history is the only state, so each sweep starts fresh and
deleting history simply lets reminders resume on the next sweep.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel

from agencyops.engine.config import ReminderConfig
from agencyops.engine.ports import (
    Clock,
    NotificationSink,
    ReminderKey,
    ReminderLedger,
    TaskFilter,
    TaskStore,
    TimerRegistry,
)
from agencyops.engine.priority import (
    days_overdue,
    format_days_overdue,
    humanize_status,
    is_overdue,
    notification_tier,
    priority_marker,
)
from agencyops.errors import TransientDependencyError
from agencyops.models.notification import Notification, NotificationCategory, NotificationType
from agencyops.models.task import CLOSED_TASK_STATUSES, Task

logger = logging.getLogger(__name__)

REMINDER_TYPE = "priority_reminder"
REMINDER_NOTIFICATION_TYPE = NotificationType.TASK_DUE_SOON.value


class SweepResult(BaseModel):
    """Counters returned by one sweep."""
    tasks_checked: int = 0
    reminders_sent: int = 0
    suppressed: int = 0
    rate_limited: int = 0
    failed: int = 0
    timestamp: datetime


def build_reminder(task: Task, now: datetime) -> Notification:
    """Compose the reminder notification for one task.

    Args:
        task: Open, assigned task to remind about
        now: Sweep time; decides overdue and becomes the notification timestamp

    Returns:
        Notification addressed to the task's assignee
    """
    overdue = is_overdue(task.due_date, now)
    marker = priority_marker(task.priority)

    if overdue:
        title = f'{marker} OVERDUE: "{task.name}" needs attention'
    else:
        title = f'{marker} {task.priority} task reminder: "{task.name}"'

    parts: List[str] = []
    if task.client and task.client.name:
        parts.append(task.client.name)
    if task.project and task.project.name:
        parts.append(task.project.name)
    parts.append(f"Status: {humanize_status(task.status)}")
    if overdue:
        parts.append(format_days_overdue(days_overdue(task.due_date, now)))

    return Notification(
        user_id=task.assignee_id,
        type=REMINDER_NOTIFICATION_TYPE,
        category=NotificationCategory.TASK,
        priority=notification_tier(task.priority),
        title=title,
        message=" · ".join(parts),
        link=f"/tasks?taskId={task.id}",
        metadata={
            "task_id": task.id,
            "task_priority": task.priority,
            "reminder_type": REMINDER_TYPE,
            "is_overdue": overdue,
        },
        created_at=now,
    )


class ReminderScheduler:
    """Rate-limited reminder sweep over all open, assigned tasks.

    With a send timeout configured, `sink.create` runs on a worker thread, so
    the sink must not share a database session with the caller.
    """

    def __init__(
        self,
        store: TaskStore,
        timers: TimerRegistry,
        sink: NotificationSink,
        ledger: ReminderLedger,
        config: Optional[ReminderConfig] = None,
        clock: Clock = datetime.utcnow,
    ):
        self.store = store
        self.timers = timers
        self.sink = sink
        self.ledger = ledger
        self.config = config or ReminderConfig()
        self.clock = clock

    def run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Evaluate every candidate task once and send due reminders.

        Individual send failures are logged and counted; they never abort
        the sweep.

        Args:
            now: Sweep time (defaults to the injected clock)

        Returns:
            SweepResult with per-outcome counters
        """
        if now is None:
            now = self.clock()

        tasks = self.store.find_tasks(
            TaskFilter(
                status_not_in=list(CLOSED_TASK_STATUSES),
                require_assignee=True,
                priority_in=list(self.config.eligible_priorities),
            )
        )
        result = SweepResult(tasks_checked=len(tasks), timestamp=now)

        active_task_ids = self.timers.list_active_timer_task_ids()
        since = now - timedelta(minutes=self.config.lookback_minutes)
        last_reminders: Dict[ReminderKey, datetime] = self.ledger.last_reminders(since)

        for task in tasks:
            if task.assignee_id is None:
                continue
            if task.id in active_task_ids:
                result.suppressed += 1
                continue

            last = last_reminders.get((task.id, task.assignee_id))
            interval = timedelta(minutes=self.config.interval_for(task.priority))
            if last is not None and now - last < interval:
                result.rate_limited += 1
                continue

            try:
                if self._send(build_reminder(task, now)):
                    result.reminders_sent += 1
            except TransientDependencyError as e:
                result.failed += 1
                logger.error(f"Failed to send reminder for task {task.id}: {e}")

        logger.info(
            f"Reminder sweep at {now.isoformat()}: checked={result.tasks_checked} "
            f"sent={result.reminders_sent} suppressed={result.suppressed} "
            f"rate_limited={result.rate_limited} failed={result.failed}"
        )
        return result

    def _send(self, notification: Notification) -> bool:
        """Hand one notification to the sink, bounded by the configured timeout.

        On timeout the send is marked abandoned so a late worker does not
        deliver a reminder the sweep already counted as failed.
        """
        timeout = self.config.send_timeout_seconds
        try:
            if not timeout:
                return self.sink.create(notification)
            abandoned = threading.Event()
            executor = ThreadPoolExecutor(max_workers=1)
            try:
                future = executor.submit(self.sink.create, notification, abandoned)
                try:
                    return future.result(timeout=timeout)
                except FutureTimeoutError:
                    abandoned.set()
                    raise
            finally:
                executor.shutdown(wait=False)
        except FutureTimeoutError:
            raise TransientDependencyError(f"send timed out after {timeout}s")
        except Exception as e:
            raise TransientDependencyError(f"{type(e).__name__}: {str(e)}") from e
