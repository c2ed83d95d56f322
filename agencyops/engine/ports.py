"""Ports (interfaces) consumed by the prioritization engine.

The engine depends on these Protocols rather than on the SQLAlchemy
repositories, so the components can be driven by in-memory fakes in tests.
"""

import threading
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Set, Tuple
from pydantic import BaseModel, Field

from agencyops.models.notification import Notification
from agencyops.models.planned_task import PlannedTaskEntry
from agencyops.models.task import Task, priority_rank


Clock = Callable[[], datetime]

# (task_id, user_id)
ReminderKey = Tuple[str, str]


class TaskFilter(BaseModel):
    """Query shape understood by every TaskStore.

    Unset fields do not constrain the result. `order_by_priority` sorts by
    priority descending then created_at ascending; otherwise order is the
    store's natural order.
    """

    ids_in: Optional[List[str]] = None
    assignee_id: Optional[str] = None
    require_assignee: bool = False
    status_in: Optional[List[str]] = None
    status_not_in: Optional[List[str]] = None
    priority_in: Optional[List[str]] = None
    project_status_in: Optional[List[str]] = None
    due_from: Optional[datetime] = None
    due_before: Optional[datetime] = None
    exclude_ids: List[str] = Field(default_factory=list)
    order_by_priority: bool = False
    limit: Optional[int] = None

    def matches(self, task: Task) -> bool:
        if self.ids_in is not None and task.id not in self.ids_in:
            return False
        if self.assignee_id is not None and task.assignee_id != self.assignee_id:
            return False
        if self.require_assignee and task.assignee_id is None:
            return False
        if self.status_in is not None and task.status not in self.status_in:
            return False
        if self.status_not_in is not None and task.status in self.status_not_in:
            return False
        if self.priority_in is not None and task.priority not in self.priority_in:
            return False
        if self.project_status_in is not None:
            if task.project is None or task.project.status not in self.project_status_in:
                return False
        if self.due_from is not None or self.due_before is not None:
            if task.due_date is None:
                return False
            if self.due_from is not None and task.due_date < self.due_from:
                return False
            if self.due_before is not None and task.due_date >= self.due_before:
                return False
        return task.id not in self.exclude_ids

    def apply(self, tasks: Sequence[Task]) -> List[Task]:
        """Filter, order and limit an in-memory task list."""
        selected = [task for task in tasks if self.matches(task)]
        if self.order_by_priority:
            selected.sort(key=lambda t: (-priority_rank(t.priority), t.created_at))
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected


class TaskStore(Protocol):
    def find_tasks(self, task_filter: TaskFilter) -> List[Task]: ...

    def find_planned_entries(self, user_id: str, plan_date: date) -> List[PlannedTaskEntry]: ...

    def create_planned_entries(self, entries: List[PlannedTaskEntry]) -> List[PlannedTaskEntry]:
        """Persist all entries in one atomic batch."""
        ...


class TimerRegistry(Protocol):
    def list_active_timer_task_ids(self) -> Set[str]: ...


class NotificationSink(Protocol):
    def create(self, notification: Notification, abandoned: Optional[threading.Event] = None) -> bool:
        """Store a notification; False when delivery rules skipped it.

        A sink must not write once `abandoned` is set: the caller has already
        counted the send as failed.
        """
        ...

    def find_recent(
        self,
        notification_type: str,
        since: datetime,
        metadata_filter: Dict[str, Any],
    ) -> List[Notification]: ...


class ReminderLedger(Protocol):
    def last_reminders(self, since: datetime) -> Dict[ReminderKey, datetime]:
        """Most recent reminder time per (task_id, user_id) created at or after `since`."""
        ...
