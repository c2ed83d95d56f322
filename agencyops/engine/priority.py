"""Priority helpers shared by the reminder sweep.

Pure functions: the 5-to-3 collapse of task priorities into notification
tiers, the title marker, and overdue arithmetic.
"""

import math
from datetime import datetime, timedelta

from agencyops.models.task import TaskPriority
from agencyops.models.notification import NotificationPriority


_URGENT_PRIORITIES = (TaskPriority.URGENT.value, TaskPriority.CRITICAL.value)

PRIORITY_MARKERS = {
    TaskPriority.CRITICAL.value: "🔴",
    TaskPriority.URGENT.value: "🔴",
    TaskPriority.HIGH.value: "🟠",
    TaskPriority.MEDIUM.value: "🟡",
}
DEFAULT_PRIORITY_MARKER = "🟢"


def notification_tier(priority: str) -> str:
    """Map a task priority onto a notification urgency tier.

    URGENT and CRITICAL collapse to URGENT, HIGH stays HIGH, and everything
    else (including unknown priorities) is NORMAL.

    Args:
        priority: Task priority value

    Returns:
        NotificationPriority value (URGENT, HIGH or NORMAL)
    """
    if priority in _URGENT_PRIORITIES:
        return NotificationPriority.URGENT.value
    if priority == TaskPriority.HIGH.value:
        return NotificationPriority.HIGH.value
    return NotificationPriority.NORMAL.value


def priority_marker(priority: str) -> str:
    return PRIORITY_MARKERS.get(priority, DEFAULT_PRIORITY_MARKER)


def humanize_status(status: str) -> str:
    return str(status).replace("_", " ")


def is_overdue(due_date, now: datetime) -> bool:
    return due_date is not None and due_date < now


def days_overdue(due_date: datetime, now: datetime) -> int:
    """Whole days past due, rounded up (50 hours late is 3 days).

    Args:
        due_date: When the task was due
        now: Reference time, later than `due_date`

    Returns:
        Number of started days since `due_date`
    """
    return math.ceil((now - due_date) / timedelta(days=1))


def format_days_overdue(days: int) -> str:
    return f"{days} day{'s' if days != 1 else ''} overdue"
