"""Data models for agencyops."""

from agencyops.models.task import Task, TaskStatus, TaskPriority, ProjectStatus, ProjectRef, ClientRef
from agencyops.models.planned_task import PlannedTaskEntry, PlanSource
from agencyops.models.notification import (
    Notification,
    NotificationType,
    NotificationCategory,
    NotificationPriority,
    NotificationPreference,
)
from agencyops.models.suggestion import Suggestion
from agencyops.models.user import User, UserRole

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "ProjectStatus",
    "ProjectRef",
    "ClientRef",
    "PlannedTaskEntry",
    "PlanSource",
    "Notification",
    "NotificationType",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationPreference",
    "Suggestion",
    "User",
    "UserRole",
]
