"""Prioritization and reminder engine for agencyops."""

from agencyops.engine.config import SuggestionConfig, ReminderConfig
from agencyops.engine.ports import TaskFilter
from agencyops.engine.priority import notification_tier, days_overdue
from agencyops.engine.suggestions import SuggestionEngine
from agencyops.engine.reminders import ReminderScheduler, SweepResult, build_reminder

__all__ = [
    "SuggestionConfig",
    "ReminderConfig",
    "TaskFilter",
    "notification_tier",
    "days_overdue",
    "SuggestionEngine",
    "ReminderScheduler",
    "SweepResult",
    "build_reminder",
]
