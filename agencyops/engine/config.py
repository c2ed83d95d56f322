"""Tunable tables for the prioritization engine.

Both components receive one of these models at construction time instead of
reading module constants, so tests and deployments can override them.
"""

import os
from typing import Dict, Tuple
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from agencyops.models.planned_task import PlanSource
from agencyops.models.task import TaskPriority

load_dotenv()


DEFAULT_SOURCE_SCORES: Dict[str, int] = {
    PlanSource.ROLLOVER.value: 140,
    PlanSource.DUE_DATE.value: 100,
    PlanSource.PRIORITY.value: 50,
    PlanSource.PROJECT_SEQUENCE.value: 20,
}

DEFAULT_SOURCE_LIMITS: Dict[str, int] = {
    PlanSource.ROLLOVER.value: 5,
    PlanSource.DUE_DATE.value: 5,
    PlanSource.PRIORITY.value: 3,
    PlanSource.PROJECT_SEQUENCE.value: 4,
}

DEFAULT_SOURCE_REASONS: Dict[str, str] = {
    PlanSource.ROLLOVER.value: "Incomplete from yesterday",
    PlanSource.DUE_DATE.value: "Due today",
    PlanSource.PRIORITY.value: "High priority task",
    PlanSource.PROJECT_SEQUENCE.value: "Next task in active project",
}

DEFAULT_REMINDER_INTERVALS: Dict[str, int] = {
    TaskPriority.URGENT.value: 5,
    TaskPriority.CRITICAL.value: 5,
    TaskPriority.HIGH.value: 30,
    TaskPriority.MEDIUM.value: 120,
    TaskPriority.LOW.value: 480,
}

# Interval for priorities missing from the table.
DEFAULT_REMINDER_INTERVAL_MINUTES = 480


class SuggestionConfig(BaseModel):
    """Scores, per-source limits and the result cap for daily-plan suggestions."""

    source_scores: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_SOURCE_SCORES))
    source_limits: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_SOURCE_LIMITS))
    source_reasons: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SOURCE_REASONS))
    max_results: int = Field(10, ge=0)

    @classmethod
    def from_env(cls) -> "SuggestionConfig":
        return cls(max_results=int(os.getenv("SUGGESTION_MAX_RESULTS", "10")))


class ReminderConfig(BaseModel):
    """Reminder cadence per priority plus sweep knobs."""

    intervals_minutes: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_REMINDER_INTERVALS))
    default_interval_minutes: int = Field(DEFAULT_REMINDER_INTERVAL_MINUTES, gt=0)
    eligible_priorities: Tuple[str, ...] = Field(default_factory=lambda: tuple(p.value for p in TaskPriority))
    send_timeout_seconds: float = Field(0.0, ge=0.0, description="0 disables the per-send timeout")

    @property
    def lookback_minutes(self) -> int:
        """How far back the rate-limit ledger must look (the longest interval)."""
        return max([self.default_interval_minutes, *self.intervals_minutes.values()])

    def interval_for(self, priority: str) -> int:
        return self.intervals_minutes.get(str(priority), self.default_interval_minutes)

    @classmethod
    def from_env(cls) -> "ReminderConfig":
        return cls(send_timeout_seconds=float(os.getenv("REMINDER_SEND_TIMEOUT_SEC", "0")))
