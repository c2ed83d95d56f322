"""Suggestion data model for agencyops."""

from pydantic import BaseModel, Field

from agencyops.models.task import Task
from agencyops.models.planned_task import PlanSource


class Suggestion(BaseModel):
    """One ranked candidate for a user's daily plan."""

    task: Task = Field(..., description="Suggested task")
    source: PlanSource = Field(..., description="Candidate source that produced it")
    score: int = Field(..., description="Fixed score of the source")
    reason: str = Field(..., description="Human-readable reason")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
