"""PlannedTaskEntry ("daily task") data model for agencyops."""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from agencyops.models.task import Task


class PlanSource(str, Enum):
    """How a task landed on a user's daily plan."""
    ROLLOVER = "rollover"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    PROJECT_SEQUENCE = "project_sequence"
    MANUAL = "manual"
    SYSTEM = "system"


class PlannedTaskEntry(BaseModel):
    """Binds one task to one user and one calendar date."""

    id: str = Field(..., description="Unique entry identifier (UUID v4)")
    task_id: str = Field(..., description="Planned task ID")
    user_id: str = Field(..., description="User whose plan this entry belongs to")
    plan_date: date = Field(..., description="Calendar day the task is planned for")
    source: PlanSource = Field(PlanSource.MANUAL, description="Where the entry came from")
    suggested: bool = Field(False, description="Whether the entry came from a suggestion")
    accepted: bool = Field(True, description="Whether the user accepted the entry")
    suggested_by: str = Field("system", description="'system' or the ID of the user who added it")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    deferred_to: Optional[datetime] = Field(None, description="Deferral target")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")
    task: Optional[Task] = Field(None, description="Joined task (populated on reads)")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
