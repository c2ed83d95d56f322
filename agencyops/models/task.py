"""Task data model for agencyops."""

from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"
    DONE = "DONE"


class TaskPriority(str, Enum):
    """Task priority enumeration (lowest to highest)."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"
    CRITICAL = "CRITICAL"


class ProjectStatus(str, Enum):
    """Project status enumeration."""
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Declaration order of TaskPriority doubles as its sort order.
PRIORITY_RANK = {priority.value: rank for rank, priority in enumerate(TaskPriority)}

OPEN_WORK_STATUSES = (TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value)
ACTIVE_PROJECT_STATUSES = (ProjectStatus.IN_PROGRESS.value, ProjectStatus.ACTIVE.value)
CLOSED_TASK_STATUSES = (TaskStatus.COMPLETED.value, TaskStatus.DONE.value)


def priority_rank(priority: str) -> int:
    """Sort key for a priority value; unknown priorities sort lowest."""
    return PRIORITY_RANK.get(str(getattr(priority, "value", priority)), -1)


class ClientRef(BaseModel):
    """Client summary attached to a task read."""
    id: str
    name: str


class ProjectRef(BaseModel):
    """Project summary attached to a task read."""
    id: str
    name: str
    status: ProjectStatus = ProjectStatus.ACTIVE

    class Config:
        use_enum_values = True


class Task(BaseModel):
    """Canonical Task model (read-only to the prioritization engine)."""

    id: str = Field(..., description="Unique task identifier")
    name: str = Field(..., description="Task name")
    status: TaskStatus = Field(TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    due_date: Optional[datetime] = Field(None, description="Due timestamp (naive UTC)")
    assignee_id: Optional[str] = Field(None, description="Assigned user ID")
    project_id: Optional[str] = Field(None, description="Owning project ID")
    client_id: Optional[str] = Field(None, description="Owning client ID")
    created_at: datetime = Field(..., description="Task creation timestamp")
    project: Optional[ProjectRef] = Field(None, description="Joined project summary")
    client: Optional[ClientRef] = Field(None, description="Joined client summary")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
