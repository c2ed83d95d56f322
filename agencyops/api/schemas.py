"""Request/response models for the agencyops API.

Field aliases keep the camelCase wire format the portal front end uses.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from agencyops.models.planned_task import PlannedTaskEntry


class AcceptSuggestionsRequest(BaseModel):
    """Request model for accepting suggestions into a daily plan."""
    date: str = Field(..., description="Plan date (YYYY-MM-DD)")
    task_ids: List[str] = Field(..., alias="taskIds", description="Accepted task IDs")
    sources: List[str] = Field(default_factory=list, description="Source label per task ID (same order)")


class AcceptSuggestionsResponse(BaseModel):
    """Response model for accepted suggestions."""
    success: bool = True
    count: int
    tasks: List[PlannedTaskEntry]


class ReminderSweepResponse(BaseModel):
    """Response model for one reminder sweep."""
    success: bool = True
    tasks_checked: int = Field(..., alias="tasksChecked")
    reminders_sent: int = Field(..., alias="remindersSent")
    timestamp: datetime


class AddPlanEntryRequest(BaseModel):
    """Request model for manually adding a task to a daily plan."""
    task_id: str = Field(..., alias="taskId")
    date: Optional[str] = Field(None, description="Plan date (YYYY-MM-DD); defaults to today")
    source: Optional[str] = Field(None, description="Plan source; defaults to 'manual'")
    target_user_id: Optional[str] = Field(None, alias="targetUserId", description="Plan owner when adding for a teammate")


class UpdatePlanEntryRequest(BaseModel):
    """Request model for completing or deferring a plan entry."""
    completed: Optional[bool] = None
    deferred_to: Optional[datetime] = Field(None, alias="deferredTo")
