"""Notification data models for agencyops."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Notification type enumeration."""
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_DUE_SOON = "TASK_DUE_SOON"
    TASK_OVERDUE = "TASK_OVERDUE"
    TASK_COMMENT = "TASK_COMMENT"
    SYSTEM = "SYSTEM"


class NotificationCategory(str, Enum):
    """Notification category enumeration."""
    TASK = "TASK"
    PROJECT = "PROJECT"
    CLIENT = "CLIENT"
    SYSTEM = "SYSTEM"


class NotificationPriority(str, Enum):
    """Notification urgency tier."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Notification(BaseModel):
    """A notification addressed to one user."""

    id: Optional[str] = Field(None, description="Unique notification identifier (assigned on create)")
    user_id: str = Field(..., description="Recipient user ID")
    type: NotificationType = Field(..., description="Notification type")
    category: NotificationCategory = Field(..., description="Notification category")
    priority: NotificationPriority = Field(NotificationPriority.NORMAL, description="Urgency tier")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Body text")
    link: Optional[str] = Field(None, description="In-app link")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form metadata")
    is_read: bool = Field(False, description="Whether the recipient has read it")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class NotificationPreference(BaseModel):
    """Per-user delivery preferences."""

    user_id: str
    quiet_hours_start: Optional[int] = Field(None, ge=0, le=23, description="Hour quiet hours begin")
    quiet_hours_end: Optional[int] = Field(None, ge=0, le=23, description="Hour quiet hours end")
    disabled_types: List[NotificationType] = Field(default_factory=list, description="Types the user opted out of")

    class Config:
        use_enum_values = True
