"""User data model for agencyops."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """User role enumeration."""
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"
    CLIENT = "CLIENT"


# Roles allowed to read or edit another user's daily plan.
ELEVATED_ROLES = (UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value, UserRole.MANAGER.value)


class User(BaseModel):
    """User model for agencyops."""

    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="User email address")
    name: Optional[str] = Field(None, description="User display name")
    role: UserRole = Field(UserRole.MEMBER, description="User role")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES
