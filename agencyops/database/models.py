"""SQLAlchemy database models for agencyops."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from typing import Union, TypeVar, Type
from agencyops.database.database import Base
from agencyops.models.notification import (
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)
from agencyops.models.planned_task import PlanSource
from agencyops.models.task import ProjectStatus, TaskPriority, TaskStatus
from agencyops.models.user import UserRole

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert a stored string to an enum, falling back to `default`.

    Matching is case-insensitive: priorities and statuses are stored upper
    case, plan sources lower case.
    """
    if not value:
        return default
    for candidate in (value, value.upper(), value.lower()):
        try:
            return enum_class(candidate)
        except ValueError:
            continue
    return default


def _new_id() -> str:
    return str(uuid.uuid4())


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRole.MEMBER.value)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from agencyops.models.user import User
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            role=value_to_enum(self.role, UserRole, UserRole.MEMBER),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=enum_to_value(user.role),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ClientDB(Base):
    """Database model for an agency client."""

    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class ProjectDB(Base):
    """Database model for a client project."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=_new_id)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String, nullable=False)
    status = Column(String, nullable=False, default=ProjectStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    status = Column(String, nullable=False, default=TaskStatus.TODO.value, index=True)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value, index=True)
    due_date = Column(DateTime, nullable=True, index=True)

    assignee_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("ProjectDB", lazy="joined")
    client = relationship("ClientDB", lazy="joined")

    def to_pydantic(self):
        """Convert database model to Pydantic model (with project/client summaries)."""
        from agencyops.models.task import Task, ProjectRef, ClientRef

        project = None
        if self.project is not None:
            project = ProjectRef(
                id=self.project.id,
                name=self.project.name,
                status=value_to_enum(self.project.status, ProjectStatus, ProjectStatus.ACTIVE),
            )
        client = ClientRef(id=self.client.id, name=self.client.name) if self.client is not None else None

        return Task(
            id=self.id,
            name=self.name,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.TODO),
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            due_date=self.due_date,
            assignee_id=self.assignee_id,
            project_id=self.project_id,
            client_id=self.client_id,
            created_at=self.created_at,
            project=project,
            client=client,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            name=task.name,
            status=enum_to_value(task.status),
            priority=enum_to_value(task.priority),
            due_date=task.due_date,
            assignee_id=task.assignee_id,
            project_id=task.project_id,
            client_id=task.client_id,
            created_at=task.created_at,
        )


class PlannedTaskEntryDB(Base):
    """Database model for a task planned on a user's day."""

    __tablename__ = "planned_task_entries"
    __table_args__ = (
        # A task appears at most once on a user's plan for a given day.
        UniqueConstraint("user_id", "task_id", "date", name="uq_planned_task_user_date"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    source = Column(String, nullable=False, default=PlanSource.MANUAL.value)
    suggested = Column(Boolean, nullable=False, default=False)
    accepted = Column(Boolean, nullable=False, default=True)
    suggested_by = Column(String, nullable=False, default="system")

    completed_at = Column(DateTime, nullable=True)
    deferred_to = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    task = relationship("TaskDB", lazy="joined")

    def to_pydantic(self):
        """Convert database model to Pydantic model (task joined)."""
        from agencyops.models.planned_task import PlannedTaskEntry
        return PlannedTaskEntry(
            id=self.id,
            task_id=self.task_id,
            user_id=self.user_id,
            plan_date=self.date,
            source=value_to_enum(self.source, PlanSource, PlanSource.MANUAL),
            suggested=self.suggested,
            accepted=self.accepted,
            suggested_by=self.suggested_by,
            completed_at=self.completed_at,
            deferred_to=self.deferred_to,
            created_at=self.created_at,
            task=self.task.to_pydantic() if self.task is not None else None,
        )

    @classmethod
    def from_pydantic(cls, entry):
        """Create database model from Pydantic model."""
        return cls(
            id=entry.id,
            task_id=entry.task_id,
            user_id=entry.user_id,
            date=entry.plan_date,
            source=enum_to_value(entry.source),
            suggested=entry.suggested,
            accepted=entry.accepted,
            suggested_by=entry.suggested_by,
            completed_at=entry.completed_at,
            deferred_to=entry.deferred_to,
            created_at=entry.created_at,
        )


class ActiveTimerDB(Base):
    """A running time-tracking timer (at most one per user)."""

    __tablename__ = "active_timers"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class NotificationDB(Base):
    """Database model for Notification."""

    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    priority = Column(String, nullable=False, default=NotificationPriority.NORMAL.value)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    link = Column(String, nullable=True)
    # `metadata` is reserved on declarative classes.
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)

    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from agencyops.models.notification import Notification
        return Notification(
            id=self.id,
            user_id=self.user_id,
            type=value_to_enum(self.type, NotificationType, NotificationType.SYSTEM),
            category=value_to_enum(self.category, NotificationCategory, NotificationCategory.SYSTEM),
            priority=value_to_enum(self.priority, NotificationPriority, NotificationPriority.NORMAL),
            title=self.title,
            message=self.message,
            link=self.link,
            metadata=self.metadata_json or {},
            is_read=self.is_read,
            created_at=self.created_at,
        )

    @classmethod
    def from_pydantic(cls, notification):
        """Create database model from Pydantic model."""
        return cls(
            id=notification.id or _new_id(),
            user_id=notification.user_id,
            type=enum_to_value(notification.type),
            category=enum_to_value(notification.category),
            priority=enum_to_value(notification.priority),
            title=notification.title,
            message=notification.message,
            link=notification.link,
            metadata_json=dict(notification.metadata),
            is_read=notification.is_read,
            created_at=notification.created_at,
        )


class NotificationPreferenceDB(Base):
    """Per-user notification delivery preferences."""

    __tablename__ = "notification_preferences"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    quiet_hours_start = Column(Integer, nullable=True)
    quiet_hours_end = Column(Integer, nullable=True)
    disabled_types = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from agencyops.models.notification import NotificationPreference
        return NotificationPreference(
            user_id=self.user_id,
            quiet_hours_start=self.quiet_hours_start,
            quiet_hours_end=self.quiet_hours_end,
            disabled_types=self.disabled_types or [],
        )
