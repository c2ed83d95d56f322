"""Repository for Notification and NotificationPreference database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from agencyops.models.notification import Notification, NotificationPreference
from agencyops.database.models import NotificationDB, NotificationPreferenceDB, enum_to_value

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Repository for notification history and delivery preferences."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, notification: Notification) -> Notification:
        """Store a notification."""
        try:
            row = NotificationDB.from_pydantic(notification)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created notification {row.id} for user {row.user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to create notification for user {notification.user_id}: {type(e).__name__}: {str(e)}"
            )
            raise

    def list_since(self, notification_type: str, since: datetime) -> List[Notification]:
        """Notifications of one type created at or after `since`, oldest first."""
        rows = (
            self.db.query(NotificationDB)
            .filter(
                NotificationDB.type == enum_to_value(notification_type),
                NotificationDB.created_at >= since,
            )
            .order_by(NotificationDB.created_at.asc())
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def list_for_user(self, user_id: str) -> List[Notification]:
        """A user's notifications, newest first."""
        rows = (
            self.db.query(NotificationDB)
            .filter(NotificationDB.user_id == user_id)
            .order_by(NotificationDB.created_at.desc())
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def get_preferences(self, user_id: str) -> Optional[NotificationPreference]:
        row = (
            self.db.query(NotificationPreferenceDB)
            .filter(NotificationPreferenceDB.user_id == user_id)
            .first()
        )
        return row.to_pydantic() if row else None

    def upsert_preferences(self, preference: NotificationPreference) -> NotificationPreference:
        """Create or replace a user's delivery preferences."""
        try:
            row = (
                self.db.query(NotificationPreferenceDB)
                .filter(NotificationPreferenceDB.user_id == preference.user_id)
                .first()
            )
            if row is None:
                row = NotificationPreferenceDB(user_id=preference.user_id)
                self.db.add(row)
            row.quiet_hours_start = preference.quiet_hours_start
            row.quiet_hours_end = preference.quiet_hours_end
            row.disabled_types = [enum_to_value(t) for t in preference.disabled_types]
            self.db.commit()
            self.db.refresh(row)
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to save notification preferences for user {preference.user_id}: "
                f"{type(e).__name__}: {str(e)}"
            )
            raise
