"""Notification delivery for agencyops.

`NotificationService` is the production NotificationSink and ReminderLedger:
it applies per-user delivery preferences before storing a notification, and
answers "when was this task last reminded?" from the notification history.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from agencyops.database.notification_repository import NotificationRepository
from agencyops.engine.ports import ReminderKey
from agencyops.engine.reminders import REMINDER_NOTIFICATION_TYPE, REMINDER_TYPE
from agencyops.models.notification import Notification, NotificationPreference

logger = logging.getLogger(__name__)


def is_in_quiet_hours(quiet_hours_start: Optional[int], quiet_hours_end: Optional[int], hour: int) -> bool:
    """Check whether `hour` falls inside a quiet-hours window.

    Windows may wrap past midnight (e.g. 22 -> 7). An unset bound disables
    quiet hours.

    Args:
        quiet_hours_start: First quiet hour (0-23), or None
        quiet_hours_end: First hour after the window (0-23), or None
        hour: Hour of day to test

    Returns:
        True if notifications should be held back at `hour`
    """
    if quiet_hours_start is None or quiet_hours_end is None:
        return False
    if quiet_hours_start < quiet_hours_end:
        return quiet_hours_start <= hour < quiet_hours_end
    return hour >= quiet_hours_start or hour < quiet_hours_end


def is_type_enabled(preference: NotificationPreference, notification_type: str) -> bool:
    return notification_type not in preference.disabled_types


class NotificationService:
    """Preference-aware notification sink backed by NotificationRepository."""

    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def create(self, notification: Notification, abandoned: Optional[threading.Event] = None) -> bool:
        """Store `notification` unless the recipient's preferences suppress it.

        Quiet hours are evaluated at the notification's own `created_at`, so a
        sweep run for an explicit time applies delivery rules at that time.

        Args:
            notification: Notification to deliver
            abandoned: Set by a caller that gave up waiting; checked just before writing

        Returns:
            True when stored, False when skipped. Storage errors propagate.
        """
        preference = self.repository.get_preferences(notification.user_id)
        if preference is not None:
            if is_in_quiet_hours(preference.quiet_hours_start, preference.quiet_hours_end, notification.created_at.hour):
                logger.info(f"Notification skipped for user {notification.user_id} - quiet hours")
                return False
            if not is_type_enabled(preference, notification.type):
                logger.info(
                    f"Notification skipped for user {notification.user_id} - type {notification.type} disabled"
                )
                return False

        if abandoned is not None and abandoned.is_set():
            logger.warning(f"Notification for user {notification.user_id} abandoned before write: {notification.title}")
            return False

        stored = self.repository.create(notification)
        logger.info(f"Notification created for user {stored.user_id}: {stored.title}")
        return True

    def find_recent(
        self,
        notification_type: str,
        since: datetime,
        metadata_filter: Dict[str, Any],
    ) -> List[Notification]:
        """Notifications of `notification_type` since `since` whose metadata contains `metadata_filter`."""
        return [
            notification
            for notification in self.repository.list_since(notification_type, since)
            if all(notification.metadata.get(key) == value for key, value in metadata_filter.items())
        ]

    def last_reminders(self, since: datetime) -> Dict[ReminderKey, datetime]:
        """Most recent priority reminder per (task_id, user_id) since `since`."""
        latest: Dict[ReminderKey, datetime] = {}
        for notification in self.find_recent(REMINDER_NOTIFICATION_TYPE, since, {"reminder_type": REMINDER_TYPE}):
            task_id = notification.metadata.get("task_id")
            if not task_id:
                continue
            key = (task_id, notification.user_id)
            if key not in latest or notification.created_at > latest[key]:
                latest[key] = notification.created_at
        return latest


class SessionScopedNotificationSink:
    """NotificationSink that opens its own session for every send.

    Used when sends run on a worker thread under a timeout: a SQLAlchemy
    Session must not be shared across threads, so each send gets a fresh one
    from `session_factory` and closes it when done.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def create(self, notification: Notification, abandoned: Optional[threading.Event] = None) -> bool:
        db = self.session_factory()
        try:
            return NotificationService(NotificationRepository(db)).create(notification, abandoned)
        finally:
            db.close()

    def find_recent(
        self,
        notification_type: str,
        since: datetime,
        metadata_filter: Dict[str, Any],
    ) -> List[Notification]:
        db = self.session_factory()
        try:
            return NotificationService(NotificationRepository(db)).find_recent(notification_type, since, metadata_filter)
        finally:
            db.close()
