"""Notification delivery for agencyops."""

from agencyops.notifications.service import NotificationService, SessionScopedNotificationSink, is_in_quiet_hours

__all__ = ["NotificationService", "SessionScopedNotificationSink", "is_in_quiet_hours"]
