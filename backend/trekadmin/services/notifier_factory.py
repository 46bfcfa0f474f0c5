"""
Notification sink factory.
Configures which sink the HTTP layer and the sweep scheduler use.
"""

from typing import Optional

from trekadmin.core.config import get_settings
from trekadmin.services.interfaces.notification import NotificationSink
from trekadmin.services.interfaces.null_notifier import NullNotificationSink
from trekadmin.services.notification_service import RedisNotificationSink


def build_notifier() -> NotificationSink:
    """
    Redis pub/sub when Redis is enabled, otherwise the null sink.
    """
    if get_settings().REDIS_ENABLED:
        return RedisNotificationSink()
    return NullNotificationSink()


# Singleton instance
_notifier: Optional[NotificationSink] = None


def get_notifier() -> NotificationSink:
    """Get notification sink singleton."""
    global _notifier
    if _notifier is None:
        _notifier = build_notifier()
    return _notifier
