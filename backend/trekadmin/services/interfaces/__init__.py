"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notification import NotificationSink
from .null_notifier import NullNotificationSink

__all__ = ['NotificationSink', 'NullNotificationSink']
