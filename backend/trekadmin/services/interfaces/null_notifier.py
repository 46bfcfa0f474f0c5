"""
Null notification sink - used when no real-time transport is configured.
"""

from typing import Any

from trekadmin.core.logging import get_logger
from trekadmin.core.metrics import record_notification
from trekadmin.services.interfaces.notification import NotificationSink

logger = get_logger(__name__)


class NullNotificationSink(NotificationSink):
    """Drops events after logging them."""

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        logger.debug("notification_dropped", topic=topic, notification=event)
        record_notification("dropped")
