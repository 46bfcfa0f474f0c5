"""
Redis pub/sub notification sink for the admin panel.

Each topic maps to one Redis channel (NOTIFY_CHANNEL_PREFIX + topic). The
WebSocket gateway in front of the admin panel subscribes to those channels and
forwards messages to connected browsers.

Failure policy:
  Publishing is fire-and-forget. The state change that produced the event is
  already committed, so a Redis outage is logged and counted but never
  raised to the caller.
"""

import json
from typing import Any, Optional

from trekadmin.core.config import get_settings
from trekadmin.core.logging import get_logger
from trekadmin.core.metrics import record_notification
from trekadmin.infrastructure.redis_client import get_redis
from trekadmin.services.interfaces.notification import NotificationSink

logger = get_logger(__name__)


class RedisNotificationSink(NotificationSink):

    def __init__(self, channel_prefix: Optional[str] = None):
        self.channel_prefix = channel_prefix if channel_prefix is not None else get_settings().NOTIFY_CHANNEL_PREFIX

    def channel_for(self, topic: str) -> str:
        return f"{self.channel_prefix}{topic}"

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        channel = self.channel_for(topic)
        message = json.dumps({"event": event, "data": payload}, default=str)

        try:
            client = await get_redis()
            if client is None:
                logger.warning("notification_dropped", channel=channel, notification=event, reason="redis_unavailable")
                record_notification("dropped")
                return
            receivers = await client.publish(channel, message)
        except Exception as e:
            logger.error("notification_publish_failed", channel=channel, notification=event, error=str(e))
            record_notification("failed")
            return

        logger.info("notification_published", channel=channel, notification=event, receivers=receivers)
        record_notification("published")
