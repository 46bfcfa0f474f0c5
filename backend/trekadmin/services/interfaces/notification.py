"""
Notification sink interface.
The lifecycle manager publishes admin events through this interface and never
touches the transport directly.
"""

from abc import ABC, abstractmethod
from typing import Any


class NotificationSink(ABC):
    """
    Fire-and-forget publish target for real-time admin events.

    Implementations:
    - RedisNotificationSink: Redis pub/sub, one channel per topic
    - NullNotificationSink: log and drop (Redis disabled)

    Callers only publish after their transaction has committed.
    """

    @abstractmethod
    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        """
        Publish one event to every listener subscribed to `topic`.

        Args:
            topic: Room / channel name, e.g. "admin-room"
            event: Event name, e.g. "booking-completed"
            payload: JSON-serializable event data
        """
        pass
