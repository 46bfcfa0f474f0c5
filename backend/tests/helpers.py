"""
Request payloads and notification fakes shared by the tests.
"""

from datetime import date, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.models import TrekBatch
from trekadmin.services.interfaces.notification import NotificationSink

ADMIN_ROOM = "admin-room"


class RecordingSink(NotificationSink):
    """Keeps every published event in memory."""

    def __init__(self):
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append((topic, event, payload))

    def names(self) -> list[str]:
        return [name for _, name, _ in self.events]


class FailingSink(NotificationSink):
    """Raises on every publish, like a transport that is down."""

    def __init__(self):
        self.attempts = 0

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        self.attempts += 1
        raise ConnectionError("notification transport down")


def days_from_today(days: int) -> date:
    return date.today() + timedelta(days=days)


def batch_payload(start_in_days: int = 30, length: int = 4, slots: int = 10, **overrides) -> dict:
    payload = {
        "start_date": days_from_today(start_in_days).isoformat(),
        "end_date": days_from_today(start_in_days + length).isoformat(),
        "available_slots": slots,
        "price": "12500.00",
        "min_age": 12,
        "max_age": 60,
        "duration": length + 1,
        "inclusions": ["Meals", "Tents"],
        "exclusions": ["Travel insurance"],
        "itinerary_days": [
            {
                "day_number": 1,
                "title": "Base camp",
                "activities": [
                    {"activity_time": "14:00", "activity_text": "Acclimatisation walk"},
                    {"activity_time": "08:00", "activity_text": "Drive to trailhead"},
                ],
            },
            {
                "day_number": 2,
                "title": "Summit push",
                "activities": [{"activity_time": "04:30", "activity_text": "Summit attempt"}],
            },
        ],
    }
    payload.update(overrides)
    return payload


def trek_payload(name: str = "Valley Trail", location: str = "North Ridge", batches=None, **overrides) -> dict:
    payload = {
        "name": name,
        "location": location,
        "category": "Himalayan",
        "difficulty": "Moderate",
        "fitness_level": "Good",
        "description": "Forest trail up to an alpine meadow.",
        "highlights": ["Sunrise over the ridge", "Alpine lakes"],
        "things_to_carry": ["Rain jacket", "Headlamp", "Water bottle"],
        "important_notes": ["Carry a photo ID"],
        "cover_image": "treks/valley-trail/cover.jpg",
        "gallery_images": ["treks/valley-trail/1.jpg", "treks/valley-trail/2.jpg"],
        "batches": batches if batches is not None else [batch_payload()],
    }
    payload.update(overrides)
    return payload


async def set_batch_dates(db: AsyncSession, batch_id: int, start: date, end: date) -> None:
    """Move a batch in time, e.g. into the past so it can be completed."""
    batch = await db.get(TrekBatch, batch_id, populate_existing=True)
    batch.start_date = start
    batch.end_date = end
    await db.commit()
