"""
Slot accounting for batches.

`available_slots` is the capacity an admin offers on a batch. `booked_slots`
is never edited directly: it is the participant total of the batch's
slot-holding bookings (pending, confirmed, completed), recomputed here.

Capacity drives two automatic status moves:
  active -> full    once bookings fill the capacity
  full   -> active  once capacity is freed (e.g. an admin raises it)
Every other status is left alone, so inactive, cancelled and completed
batches never change here.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.models.batch import TrekBatch
from trekadmin.models.booking import Booking, SLOT_HOLDING_STATUSES


async def booked_participants(db: AsyncSession, batch_id: int) -> int:
    total = await db.scalar(
        select(func.coalesce(func.sum(Booking.participants), 0)).where(
            Booking.batch_id == batch_id,
            Booking.booking_status.in_(SLOT_HOLDING_STATUSES),
        )
    )
    return int(total or 0)


def apply_capacity_status(batch: TrekBatch) -> None:
    booked = batch.booked_slots or 0
    if batch.status == "active" and booked > 0 and booked >= batch.available_slots:
        batch.status = "full"
    elif batch.status == "full" and booked < batch.available_slots:
        batch.status = "active"


async def sync_booked_slots(db: AsyncSession, batch: TrekBatch) -> None:
    batch.booked_slots = await booked_participants(db, batch.id)
    apply_capacity_status(batch)
