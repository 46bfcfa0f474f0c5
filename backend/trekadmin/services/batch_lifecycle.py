"""
Batch and booking lifecycle.

STATE MACHINE
=============

Batch:
    active <-> inactive              stop / resume, any time
    full    -> active / inactive     resume / stop
    active | inactive | full -> completed
                                     explicit completion, end date passed
    cancelled                        cannot be completed
    completed                        terminal: stop, resume and the
                                     reconciler never move it again

Booking:
    confirmed -> completed           when its batch is completed, or by the
                                     periodic sweep once the batch has ended

Explicit completion and the sweep both require the batch end date to be
strictly before today (date only, time of day ignored).

SIDE EFFECTS
============

Admin notifications go out only after the transaction has committed, so a
rolled-back operation never emits anything. Publishing is fire-and-forget:
a failing sink is logged and the committed state change stands.

Rows are locked with SELECT ... FOR UPDATE on backends that support it, so a
concurrent stop and complete on the same batch serialize in the database.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.core.config import get_settings
from trekadmin.core.exceptions import NotFound, StateConflict
from trekadmin.core.logging import get_logger
from trekadmin.core.metrics import (
    record_batch_transition, record_bookings_completed, record_notification, sweep_runs,
)
from trekadmin.db.session import transaction
from trekadmin.models.batch import TrekBatch
from trekadmin.models.booking import Booking
from trekadmin.models.trek import Trek
from trekadmin.schemas.batch import BatchStats, BatchView
from trekadmin.services.interfaces.notification import NotificationSink
from trekadmin.services.slot_accounting import sync_booked_slots

logger = get_logger(__name__)

BOOKING_COMPLETED = "booking-completed"
BATCH_COMPLETED = "batch-completed"


def today() -> date:
    return date.today()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BatchCompletion:
    batch: BatchView
    bookings_completed: int
    stats: BatchStats


async def load_batch_view(db: AsyncSession, batch_id: int) -> Optional[BatchView]:
    """Fresh batch row joined with its trek name."""
    row = (
        await db.execute(
            select(TrekBatch, Trek.name)
            .join(Trek, Trek.id == TrekBatch.trek_id)
            .where(TrekBatch.id == batch_id)
            .execution_options(populate_existing=True)
        )
    ).one_or_none()
    if row is None:
        return None

    batch, trek_name = row
    fields = {name: getattr(batch, name) for name in BatchView.model_fields if name != "trek_name"}
    return BatchView(trek_name=trek_name, **fields)


async def batch_stats(db: AsyncSession, batch_id: int) -> BatchStats:
    result = await db.execute(
        select(
            Booking.booking_status,
            func.count(Booking.id),
            func.coalesce(func.sum(Booking.participants), 0),
        )
        .where(Booking.batch_id == batch_id)
        .group_by(Booking.booking_status)
    )

    stats = BatchStats()
    for status, bookings, participants in result.all():
        stats.total_bookings += bookings
        setattr(stats, f"{status}_bookings", bookings)
        if status != "cancelled":
            stats.total_participants += int(participants)
        if status == "completed":
            stats.completed_participants = int(participants)
    return stats


class BatchLifecycleManager:
    """
    Drives batch status changes and booking completion.

    The notification sink is injected so tests can record events and the
    HTTP layer can share one Redis-backed sink.
    """

    def __init__(self, notifier: NotificationSink, admin_room: Optional[str] = None):
        self.notifier = notifier
        self.admin_room = admin_room or get_settings().ADMIN_ROOM

    async def _lock_batch(self, db: AsyncSession, batch_id: int) -> TrekBatch:
        batch = await db.scalar(
            select(TrekBatch)
            .where(TrekBatch.id == batch_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if batch is None:
            raise NotFound(f"Batch {batch_id} not found")
        return batch

    async def _set_status(self, db: AsyncSession, batch_id: int, status: str, transition: str) -> BatchView:
        async with transaction(db):
            batch = await self._lock_batch(db, batch_id)
            if batch.status == "completed":
                raise StateConflict(f"Batch {batch_id} is completed and cannot be changed")

            previous = batch.status
            batch.status = status
            await db.flush()
            view = await load_batch_view(db, batch_id)

        record_batch_transition(transition)
        logger.info("batch_status_changed", batch_id=batch_id, previous=previous, status=status)
        return view

    async def stop_batch(self, db: AsyncSession, batch_id: int) -> BatchView:
        """Stop taking bookings on a batch (status -> inactive)."""
        return await self._set_status(db, batch_id, "inactive", "stop")

    async def resume_batch(self, db: AsyncSession, batch_id: int) -> BatchView:
        """Resume taking bookings on a batch (status -> active)."""
        return await self._set_status(db, batch_id, "active", "resume")

    async def complete_batch(self, db: AsyncSession, batch_id: int) -> BatchCompletion:
        """
        Mark a finished batch completed and complete its confirmed bookings.

        Raises NotFound for an unknown batch and StateConflict if the batch is
        already completed or cancelled, or has not ended yet
        (end_date >= today).
        """
        completed_at = utcnow()

        async with transaction(db):
            batch = await self._lock_batch(db, batch_id)
            if batch.status == "completed":
                raise StateConflict(f"Batch {batch_id} is already completed")
            if batch.status == "cancelled":
                raise StateConflict(f"Batch {batch_id} is cancelled and cannot be completed")
            if batch.end_date >= today():
                raise StateConflict(
                    f"Batch {batch_id} ends on {batch.end_date.isoformat()} and cannot be completed yet"
                )

            batch.status = "completed"
            result = await db.execute(
                update(Booking)
                .where(Booking.batch_id == batch_id, Booking.booking_status == "confirmed")
                .values(booking_status="completed", completed_at=completed_at)
            )
            bookings_completed = result.rowcount or 0

            await sync_booked_slots(db, batch)
            await db.flush()
            stats = await batch_stats(db, batch_id)
            view = await load_batch_view(db, batch_id)

        record_batch_transition("complete")
        record_bookings_completed("batch", bookings_completed)
        logger.info("batch_completed", batch_id=batch_id, bookings_completed=bookings_completed)

        await self._emit(
            BATCH_COMPLETED,
            {
                "batch_id": batch_id,
                "trek_name": view.trek_name,
                "bookings_completed": bookings_completed,
                "completed_at": completed_at.isoformat(),
            },
        )
        return BatchCompletion(batch=view, bookings_completed=bookings_completed, stats=stats)

    async def sweep_completed_bookings(self, db: AsyncSession) -> list[int]:
        """
        Complete every confirmed booking whose batch has ended, then publish
        one booking-completed event per booking. Returns the completed ids.

        Idempotent: a rerun with nothing newly eligible changes nothing and
        publishes nothing.
        """
        completed_at = utcnow()

        try:
            async with transaction(db):
                rows = (
                    await db.execute(
                        select(Booking.id, Booking.booking_reference, Booking.customer_name, Trek.name)
                        .join(TrekBatch, TrekBatch.id == Booking.batch_id)
                        .join(Trek, Trek.id == TrekBatch.trek_id)
                        .where(
                            Booking.booking_status == "confirmed",
                            Booking.cancelled_at.is_(None),
                            TrekBatch.end_date < today(),
                        )
                        .order_by(Booking.id)
                        .with_for_update(of=Booking, skip_locked=True)
                    )
                ).all()

                if rows:
                    await db.execute(
                        update(Booking)
                        .where(Booking.id.in_([row.id for row in rows]))
                        .values(booking_status="completed", completed_at=completed_at)
                    )
        except Exception:
            sweep_runs.labels(result="error").inc()
            raise

        sweep_runs.labels(result="success").inc()
        record_bookings_completed("sweep", len(rows))
        logger.info("sweep_completed", bookings_completed=len(rows))

        for booking_id, reference, customer_name, trek_name in rows:
            await self._emit(
                BOOKING_COMPLETED,
                {
                    "booking_id": booking_id,
                    "booking_reference": reference,
                    "customer_name": customer_name,
                    "trek_name": trek_name,
                    "completed_at": completed_at.isoformat(),
                },
            )
        return [row.id for row in rows]

    async def _emit(self, event: str, payload: dict[str, Any]) -> None:
        try:
            await self.notifier.publish(self.admin_room, event, payload)
        except Exception as e:
            logger.error("notification_publish_failed", notification=event, error=str(e))
            record_notification("failed")
