"""
Tests for batch stop/resume and explicit completion.
"""

import pytest
import pytest_asyncio
from sqlalchemy import select

from trekadmin.core.exceptions import NotFound, StateConflict
from trekadmin.models import Booking, TrekBatch
from trekadmin.services.batch_lifecycle import BATCH_COMPLETED, BatchLifecycleManager

from helpers import ADMIN_ROOM, FailingSink, batch_payload, days_from_today, set_batch_dates


async def batch_status(db, batch_id) -> str:
    return (await db.get(TrekBatch, batch_id, populate_existing=True)).status


async def booking_statuses(db, batch_id) -> list[str]:
    result = await db.scalars(
        select(Booking.booking_status).where(Booking.batch_id == batch_id).order_by(Booking.id)
    )
    return list(result)


@pytest_asyncio.fixture
async def ended_batch(db_session, make_trek):
    """A batch that finished yesterday."""
    _, batch_ids = await make_trek(batches=[batch_payload(30, slots=10)])
    await set_batch_dates(db_session, batch_ids[0], days_from_today(-5), days_from_today(-1))
    return batch_ids[0]


# ---------- stop / resume ----------

@pytest.mark.asyncio
async def test_stop_and_resume(db_session, make_trek, manager):
    _, batch_ids = await make_trek()

    view = await manager.stop_batch(db_session, batch_ids[0])
    assert view.status == "inactive"
    assert view.trek_name == "Valley Trail"
    assert await batch_status(db_session, batch_ids[0]) == "inactive"

    view = await manager.resume_batch(db_session, batch_ids[0])
    assert view.status == "active"
    assert await batch_status(db_session, batch_ids[0]) == "active"


@pytest.mark.asyncio
async def test_stop_unknown_batch_is_not_found(db_session, make_trek, manager):
    """stopBooking on batch 999999 fails and touches nothing."""
    _, batch_ids = await make_trek()

    with pytest.raises(NotFound):
        await manager.stop_batch(db_session, 999999)

    assert await batch_status(db_session, batch_ids[0]) == "active"


@pytest.mark.asyncio
async def test_resume_unknown_batch_is_not_found(db_session, manager):
    with pytest.raises(NotFound):
        await manager.resume_batch(db_session, 999999)


@pytest.mark.asyncio
async def test_completed_batch_cannot_be_stopped_or_resumed(db_session, ended_batch, manager):
    await manager.complete_batch(db_session, ended_batch)

    with pytest.raises(StateConflict):
        await manager.stop_batch(db_session, ended_batch)
    with pytest.raises(StateConflict):
        await manager.resume_batch(db_session, ended_batch)

    assert await batch_status(db_session, ended_batch) == "completed"


# ---------- complete ----------

@pytest.mark.asyncio
async def test_complete_ended_batch(db_session, ended_batch, make_booking, manager, sink):
    await make_booking(ended_batch, status="confirmed", participants=2)
    await make_booking(ended_batch, status="confirmed", participants=3)
    await make_booking(ended_batch, status="pending", participants=1)
    await make_booking(ended_batch, status="cancelled", participants=4)

    result = await manager.complete_batch(db_session, ended_batch)

    assert result.batch.status == "completed"
    assert result.bookings_completed == 2
    assert result.stats.total_bookings == 4
    assert result.stats.completed_bookings == 2
    assert result.stats.pending_bookings == 1
    assert result.stats.cancelled_bookings == 1
    assert result.stats.completed_participants == 5
    assert result.stats.total_participants == 6
    assert result.batch.booked_slots == 6

    assert await batch_status(db_session, ended_batch) == "completed"
    assert await booking_statuses(db_session, ended_batch) == ["completed", "completed", "pending", "cancelled"]

    assert sink.names() == [BATCH_COMPLETED]
    topic, _, payload = sink.events[0]
    assert topic == ADMIN_ROOM
    assert payload["batch_id"] == ended_batch
    assert payload["bookings_completed"] == 2


@pytest.mark.asyncio
async def test_complete_batch_ending_today_is_rejected(db_session, make_trek, make_booking, manager, sink):
    """Completion needs an end date strictly before today."""
    _, batch_ids = await make_trek()
    await set_batch_dates(db_session, batch_ids[0], days_from_today(-3), days_from_today(0))
    await make_booking(batch_ids[0], status="confirmed")

    with pytest.raises(StateConflict):
        await manager.complete_batch(db_session, batch_ids[0])

    assert await batch_status(db_session, batch_ids[0]) == "active"
    assert await booking_statuses(db_session, batch_ids[0]) == ["confirmed"]
    assert sink.events == []


@pytest.mark.asyncio
async def test_complete_future_batch_is_rejected(db_session, make_trek, manager):
    _, batch_ids = await make_trek()

    with pytest.raises(StateConflict):
        await manager.complete_batch(db_session, batch_ids[0])

    assert await batch_status(db_session, batch_ids[0]) == "active"


@pytest.mark.asyncio
async def test_complete_twice(db_session, ended_batch, manager, sink):
    await manager.complete_batch(db_session, ended_batch)

    with pytest.raises(StateConflict):
        await manager.complete_batch(db_session, ended_batch)

    assert await batch_status(db_session, ended_batch) == "completed"
    assert sink.names() == [BATCH_COMPLETED]


@pytest.mark.asyncio
async def test_complete_unknown_batch(db_session, manager):
    with pytest.raises(NotFound):
        await manager.complete_batch(db_session, 999999)


@pytest.mark.asyncio
async def test_complete_inactive_batch(db_session, ended_batch, manager):
    await manager.stop_batch(db_session, ended_batch)

    result = await manager.complete_batch(db_session, ended_batch)

    assert result.batch.status == "completed"


@pytest.mark.asyncio
async def test_complete_survives_notification_failure(db_session, ended_batch, make_booking):
    """A failing sink is logged; the committed completion stands."""
    await make_booking(ended_batch, status="confirmed")
    failing = FailingSink()
    manager = BatchLifecycleManager(failing, admin_room=ADMIN_ROOM)

    result = await manager.complete_batch(db_session, ended_batch)

    assert result.bookings_completed == 1
    assert failing.attempts == 1
    assert await batch_status(db_session, ended_batch) == "completed"


@pytest.mark.asyncio
async def test_complete_cancelled_batch_is_rejected(db_session, ended_batch, make_booking, manager, sink):
    await make_booking(ended_batch, status="confirmed")
    batch = await db_session.get(TrekBatch, ended_batch)
    batch.status = "cancelled"
    await db_session.commit()

    with pytest.raises(StateConflict):
        await manager.complete_batch(db_session, ended_batch)

    assert await batch_status(db_session, ended_batch) == "cancelled"
    assert await booking_statuses(db_session, ended_batch) == ["confirmed"]
    assert sink.events == []
