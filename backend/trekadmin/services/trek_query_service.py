"""
Read model for treks and their batches.
"""

from datetime import date

from sqlalchemy import and_, case, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trekadmin.core.exceptions import NotFound
from trekadmin.models.batch import ItineraryDay, TrekBatch
from trekadmin.models.booking import Booking
from trekadmin.models.trek import Trek, TrekHighlight
from trekadmin.schemas.batch import TrekBatchSummary
from trekadmin.schemas.trek import (
    ActivityView, BatchDetail, ItineraryDayView, TrekDetail, TrekListItem,
)

OPEN_BOOKING_STATUSES = ("pending", "confirmed")


async def list_treks(db: AsyncSession, today: date) -> list[TrekListItem]:
    """
    Treks, newest first, with figures over their upcoming batches
    (start_date >= today).
    """
    upcoming = and_(TrekBatch.trek_id == Trek.id, TrekBatch.start_date >= today)
    highlight_count = (
        select(func.count(TrekHighlight.id))
        .where(TrekHighlight.trek_id == Trek.id)
        .correlate(Trek)
        .scalar_subquery()
    )

    query = (
        select(
            Trek,
            func.min(TrekBatch.start_date).label("upcoming_date"),
            func.min(TrekBatch.price).label("starting_price"),
            func.coalesce(
                func.sum(case((TrekBatch.status == "active", TrekBatch.available_slots), else_=0)), 0
            ).label("total_available_slots"),
            func.count(distinct(TrekBatch.id)).label("total_batches"),
            func.count(distinct(case((TrekBatch.status == "active", TrekBatch.id)))).label("active_batches"),
            highlight_count.label("highlight_count"),
        )
        .outerjoin(TrekBatch, upcoming)
        .group_by(Trek.id)
        .order_by(Trek.created_at.desc(), Trek.id.desc())
        .execution_options(populate_existing=True)
    )

    items = []
    for row in (await db.execute(query)).all():
        trek = row.Trek
        items.append(
            TrekListItem(
                id=trek.id,
                name=trek.name,
                location=trek.location,
                category=trek.category,
                difficulty=trek.difficulty,
                fitness_level=trek.fitness_level,
                cover_image=trek.cover_image,
                upcoming_date=row.upcoming_date,
                starting_price=row.starting_price,
                total_available_slots=int(row.total_available_slots or 0),
                total_batches=row.total_batches,
                active_batches=row.active_batches,
                highlight_count=row.highlight_count,
                has_available_slots=(row.total_available_slots or 0) > 0,
                created_at=trek.created_at,
            )
        )
    return items


async def get_trek_detail(db: AsyncSession, trek_id: int) -> TrekDetail:
    """The full aggregate, children in their stored order."""
    trek = await db.scalar(
        select(Trek)
        .where(Trek.id == trek_id)
        .options(
            selectinload(Trek.highlights),
            selectinload(Trek.things_to_carry),
            selectinload(Trek.important_notes),
            selectinload(Trek.images),
            selectinload(Trek.batches).selectinload(TrekBatch.inclusions),
            selectinload(Trek.batches).selectinload(TrekBatch.exclusions),
            selectinload(Trek.batches)
            .selectinload(TrekBatch.itinerary_days)
            .selectinload(ItineraryDay.activities),
        )
        .execution_options(populate_existing=True)
    )
    if trek is None:
        raise NotFound(f"Trek {trek_id} not found")

    batches = [
        BatchDetail(
            id=batch.id,
            start_date=batch.start_date,
            end_date=batch.end_date,
            available_slots=batch.available_slots,
            booked_slots=batch.booked_slots,
            price=batch.price,
            min_age=batch.min_age,
            max_age=batch.max_age,
            min_participants=batch.min_participants,
            max_participants=batch.max_participants,
            duration=batch.duration,
            status=batch.status,
            inclusions=[row.inclusion for row in batch.inclusions],
            exclusions=[row.exclusion for row in batch.exclusions],
            itinerary_days=[
                ItineraryDayView(
                    day_number=day.day_number,
                    title=day.title,
                    activities=[ActivityView.model_validate(a) for a in day.activities],
                )
                for day in batch.itinerary_days
            ],
        )
        for batch in trek.batches
    ]

    return TrekDetail(
        id=trek.id,
        name=trek.name,
        location=trek.location,
        category=trek.category,
        difficulty=trek.difficulty,
        fitness_level=trek.fitness_level,
        description=trek.description,
        cover_image=trek.cover_image,
        highlights=[row.highlight for row in trek.highlights],
        things_to_carry=[row.item for row in trek.things_to_carry],
        important_notes=[row.note for row in trek.important_notes],
        gallery_images=[row.image_url for row in trek.images],
        batches=batches,
        created_at=trek.created_at,
        updated_at=trek.updated_at,
    )


async def list_trek_batches(db: AsyncSession, trek_id: int) -> list[TrekBatchSummary]:
    """Batches of a trek by start date, with totals over open (pending/confirmed) bookings."""
    if await db.scalar(select(Trek.id).where(Trek.id == trek_id)) is None:
        raise NotFound(f"Trek {trek_id} not found")

    participants = func.coalesce(Booking.participants, 0)
    query = (
        select(
            TrekBatch,
            Trek.name.label("trek_name"),
            func.count(Booking.id).label("total_bookings"),
            func.coalesce(func.sum(participants), 0).label("total_participants"),
            func.coalesce(
                func.sum(case((Booking.booking_status == "confirmed", participants), else_=0)), 0
            ).label("confirmed_participants"),
            func.coalesce(
                func.sum(case((Booking.booking_status == "pending", participants), else_=0)), 0
            ).label("pending_participants"),
        )
        .join(Trek, Trek.id == TrekBatch.trek_id)
        .outerjoin(
            Booking,
            and_(Booking.batch_id == TrekBatch.id, Booking.booking_status.in_(OPEN_BOOKING_STATUSES)),
        )
        .where(TrekBatch.trek_id == trek_id)
        .group_by(TrekBatch.id, Trek.name)
        .order_by(TrekBatch.start_date.asc(), TrekBatch.id.asc())
        .execution_options(populate_existing=True)
    )

    summaries = []
    for row in (await db.execute(query)).all():
        batch = row.TrekBatch
        summaries.append(
            TrekBatchSummary(
                id=batch.id,
                trek_name=row.trek_name,
                start_date=batch.start_date,
                end_date=batch.end_date,
                available_slots=batch.available_slots,
                booked_slots=batch.booked_slots,
                price=batch.price,
                status=batch.status,
                total_bookings=row.total_bookings,
                total_participants=int(row.total_participants),
                confirmed_participants=int(row.confirmed_participants),
                pending_participants=int(row.pending_participants),
            )
        )
    return summaries
