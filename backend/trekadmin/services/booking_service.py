"""
Booking read model.

Bookings are written by the storefront; the admin side lists them and moves
them through their lifecycle (see batch_lifecycle).
"""

from typing import Optional

from sqlalchemy import Select, select
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trekadmin.core.exceptions import NotFound
from trekadmin.models.batch import TrekBatch
from trekadmin.models.booking import Booking
from trekadmin.models.trek import Trek
from trekadmin.models.user import User
from trekadmin.schemas.booking import BatchBookingView, BookingAddonView, BookingView


def booking_listing_query() -> Select:
    """Bookings joined with their trek name and batch dates."""
    return (
        select(
            Booking,
            Trek.name.label("trek_name"),
            TrekBatch.start_date,
            TrekBatch.end_date,
        )
        .join(TrekBatch, TrekBatch.id == Booking.batch_id)
        .join(Trek, Trek.id == TrekBatch.trek_id)
        .execution_options(populate_existing=True)
    )


def to_booking_view(row: Row) -> BookingView:
    booking = row.Booking
    return BookingView(
        id=booking.id,
        booking_reference=booking.booking_reference,
        user_id=booking.user_id,
        trek_id=booking.trek_id,
        batch_id=booking.batch_id,
        trek_name=row.trek_name,
        start_date=row.start_date,
        end_date=row.end_date,
        customer_name=booking.customer_name,
        customer_email=booking.customer_email,
        customer_phone=booking.customer_phone,
        participants=booking.participants,
        total_amount=booking.total_amount,
        amount_paid=booking.amount_paid,
        balance_due=booking.balance_due,
        booking_status=booking.booking_status,
        payment_status=booking.payment_status,
        created_at=booking.created_at,
    )


async def list_bookings(db: AsyncSession, limit: Optional[int] = None) -> list[BookingView]:
    """All bookings, newest first."""
    query = booking_listing_query().order_by(Booking.created_at.desc(), Booking.id.desc())
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return [to_booking_view(row) for row in result.all()]


async def list_batch_bookings(db: AsyncSession, batch_id: int) -> list[BatchBookingView]:
    """Bookings of one batch with add-ons and the owning user's contact."""
    if await db.scalar(select(TrekBatch.id).where(TrekBatch.id == batch_id)) is None:
        raise NotFound(f"Batch {batch_id} not found")

    query = (
        booking_listing_query()
        .add_columns(User.full_name.label("user_full_name"), User.email.label("user_email"))
        .outerjoin(User, User.id == Booking.user_id)
        .options(selectinload(Booking.addons))
        .where(Booking.batch_id == batch_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )

    views = []
    for row in (await db.execute(query)).all():
        booking = row.Booking
        views.append(
            BatchBookingView(
                **to_booking_view(row).model_dump(),
                emergency_contact=booking.emergency_contact,
                special_requests=booking.special_requests,
                user_full_name=row.user_full_name,
                user_email=row.user_email,
                addons=[BookingAddonView.model_validate(addon) for addon in booking.addons],
            )
        )
    return views
