"""
User read model. Booking count and total spend are derived at read time.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.core.exceptions import NotFound
from trekadmin.models.booking import Booking
from trekadmin.models.user import User
from trekadmin.schemas.user import UserDetail, UserSummary
from trekadmin.services.booking_service import booking_listing_query, to_booking_view


def _summary(user: User, total_bookings: int, total_spent) -> UserSummary:
    return UserSummary(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        status=user.status,
        created_at=user.created_at,
        total_bookings=total_bookings,
        total_spent=Decimal(total_spent or 0),
    )


async def list_users(db: AsyncSession) -> list[UserSummary]:
    query = (
        select(
            User,
            func.count(Booking.id).label("total_bookings"),
            func.coalesce(func.sum(Booking.total_amount), 0).label("total_spent"),
        )
        .outerjoin(Booking, Booking.user_id == User.id)
        .group_by(User.id)
        .order_by(User.id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    return [_summary(row.User, row.total_bookings, row.total_spent) for row in result.all()]


async def get_user_detail(db: AsyncSession, user_id: int) -> UserDetail:
    user = await db.scalar(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    if user is None:
        raise NotFound(f"User {user_id} not found")

    result = await db.execute(
        booking_listing_query()
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    bookings = [to_booking_view(row) for row in result.all()]

    total_spent = sum((booking.total_amount for booking in bookings), Decimal("0"))
    return UserDetail(user=_summary(user, len(bookings), total_spent), bookings=bookings)
