"""
Revenue analytics and dashboard figures.

Revenue counts bookings that are paid; the per-month, per-trek and average
figures only count paid bookings that are also confirmed. Grouping by month
happens in Python so the queries stay portable across backends.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trekadmin.models.booking import Booking
from trekadmin.models.trek import Trek
from trekadmin.models.user import User
from trekadmin.schemas.analytics import DashboardSummary, MonthlyRevenue, RevenueSummary, TrekRevenue
from trekadmin.services.booking_service import list_bookings

RECENT_BOOKINGS = 5
CENTS = Decimal("0.01")


def monthly_growth(current: Decimal, previous: Decimal) -> str:
    """Month-over-month change formatted like '+12.5%'."""
    if not previous:
        return "0%"
    growth = (current - previous) / previous * 100
    sign = "+" if growth >= 0 else ""
    return f"{sign}{growth:.1f}%"


async def _paid_revenue(db: AsyncSession, confirmed_only: bool) -> Decimal:
    query = select(func.coalesce(func.sum(Booking.total_amount), 0)).where(Booking.payment_status == "paid")
    if confirmed_only:
        query = query.where(Booking.booking_status == "confirmed")
    return Decimal(await db.scalar(query) or 0)


async def revenue_summary(db: AsyncSession) -> RevenueSummary:
    total_bookings = await db.scalar(select(func.count(Booking.id))) or 0
    total_revenue = await _paid_revenue(db, confirmed_only=False)

    rows = (
        await db.execute(
            select(Booking.created_at, Booking.total_amount, Trek.name)
            .join(Trek, Trek.id == Booking.trek_id)
            .where(Booking.payment_status == "paid", Booking.booking_status == "confirmed")
            .order_by(Booking.created_at)
        )
    ).all()

    by_month: dict[date, list] = defaultdict(lambda: [0, Decimal("0")])
    by_trek: dict[str, list] = defaultdict(lambda: [0, Decimal("0")])
    for created_at, amount, trek_name in rows:
        amount = Decimal(amount or 0)
        month = by_month[date(created_at.year, created_at.month, 1)]
        month[0] += 1
        month[1] += amount
        trek = by_trek[trek_name]
        trek[0] += 1
        trek[1] += amount

    average: Optional[Decimal] = None
    if rows:
        paid_total = sum((Decimal(row.total_amount or 0) for row in rows), Decimal("0"))
        average = (paid_total / len(rows)).quantize(CENTS, rounding=ROUND_HALF_UP)

    months = sorted(by_month)
    growth = "0%"
    if len(months) >= 2:
        growth = monthly_growth(by_month[months[-1]][1], by_month[months[-2]][1])

    return RevenueSummary(
        total_bookings=total_bookings,
        total_revenue=total_revenue,
        average_booking_value=average,
        monthly_data=[
            MonthlyRevenue(month=month.strftime("%b %Y"), bookings=count, amount=amount)
            for month, (count, amount) in ((m, by_month[m]) for m in months)
        ],
        trek_revenue=sorted(
            (TrekRevenue(name=name, bookings=count, revenue=revenue) for name, (count, revenue) in by_trek.items()),
            key=lambda trek: trek.revenue,
            reverse=True,
        ),
        monthly_growth=growth,
    )


async def dashboard_summary(db: AsyncSession) -> DashboardSummary:
    return DashboardSummary(
        total_users=await db.scalar(select(func.count(User.id))) or 0,
        total_active_users=await db.scalar(select(func.count(User.id)).where(User.status == "active")) or 0,
        total_treks=await db.scalar(select(func.count(Trek.id))) or 0,
        total_bookings=await db.scalar(select(func.count(Booking.id))) or 0,
        total_revenue=await _paid_revenue(db, confirmed_only=True),
        recent_bookings=await list_bookings(db, limit=RECENT_BOOKINGS),
    )
