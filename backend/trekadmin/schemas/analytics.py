"""
Pydantic schemas for revenue analytics and the dashboard.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from trekadmin.schemas.booking import BookingView


class MonthlyRevenue(BaseModel):
    month: str  # "Jan 2026"
    bookings: int
    amount: Decimal


class TrekRevenue(BaseModel):
    name: str
    bookings: int
    revenue: Decimal


class RevenueSummary(BaseModel):
    total_bookings: int
    total_revenue: Decimal
    average_booking_value: Optional[Decimal]
    monthly_data: list[MonthlyRevenue]
    trek_revenue: list[TrekRevenue]
    monthly_growth: str


class DashboardSummary(BaseModel):
    total_users: int
    total_active_users: int
    total_treks: int
    total_bookings: int
    total_revenue: Decimal
    recent_bookings: list[BookingView]
