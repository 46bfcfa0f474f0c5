"""
Pydantic schemas for user read models.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from trekadmin.schemas.booking import BookingView


class UserSummary(BaseModel):
    id: int
    full_name: str
    email: str
    phone_number: Optional[str]
    status: str
    created_at: datetime
    total_bookings: int
    total_spent: Decimal


class UserDetail(BaseModel):
    user: UserSummary
    bookings: list[BookingView]
