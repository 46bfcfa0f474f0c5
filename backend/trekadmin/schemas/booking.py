"""
Pydantic schemas for booking read models and the completion sweep.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class BookingAddonView(BaseModel):
    addon_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class BookingView(BaseModel):
    id: int
    booking_reference: str
    user_id: Optional[int]
    trek_id: int
    batch_id: int
    trek_name: str
    start_date: date
    end_date: date
    customer_name: str
    customer_email: Optional[str]
    customer_phone: Optional[str]
    participants: int
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    booking_status: str
    payment_status: str
    created_at: datetime


class BatchBookingView(BookingView):
    emergency_contact: Optional[str]
    special_requests: Optional[str]
    user_full_name: Optional[str]
    user_email: Optional[str]
    addons: list[BookingAddonView]


class SweepResponse(BaseModel):
    success: bool = True
    completed_count: int
    booking_ids: list[int]
