"""
Pydantic schemas for batch lifecycle responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class BatchView(BaseModel):
    id: int
    trek_id: int
    trek_name: str
    start_date: date
    end_date: date
    available_slots: int
    booked_slots: int
    price: Optional[Decimal]
    min_age: Optional[int]
    max_age: Optional[int]
    min_participants: Optional[int]
    max_participants: Optional[int]
    duration: Optional[int]
    status: str
    created_at: datetime
    updated_at: datetime


class BatchStats(BaseModel):
    total_bookings: int = 0
    pending_bookings: int = 0
    confirmed_bookings: int = 0
    completed_bookings: int = 0
    cancelled_bookings: int = 0
    total_participants: int = 0
    completed_participants: int = 0


class BatchStatusResponse(BaseModel):
    success: bool = True
    message: str
    batch: BatchView


class BatchCompletionResponse(BaseModel):
    success: bool = True
    message: str
    batch: BatchView
    bookings_completed: int
    stats: BatchStats


class TrekBatchSummary(BaseModel):
    """A batch row in the per-trek batch listing, with booking totals."""

    id: int
    trek_name: str
    start_date: date
    end_date: date
    available_slots: int
    booked_slots: int
    price: Optional[Decimal]
    status: str
    total_bookings: int
    total_participants: int
    confirmed_participants: int
    pending_participants: int
