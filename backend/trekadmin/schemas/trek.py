"""
Pydantic schemas for the trek aggregate.

Inbound models accept snake_case keys and the camelCase keys sent by the
admin panel (startDate, availableSlots, itineraryDays, ...). Outbound models
are snake_case.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# `completed` is reserved for the lifecycle manager
WritableBatchStatus = Literal["active", "inactive", "full", "cancelled"]


class _InboundModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActivityInput(_InboundModel):
    activity_time: Optional[time] = None
    activity_text: str = Field("", max_length=2000)


class ItineraryDayInput(_InboundModel):
    day_number: int = Field(..., ge=1)
    title: Optional[str] = Field(None, max_length=255)
    activities: list[ActivityInput] = []


class BatchInput(_InboundModel):
    # Optional stable identity; when any batch in a payload carries one,
    # batches are matched by id instead of by position
    id: Optional[int] = None
    start_date: date
    end_date: date
    available_slots: int = Field(0, ge=0)
    price: Optional[Decimal] = Field(None, ge=0)
    min_age: Optional[int] = Field(None, ge=0)
    max_age: Optional[int] = Field(None, ge=0)
    min_participants: Optional[int] = Field(None, ge=0)
    max_participants: Optional[int] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1)
    batch_status: WritableBatchStatus = "active"
    inclusions: list[str] = []
    exclusions: list[str] = []
    itinerary_days: list[ItineraryDayInput] = []

    @model_validator(mode="after")
    def check_dates(self) -> "BatchInput":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TrekBase(_InboundModel):
    name: str = Field(..., max_length=255)
    location: str = Field(..., max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    difficulty: Optional[str] = Field(None, max_length=50)
    fitness_level: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    highlights: list[str] = []
    things_to_carry: list[str] = []
    important_notes: list[str] = []
    batches: list[BatchInput] = []


class TrekCreate(TrekBase):
    # References to files already stored by the upload collaborator
    cover_image: Optional[str] = None
    gallery_images: list[str] = []


class TrekUpdate(TrekBase):
    # Cover image is tri-state: new ref replaces it, cover_deleted clears it,
    # neither leaves it untouched
    cover_image: Optional[str] = None
    cover_deleted: bool = False
    gallery_images: list[str] = []
    deleted_gallery: list[str] = []


class TrekWriteResponse(BaseModel):
    success: bool = True
    message: str
    trek_id: int


# ---------- Read side ----------

class ActivityView(BaseModel):
    activity_time: Optional[time]
    activity_text: str

    model_config = {"from_attributes": True}


class ItineraryDayView(BaseModel):
    day_number: int
    title: Optional[str]
    activities: list[ActivityView]

    model_config = {"from_attributes": True}


class BatchDetail(BaseModel):
    id: int
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
    inclusions: list[str]
    exclusions: list[str]
    itinerary_days: list[ItineraryDayView]


class TrekDetail(BaseModel):
    id: int
    name: str
    location: str
    category: Optional[str]
    difficulty: Optional[str]
    fitness_level: Optional[str]
    description: Optional[str]
    cover_image: Optional[str]
    highlights: list[str]
    things_to_carry: list[str]
    important_notes: list[str]
    gallery_images: list[str]
    batches: list[BatchDetail]
    created_at: datetime
    updated_at: datetime


class TrekListItem(BaseModel):
    id: int
    name: str
    location: str
    category: Optional[str]
    difficulty: Optional[str]
    fitness_level: Optional[str]
    cover_image: Optional[str]
    upcoming_date: Optional[date]
    starting_price: Optional[Decimal]
    total_available_slots: int
    total_batches: int
    active_batches: int
    highlight_count: int
    has_available_slots: bool
    created_at: datetime


class TrekListResponse(BaseModel):
    count: int
    treks: list[TrekListItem]
    cached: bool = False
