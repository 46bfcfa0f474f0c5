"""
Batch: one scheduled departure of a trek, with its own dates, price and capacity.

Key design decisions:
- `available_slots` is the capacity offered; `booked_slots` is derived from
  bookings and recomputed by the lifecycle manager, never edited directly
- `completed` is terminal: nothing but the completion paths writes it, and
  nothing rewrites it afterwards
- Batches are ordered by id, i.e. creation order; positional reconciliation
  depends on this
"""

from sqlalchemy import (
    Column, Integer, String, Date, Time, Text, Numeric, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from trekadmin.db.base import Base, TimestampMixin

BATCH_STATUSES = ("active", "inactive", "full", "cancelled", "completed")


class TrekBatch(Base, TimestampMixin):
    __tablename__ = "trek_batches"

    id = Column(Integer, primary_key=True, index=True)
    trek_id = Column(Integer, ForeignKey("treks.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    available_slots = Column(Integer, nullable=False, default=0)
    booked_slots = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=True)
    min_age = Column(Integer, nullable=True)
    max_age = Column(Integer, nullable=True)
    min_participants = Column(Integer, nullable=True)
    max_participants = Column(Integer, nullable=True)
    duration = Column(Integer, nullable=True)  # days
    status = Column(String(20), nullable=False, default="active")

    trek = relationship("Trek", viewonly=True)
    inclusions = relationship("BatchInclusion", order_by="BatchInclusion.id", viewonly=True)
    exclusions = relationship("BatchExclusion", order_by="BatchExclusion.id", viewonly=True)
    itinerary_days = relationship("ItineraryDay", order_by="ItineraryDay.day_number", viewonly=True)

    __table_args__ = (
        CheckConstraint("available_slots >= 0", name="check_batch_available_slots_non_negative"),
        CheckConstraint("booked_slots >= 0", name="check_batch_booked_slots_non_negative"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'full', 'cancelled', 'completed')",
            name="check_batch_status",
        ),
        # The sweep and listings filter on end/start date
        Index("ix_trek_batches_end_date", "end_date"),
        Index("ix_trek_batches_trek_start", "trek_id", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<TrekBatch(id={self.id}, trek={self.trek_id}, {self.start_date}..{self.end_date}, status={self.status})>"


class BatchInclusion(Base):
    __tablename__ = "batch_inclusions"

    id = Column(Integer, primary_key=True)
    batch_id = Column(Integer, ForeignKey("trek_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    inclusion = Column(String(500), nullable=False)


class BatchExclusion(Base):
    __tablename__ = "batch_exclusions"

    id = Column(Integer, primary_key=True)
    batch_id = Column(Integer, ForeignKey("trek_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    exclusion = Column(String(500), nullable=False)


class ItineraryDay(Base):
    __tablename__ = "itinerary_days"

    id = Column(Integer, primary_key=True)
    batch_id = Column(Integer, ForeignKey("trek_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    day_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)

    # Activities are inserted sorted by time, untimed last
    activities = relationship("ItineraryActivity", order_by="ItineraryActivity.id", viewonly=True)


class ItineraryActivity(Base):
    __tablename__ = "itinerary_activities"

    id = Column(Integer, primary_key=True)
    day_id = Column(Integer, ForeignKey("itinerary_days.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_time = Column(Time, nullable=True)
    activity_text = Column(Text, nullable=False)
