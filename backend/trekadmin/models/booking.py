"""
Booking model: a customer's reservation on one batch.

Key design decisions:
- Bookings are created by the storefront; this service only moves them
  through their lifecycle (confirmed -> completed) and reads them
- `trek_id` is denormalized from the batch for per-trek reporting
- `batch_id` has no ON DELETE CASCADE: a batch with bookings must never be
  deleted, and the database backs that rule up
- Status fields are plain strings guarded by CHECK constraints
"""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from trekadmin.db.base import Base, TimestampMixin

BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled")
# Statuses that hold slots on the batch
SLOT_HOLDING_STATUSES = ("pending", "confirmed", "completed")


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(50), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    trek_id = Column(Integer, ForeignKey("treks.id"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("trek_batches.id"), nullable=False, index=True)

    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    emergency_contact = Column(String(100), nullable=True)
    participants = Column(Integer, nullable=False, default=1)
    special_requests = Column(Text, nullable=True)

    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    balance_due = Column(Numeric(10, 2), nullable=False, default=0)

    booking_status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    participants_list = relationship(
        "BookingParticipant", order_by="BookingParticipant.id", viewonly=True
    )
    addons = relationship("BookingAddon", order_by="BookingAddon.id", viewonly=True)

    __table_args__ = (
        CheckConstraint("participants > 0", name="check_booking_participants_positive"),
        CheckConstraint(
            "booking_status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        # The completion sweep scans confirmed bookings per batch
        Index("ix_bookings_status_batch", "booking_status", "batch_id"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, ref={self.booking_reference}, batch={self.batch_id}, status={self.booking_status})>"


class BookingParticipant(Base):
    __tablename__ = "booking_participants"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    id_type = Column(String(50), nullable=True)
    id_number = Column(String(100), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)


class BookingAddon(Base):
    __tablename__ = "booking_addons"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    addon_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
