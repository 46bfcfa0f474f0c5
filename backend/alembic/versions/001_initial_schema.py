"""Initial schema: users, trek aggregate, batches with itineraries, bookings.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _child(table: str, parent: str, parent_table: str, *columns: sa.Column) -> None:
    """Child row owned by its parent, removed with it."""
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(parent, sa.Integer(), sa.ForeignKey(f"{parent_table}.id", ondelete="CASCADE"), nullable=False),
        *columns,
    )
    op.create_index(f"ix_{table}_{parent}", table, [parent])


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'inactive', 'blocked')", name="check_user_status"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Trek aggregate root
    op.create_table(
        "treks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("difficulty", sa.String(50), nullable=True),
        sa.Column("fitness_level", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", "location", name="uq_trek_name_location"),
    )
    op.create_index("ix_treks_id", "treks", ["id"])

    _child("trek_highlights", "trek_id", "treks", sa.Column("highlight", sa.String(500), nullable=False))
    _child(
        "trek_things_to_carry", "trek_id", "treks",
        sa.Column("item", sa.String(500), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
    )
    _child(
        "trek_important_notes", "trek_id", "treks",
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
    )
    _child("trek_images", "trek_id", "treks", sa.Column("image_url", sa.String(500), nullable=False))

    # Batches
    op.create_table(
        "trek_batches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("trek_id", sa.Integer(), sa.ForeignKey("treks.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("available_slots", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("booked_slots", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("min_age", sa.Integer(), nullable=True),
        sa.Column("max_age", sa.Integer(), nullable=True),
        sa.Column("min_participants", sa.Integer(), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("available_slots >= 0", name="check_batch_available_slots_non_negative"),
        sa.CheckConstraint("booked_slots >= 0", name="check_batch_booked_slots_non_negative"),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'full', 'cancelled', 'completed')",
            name="check_batch_status",
        ),
    )
    op.create_index("ix_trek_batches_id", "trek_batches", ["id"])
    op.create_index("ix_trek_batches_trek_id", "trek_batches", ["trek_id"])
    # The completion sweep filters on end_date < today
    op.create_index("ix_trek_batches_end_date", "trek_batches", ["end_date"])
    # Listings pick upcoming batches per trek
    op.create_index("ix_trek_batches_trek_start", "trek_batches", ["trek_id", "start_date"])

    _child("batch_inclusions", "batch_id", "trek_batches", sa.Column("inclusion", sa.String(500), nullable=False))
    _child("batch_exclusions", "batch_id", "trek_batches", sa.Column("exclusion", sa.String(500), nullable=False))
    _child(
        "itinerary_days", "batch_id", "trek_batches",
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
    )
    _child(
        "itinerary_activities", "day_id", "itinerary_days",
        sa.Column("activity_time", sa.Time(), nullable=True),
        sa.Column("activity_text", sa.Text(), nullable=False),
    )

    # Bookings: batch_id deliberately without ON DELETE so booked batches cannot be removed
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_reference", sa.String(50), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("trek_id", sa.Integer(), sa.ForeignKey("treks.id"), nullable=False),
        sa.Column("batch_id", sa.Integer(), sa.ForeignKey("trek_batches.id"), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("emergency_contact", sa.String(100), nullable=True),
        sa.Column("participants", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("balance_due", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("booking_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("participants > 0", name="check_booking_participants_positive"),
        sa.CheckConstraint(
            "booking_status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        sa.UniqueConstraint("booking_reference", name="uq_bookings_booking_reference"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_trek_id", "bookings", ["trek_id"])
    op.create_index("ix_bookings_batch_id", "bookings", ["batch_id"])
    op.create_index("ix_bookings_status_batch", "bookings", ["booking_status", "batch_id"])

    _child(
        "booking_participants", "booking_id", "bookings",
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("id_type", sa.String(50), nullable=True),
        sa.Column("id_number", sa.String(100), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    _child(
        "booking_addons", "booking_id", "bookings",
        sa.Column("addon_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
    )


def downgrade() -> None:
    for table in (
        "booking_addons",
        "booking_participants",
        "bookings",
        "itinerary_activities",
        "itinerary_days",
        "batch_exclusions",
        "batch_inclusions",
        "trek_batches",
        "trek_images",
        "trek_important_notes",
        "trek_things_to_carry",
        "trek_highlights",
        "treks",
        "users",
    ):
        op.drop_table(table)
