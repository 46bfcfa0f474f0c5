"""
Trek aggregate root and its trek-level child rows.

Key design decisions:
- (name, location) is unique: the same trek cannot be listed twice
- Child rows have no identity of their own; the reconciler replaces them
  wholesale on every update
- `display_order` keeps the submitted order of ordered lists
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from trekadmin.db.base import Base, TimestampMixin


class Trek(Base, TimestampMixin):
    __tablename__ = "treks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    difficulty = Column(String(50), nullable=True)
    fitness_level = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    cover_image = Column(String(500), nullable=True)

    # Relationships (read side only; writes go through the reconciler)
    highlights = relationship("TrekHighlight", order_by="TrekHighlight.id", viewonly=True)
    things_to_carry = relationship(
        "TrekThingToCarry", order_by="TrekThingToCarry.display_order", viewonly=True
    )
    important_notes = relationship(
        "TrekImportantNote", order_by="TrekImportantNote.display_order", viewonly=True
    )
    images = relationship("TrekImage", order_by="TrekImage.id", viewonly=True)
    batches = relationship("TrekBatch", order_by="TrekBatch.id", viewonly=True)

    __table_args__ = (
        UniqueConstraint("name", "location", name="uq_trek_name_location"),
    )

    def __repr__(self) -> str:
        return f"<Trek(id={self.id}, name={self.name}, location={self.location})>"


class TrekHighlight(Base):
    __tablename__ = "trek_highlights"

    id = Column(Integer, primary_key=True)
    trek_id = Column(Integer, ForeignKey("treks.id", ondelete="CASCADE"), nullable=False, index=True)
    highlight = Column(String(500), nullable=False)


class TrekThingToCarry(Base):
    __tablename__ = "trek_things_to_carry"

    id = Column(Integer, primary_key=True)
    trek_id = Column(Integer, ForeignKey("treks.id", ondelete="CASCADE"), nullable=False, index=True)
    item = Column(String(500), nullable=False)
    display_order = Column(Integer, nullable=False)


class TrekImportantNote(Base):
    __tablename__ = "trek_important_notes"

    id = Column(Integer, primary_key=True)
    trek_id = Column(Integer, ForeignKey("treks.id", ondelete="CASCADE"), nullable=False, index=True)
    note = Column(Text, nullable=False)
    display_order = Column(Integer, nullable=False)


class TrekImage(Base):
    __tablename__ = "trek_images"

    id = Column(Integer, primary_key=True)
    trek_id = Column(Integer, ForeignKey("treks.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
