"""
Customer account. Booking count and total spend are computed at read time.
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from trekadmin.db.base import Base, TimestampMixin

USER_STATUSES = ("active", "inactive", "blocked")


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'blocked')", name="check_user_status"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
