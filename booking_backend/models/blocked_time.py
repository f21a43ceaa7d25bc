"""Blocked time model definitions."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from booking_backend.database import Base


class BlockedTime(Base):
    """Represents owner-configured unavailability."""
    __tablename__ = "blocked_times"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), index=True)
    start_time = Column(DateTime)
    end_time = Column(DateTime)
    reason = Column(String, nullable=True)
