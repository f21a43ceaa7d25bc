"""Booking ledger model definitions."""

from sqlalchemy import Column, Date, ForeignKey, Integer, UniqueConstraint
from booking_backend.database import Base


class BookingDay(Base):
    """One row per owner and calendar day; every write that adds occupancy bumps its version."""
    __tablename__ = "booking_days"
    __table_args__ = (UniqueConstraint("owner_id", "day", name="uq_booking_days_owner_day"),)

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), nullable=False)
    day = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)
