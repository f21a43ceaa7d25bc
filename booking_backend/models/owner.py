"""Owner model definitions."""

from sqlalchemy import Column, Integer, String, Time
from booking_backend.database import Base


class Owner(Base):
    """Represents a calendar owner (tenant) accepting bookings."""
    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    display_name = Column(String)
    business_hours_start = Column(Time, nullable=True)
    business_hours_end = Column(Time, nullable=True)
    slot_granularity_minutes = Column(Integer, nullable=True)
