"""Appointment type model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from booking_backend.database import Base


class AppointmentType(Base):
    """Represents a bookable kind of appointment and its length."""
    __tablename__ = "appointment_types"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), index=True)
    name = Column(String)
    duration_minutes = Column(Integer)
    is_default = Column(Boolean, default=False)
