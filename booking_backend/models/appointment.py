"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from booking_backend.database import Base


class Appointment(Base):
    """Represents a booked appointment."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), index=True)
    appointment_type_id = Column(Integer, ForeignKey("appointment_types.id"), nullable=True)
    start_time = Column(DateTime)
    duration_minutes = Column(Integer, nullable=True)
    status = Column(String)
    client_name = Column(String)
    client_email = Column(String)
    client_phone = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
