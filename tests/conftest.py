import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from booking_backend.database import Base  # noqa: E402
from booking_backend.models.appointment import Appointment  # noqa: E402
from booking_backend.models.appointment_type import AppointmentType  # noqa: E402
from booking_backend.models.blocked_time import BlockedTime  # noqa: E402
from booking_backend.models.booking_day import BookingDay  # noqa: E402
from booking_backend.models.owner import Owner  # noqa: E402

TABLES = [
    Owner.__table__,
    AppointmentType.__table__,
    Appointment.__table__,
    BlockedTime.__table__,
    BookingDay.__table__,
]


@pytest.fixture
def session_factory():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def booking_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def file_session_factory(tmp_path):
    """Separate connections per session, for tests that interleave two writers."""
    engine = create_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield testing_session_local
    finally:
        engine.dispose()


@pytest.fixture
def owner(booking_db) -> Owner:
    return add_owner(booking_db)


def add_owner(db, email='owner@example.com', start=None, end=None, granularity=None) -> Owner:
    owner = Owner(
        email=email,
        display_name='Studio Owner',
        business_hours_start=start,
        business_hours_end=end,
        slot_granularity_minutes=granularity,
    )
    db.add(owner)
    db.commit()
    db.refresh(owner)
    return owner


def add_appointment(db, owner_id, start_time: datetime, duration_minutes=30, status='scheduled', **fields) -> Appointment:
    appointment = Appointment(
        owner_id=owner_id,
        start_time=start_time,
        duration_minutes=duration_minutes,
        status=status,
        client_name=fields.pop('client_name', 'Client'),
        client_email=fields.pop('client_email', 'client@example.com'),
        **fields,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def add_blocked_time(db, owner_id, start_time: datetime, end_time: datetime, reason=None) -> BlockedTime:
    blocked_time = BlockedTime(owner_id=owner_id, start_time=start_time, end_time=end_time, reason=reason)
    db.add(blocked_time)
    db.commit()
    db.refresh(blocked_time)
    return blocked_time


