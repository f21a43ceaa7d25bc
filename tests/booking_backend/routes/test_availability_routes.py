from datetime import date, datetime, time

import pytest
from fastapi import HTTPException

from conftest import add_appointment, add_blocked_time, add_owner
from booking_backend.models.appointment_type import AppointmentType
from booking_backend.routes.availability_routes import (
    list_appointment_types,
    list_available_slots,
    list_booked_slots,
)

DAY = date(2026, 1, 5)


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('booking_backend.routes.common.ensure_database_ready', lambda: None)


def test_list_available_slots_returns_enabled_and_disabled_slots(booking_db, owner) -> None:
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 10, 30), duration_minutes=30)

    response = list_available_slots(
        owner_id=owner.id,
        slot_date=DAY,
        duration_minutes=60,
        appointment_type_id=None,
        db=booking_db,
    )

    assert response.duration_minutes == 60
    assert response.granularity_minutes == 30
    assert response.business_hours.start == '09:00'
    assert response.business_hours.end == '17:30'
    slots = {slot.time: slot.bookable for slot in response.slots}
    assert slots['09:00'] is True
    assert slots['10:00'] is False
    assert slots['10:30'] is False
    assert slots['17:00'] is False
    assert '17:30' not in slots
    assert response.slots[0].start_minutes == 540


def test_list_available_slots_uses_appointment_type_duration(booking_db, owner) -> None:
    appointment_type = AppointmentType(owner_id=owner.id, name='Deep clean', duration_minutes=90)
    booking_db.add(appointment_type)
    booking_db.commit()
    booking_db.refresh(appointment_type)

    response = list_available_slots(
        owner_id=owner.id,
        slot_date=DAY,
        duration_minutes=None,
        appointment_type_id=appointment_type.id,
        db=booking_db,
    )

    slots = {slot.time: slot.bookable for slot in response.slots}
    assert response.duration_minutes == 90
    assert slots['16:00'] is True
    assert slots['16:30'] is False


def test_list_available_slots_follows_owner_configuration(booking_db) -> None:
    owner = add_owner(booking_db, start=time(8, 0), end=time(10, 0), granularity=15)

    response = list_available_slots(
        owner_id=owner.id,
        slot_date=DAY,
        duration_minutes=30,
        appointment_type_id=None,
        db=booking_db,
    )

    assert response.granularity_minutes == 15
    assert [slot.time for slot in response.slots] == [
        '08:00', '08:15', '08:30', '08:45', '09:00', '09:15', '09:30', '09:45',
    ]
    assert [slot.bookable for slot in response.slots][-2:] == [True, False]


def test_list_available_slots_returns_not_found_for_unknown_owner(booking_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(
            owner_id=404,
            slot_date=DAY,
            duration_minutes=30,
            appointment_type_id=None,
            db=booking_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Owner not found.'


def test_list_available_slots_returns_not_found_for_unknown_appointment_type(booking_db, owner) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(
            owner_id=owner.id,
            slot_date=DAY,
            duration_minutes=None,
            appointment_type_id=999,
            db=booking_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Appointment type not found.'


def test_list_booked_slots_reports_appointments_and_blocks(booking_db, owner) -> None:
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 9, 0), duration_minutes=45)
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 10, 0), duration_minutes=30, status='cancelled')
    add_blocked_time(booking_db, owner.id, datetime(2026, 1, 5, 12, 0), datetime(2026, 1, 5, 13, 0))

    booked = list_booked_slots(owner_id=owner.id, slot_date=DAY, db=booking_db)

    assert [(slot.time, slot.end_time, slot.duration_minutes, slot.blocked) for slot in booked] == [
        ('09:00', '09:45', 45, False),
        ('12:00', '13:00', 60, True),
    ]


def test_list_appointment_types_returns_owner_types(booking_db, owner) -> None:
    other_owner = add_owner(booking_db, email='other@example.com')
    booking_db.add_all([
        AppointmentType(owner_id=owner.id, name='Consultation', duration_minutes=30, is_default=True),
        AppointmentType(owner_id=owner.id, name='Treatment', duration_minutes=90),
        AppointmentType(owner_id=other_owner.id, name='Elsewhere', duration_minutes=15),
    ])
    booking_db.commit()

    types = list_appointment_types(owner_id=owner.id, db=booking_db)

    assert [(item.name, item.duration_minutes, item.is_default) for item in types] == [
        ('Consultation', 30, True),
        ('Treatment', 90, False),
    ]


def test_list_available_slots_reports_granularity_for_window_without_slots(booking_db) -> None:
    owner = add_owner(booking_db, start=time(9, 10), end=time(9, 20), granularity=30)

    response = list_available_slots(
        owner_id=owner.id,
        slot_date=DAY,
        duration_minutes=10,
        appointment_type_id=None,
        db=booking_db,
    )

    assert response.granularity_minutes == 30
    assert response.slots == []


def test_list_booked_slots_keeps_records_sharing_an_interval(booking_db, owner) -> None:
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 10, 0), duration_minutes=30)
    add_blocked_time(booking_db, owner.id, datetime(2026, 1, 5, 10, 0), datetime(2026, 1, 5, 10, 30))
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 11, 0), duration_minutes=30)
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 11, 0), duration_minutes=30)

    booked = list_booked_slots(owner_id=owner.id, slot_date=DAY, db=booking_db)

    assert [(slot.time, slot.end_time, slot.blocked) for slot in booked] == [
        ('10:00', '10:30', False),
        ('10:00', '10:30', True),
        ('11:00', '11:30', False),
        ('11:00', '11:30', False),
    ]


def test_list_booked_slots_skips_records_with_invalid_duration(booking_db, owner) -> None:
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 9, 0), duration_minutes=-15)
    add_appointment(booking_db, owner.id, datetime(2026, 1, 5, 10, 0), duration_minutes=30)

    booked = list_booked_slots(owner_id=owner.id, slot_date=DAY, db=booking_db)

    assert [slot.time for slot in booked] == ['10:00']
