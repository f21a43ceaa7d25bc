import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.routes import common
from booking_backend.scheduling.errors import InvalidAppointmentData, SchedulingError
from booking_backend.scheduling.occupancy import appointment_interval
from booking_backend.scheduling.store import fetch_owner_config, load_availability, load_day_occupancy
from booking_backend.scheduling.types import MINUTES_PER_DAY, format_time_of_day

router = APIRouter(tags=['availability'])

logger = logging.getLogger(__name__)


class SlotResponse(BaseModel):
    time: str
    start_minutes: int
    bookable: bool


class BusinessHoursResponse(BaseModel):
    start: str
    end: str


class AvailabilityResponse(BaseModel):
    date: date
    owner_id: int
    duration_minutes: int
    granularity_minutes: int
    business_hours: BusinessHoursResponse
    slots: list[SlotResponse]


class BookedSlotResponse(BaseModel):
    time: str
    end_time: str
    duration_minutes: int
    blocked: bool


class AppointmentTypeOptionResponse(BaseModel):
    id: int
    name: str
    duration_minutes: int
    is_default: bool


@router.get('/slots', response_model=AvailabilityResponse)
def list_available_slots(
    owner_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    duration_minutes: int | None = Query(default=None, ge=1, le=MINUTES_PER_DAY),
    appointment_type_id: int | None = Query(default=None),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        result = load_availability(
            db,
            owner_id,
            slot_date,
            duration_minutes=duration_minutes,
            appointment_type_id=appointment_type_id,
        )
    except SchedulingError as exc:
        raise common.scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc

    return AvailabilityResponse(
        date=slot_date,
        owner_id=owner_id,
        duration_minutes=result.query.requested_duration_minutes,
        granularity_minutes=result.granularity_minutes,
        business_hours=BusinessHoursResponse(
            start=format_time_of_day(result.business_hours.start),
            end=format_time_of_day(result.business_hours.end),
        ),
        slots=[
            SlotResponse(time=entry.time, start_minutes=entry.slot.start, bookable=entry.bookable)
            for entry in result
        ],
    )


@router.get('/booked', response_model=list[BookedSlotResponse])
def list_booked_slots(
    owner_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        fetch_owner_config(db, owner_id)
        occupancy = load_day_occupancy(db, owner_id, slot_date)
    except SchedulingError as exc:
        raise common.scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc

    booked_slots = []
    for booked in occupancy:
        if not booked.status.occupies_time:
            continue
        try:
            interval = appointment_interval(booked)
        except InvalidAppointmentData as exc:
            logger.warning('Leaving %r out of booked slots: %s', booked.id, exc.reason)
            continue
        booked_slots.append((interval, booked.blocked))

    booked_slots.sort(key=lambda item: (item[0].start, item[0].end, item[1]))

    return [
        BookedSlotResponse(
            time=format_time_of_day(interval.start),
            end_time=format_time_of_day(min(interval.end, MINUTES_PER_DAY)),
            duration_minutes=interval.duration_minutes,
            blocked=blocked,
        )
        for interval, blocked in booked_slots
    ]


@router.get('/appointment-types', response_model=list[AppointmentTypeOptionResponse])
def list_appointment_types(
    owner_id: int = Query(...),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        owner_config = fetch_owner_config(db, owner_id)
    except SchedulingError as exc:
        raise common.scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc

    return [
        AppointmentTypeOptionResponse(
            id=appointment_type.id,
            name=appointment_type.name,
            duration_minutes=appointment_type.duration_minutes,
            is_default=appointment_type.is_default,
        )
        for appointment_type in owner_config.appointment_types
    ]
