import logging
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.auth.dependencies import get_current_owner
from booking_backend.core import config
from booking_backend.models.appointment import Appointment
from booking_backend.models.owner import Owner
from booking_backend.routes import common
from booking_backend.scheduling.commit import ClientInfo, commit_booking, update_appointment_status
from booking_backend.scheduling.errors import SchedulingError
from booking_backend.scheduling.store import fetch_owner_config
from booking_backend.scheduling.types import (
    MINUTES_PER_DAY,
    AppointmentStatus,
    format_time_of_day,
    parse_time_of_day,
    time_of_day_from_datetime,
)

router = APIRouter(tags=['bookings'])

logger = logging.getLogger(__name__)


class CreateAppointmentRequest(BaseModel):
    owner_id: int
    date: date
    time: str
    appointment_type_id: int | None = None
    duration_minutes: int | None = None
    client_name: str
    client_email: str
    client_phone: str | None = None
    notes: str | None = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        minutes = parse_time_of_day(value)
        if minutes >= MINUTES_PER_DAY:
            raise ValueError('Appointments must start before midnight.')
        return format_time_of_day(minutes)

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration_minutes(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError('Duration must be a positive number of minutes.')
        return value

    @field_validator('client_name')
    @classmethod
    def validate_client_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Client name is required.')
        return normalized

    @field_validator('client_email')
    @classmethod
    def validate_client_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized or '@' not in normalized:
            raise ValueError('A valid client email is required.')
        return normalized

    @field_validator('client_phone')
    @classmethod
    def validate_client_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class AppointmentResponse(BaseModel):
    id: int
    owner_id: int
    date: date
    time: str
    end_time: datetime
    duration_minutes: int
    status: str
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None


def _appointment_response(appointment: Appointment) -> AppointmentResponse:
    duration_minutes = appointment.duration_minutes or config.DEFAULT_APPOINTMENT_DURATION_MINUTES
    return AppointmentResponse(
        id=appointment.id,
        owner_id=appointment.owner_id,
        date=appointment.start_time.date(),
        time=format_time_of_day(time_of_day_from_datetime(appointment.start_time)),
        end_time=appointment.start_time + timedelta(minutes=duration_minutes),
        duration_minutes=duration_minutes,
        status=appointment.status,
        client_name=appointment.client_name,
        client_email=appointment.client_email,
        client_phone=appointment.client_phone,
        notes=appointment.notes,
    )


@router.post('/appointments', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(common.get_db)):
    common.ensure_database_ready()

    try:
        owner_config = fetch_owner_config(db, data.owner_id)
        duration_minutes = owner_config.resolve_duration(data.duration_minutes, data.appointment_type_id)
        booked = commit_booking(
            db,
            owner_id=data.owner_id,
            day=data.date,
            start=parse_time_of_day(data.time),
            duration_minutes=duration_minutes,
            client_info=ClientInfo(
                name=data.client_name,
                email=data.client_email,
                phone=data.client_phone,
                notes=data.notes,
            ),
            appointment_type_id=data.appointment_type_id,
        )
        appointment = db.query(Appointment).filter(Appointment.id == booked.id).one()
    except SchedulingError as exc:
        raise common.scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc

    return _appointment_response(appointment)


@router.patch('/appointments/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    current_owner: Owner = Depends(get_current_owner),
    db: Session = Depends(common.get_db),
):
    common.ensure_database_ready()

    try:
        appointment = update_appointment_status(db, current_owner.id, appointment_id, data.status)
    except SchedulingError as exc:
        raise common.scheduling_http_error(exc) from exc

    logger.info('Owner %s set appointment %s to %s', current_owner.id, appointment_id, data.status.value)
    return _appointment_response(appointment)
