from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from booking_backend.database import SessionLocal, ensure_appointment_schema, ensure_blocked_time_schema
from booking_backend.scheduling.errors import (
    AppointmentNotFound,
    AppointmentTypeNotFound,
    InvalidAppointmentData,
    InvalidDuration,
    OwnerNotFound,
    SchedulingError,
    SlotNoLongerAvailable,
    StorageUnavailable,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'
SLOT_UNAVAILABLE_DETAIL = 'This time is no longer available. Please pick another time.'


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
        ensure_blocked_time_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def scheduling_http_error(exc: SchedulingError) -> HTTPException:
    if isinstance(exc, InvalidDuration):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, OwnerNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Owner not found.')
    if isinstance(exc, AppointmentTypeNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment type not found.')
    if isinstance(exc, AppointmentNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.')
    if isinstance(exc, SlotNoLongerAvailable):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLOT_UNAVAILABLE_DETAIL)
    if isinstance(exc, InvalidAppointmentData):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, StorageUnavailable):
        return database_unavailable()
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
