"""
Store adapters

Reads owners, appointment types, appointments and blocked times through the
SQLAlchemy session and hands them to the pure availability code as the value
types in ``scheduling.types``. Nothing here writes.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.models.appointment import Appointment
from booking_backend.models.appointment_type import AppointmentType
from booking_backend.models.blocked_time import BlockedTime
from booking_backend.models.owner import Owner
from booking_backend.scheduling.errors import (
    AppointmentTypeNotFound,
    InvalidAppointmentData,
    OwnerNotFound,
)
from booking_backend.scheduling.grid import validate_granularity
from booking_backend.scheduling.resolver import list_availability
from booking_backend.scheduling.types import (
    MINUTES_PER_DAY,
    AppointmentStatus,
    AvailabilityQuery,
    AvailabilityResult,
    BookedAppointment,
    BusinessHours,
    time_of_day_from_datetime,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentTypeOption:
    id: int
    name: str
    duration_minutes: int
    is_default: bool = False


@dataclass(frozen=True)
class OwnerConfig:
    owner_id: int
    business_hours: BusinessHours
    granularity_minutes: int
    appointment_types: Tuple[AppointmentTypeOption, ...] = ()

    @property
    def default_appointment_type(self) -> Optional[AppointmentTypeOption]:
        for appointment_type in self.appointment_types:
            if appointment_type.is_default:
                return appointment_type
        return None

    def duration_for(self, appointment_type_id: int) -> int:
        for appointment_type in self.appointment_types:
            if appointment_type.id == appointment_type_id:
                return appointment_type.duration_minutes
        raise AppointmentTypeNotFound(appointment_type_id)

    def resolve_duration(
        self,
        duration_minutes: Optional[int] = None,
        appointment_type_id: Optional[int] = None,
    ) -> int:
        if duration_minutes is not None:
            return duration_minutes
        if appointment_type_id is not None:
            return self.duration_for(appointment_type_id)
        default_type = self.default_appointment_type
        if default_type is not None:
            return default_type.duration_minutes
        return config.DEFAULT_APPOINTMENT_DURATION_MINUTES


def day_bounds(day: date) -> tuple[datetime, datetime]:
    day_start = datetime.combine(day, datetime.min.time())
    return day_start, day_start + timedelta(days=1)


def _owner_business_hours(owner: Owner) -> BusinessHours:
    try:
        return BusinessHours.from_times(owner.business_hours_start, owner.business_hours_end)
    except ValueError:
        logger.warning('Owner %s has invalid business hours; using the default window', owner.id)
        return BusinessHours.default()


def _owner_granularity(owner: Owner) -> int:
    if owner.slot_granularity_minutes is None:
        return config.SLOT_GRANULARITY_MINUTES
    try:
        return validate_granularity(owner.slot_granularity_minutes)
    except ValueError:
        logger.warning(
            'Owner %s has invalid slot granularity %r; using %s minutes',
            owner.id,
            owner.slot_granularity_minutes,
            config.SLOT_GRANULARITY_MINUTES,
        )
        return config.SLOT_GRANULARITY_MINUTES


def fetch_owner_config(db: Session, owner_id: int) -> OwnerConfig:
    owner = db.query(Owner).filter(Owner.id == owner_id).first()
    if owner is None:
        raise OwnerNotFound(owner_id)

    appointment_types = db.query(AppointmentType).filter(
        AppointmentType.owner_id == owner_id,
    ).order_by(AppointmentType.id.asc()).all()

    return OwnerConfig(
        owner_id=owner.id,
        business_hours=_owner_business_hours(owner),
        granularity_minutes=_owner_granularity(owner),
        appointment_types=tuple(
            AppointmentTypeOption(
                id=appointment_type.id,
                name=appointment_type.name or '',
                duration_minutes=appointment_type.duration_minutes or config.DEFAULT_APPOINTMENT_DURATION_MINUTES,
                is_default=bool(appointment_type.is_default),
            )
            for appointment_type in appointment_types
        ),
    )


def _appointment_duration(appointment: Appointment, type_duration: Optional[int]) -> int:
    if appointment.duration_minutes is not None:
        return appointment.duration_minutes
    if type_duration is not None:
        return type_duration
    return config.DEFAULT_APPOINTMENT_DURATION_MINUTES


def fetch_appointments(db: Session, owner_id: int, day: date) -> list[BookedAppointment]:
    """Appointments of every status that start on ``day``."""
    day_start, day_end = day_bounds(day)

    rows = db.query(Appointment, AppointmentType.duration_minutes).outerjoin(
        AppointmentType,
        Appointment.appointment_type_id == AppointmentType.id,
    ).filter(
        Appointment.owner_id == owner_id,
        Appointment.start_time >= day_start,
        Appointment.start_time < day_end,
    ).order_by(Appointment.start_time.asc()).all()

    booked: list[BookedAppointment] = []
    for appointment, type_duration in rows:
        try:
            status = AppointmentStatus.parse(appointment.status, record_id=appointment.id)
        except InvalidAppointmentData as exc:
            logger.warning('Skipping appointment %r: %s', exc.record_id, exc.reason)
            continue

        booked.append(
            BookedAppointment(
                id=appointment.id,
                start=time_of_day_from_datetime(appointment.start_time),
                duration_minutes=_appointment_duration(appointment, type_duration),
                status=status,
                owner_id=appointment.owner_id,
            )
        )

    return booked


def fetch_blocked_times(db: Session, owner_id: int, day: date) -> list[BookedAppointment]:
    """Blocks intersecting ``day``, clipped to that day and shaped like appointments."""
    day_start, day_end = day_bounds(day)

    rows = db.query(BlockedTime).filter(
        BlockedTime.owner_id == owner_id,
        BlockedTime.start_time < day_end,
        BlockedTime.end_time > day_start,
    ).order_by(BlockedTime.start_time.asc()).all()

    blocked: list[BookedAppointment] = []
    for blocked_time in rows:
        start = max(blocked_time.start_time, day_start)
        end = min(blocked_time.end_time, day_end)
        start_minutes = int((start - day_start).total_seconds() // 60)
        end_minutes = MINUTES_PER_DAY if end == day_end else int((end - day_start).total_seconds() // 60)

        blocked.append(
            BookedAppointment(
                id=f'blocked-{blocked_time.id}',
                start=start_minutes,
                duration_minutes=end_minutes - start_minutes,
                blocked=True,
            )
        )

    return blocked


def load_day_occupancy(db: Session, owner_id: int, day: date) -> list[BookedAppointment]:
    return fetch_appointments(db, owner_id, day) + fetch_blocked_times(db, owner_id, day)


def load_availability(
    db: Session,
    owner_id: int,
    day: date,
    duration_minutes: Optional[int] = None,
    appointment_type_id: Optional[int] = None,
) -> AvailabilityResult:
    owner_config = fetch_owner_config(db, owner_id)
    query = AvailabilityQuery(
        date=day,
        owner_id=owner_id,
        requested_duration_minutes=owner_config.resolve_duration(duration_minutes, appointment_type_id),
    )

    return list_availability(
        query,
        load_day_occupancy(db, owner_id, day),
        owner_config.business_hours,
        granularity_minutes=owner_config.granularity_minutes,
    )
