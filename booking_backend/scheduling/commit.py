"""
Conflict-Safe Booking Commit

The availability list a client saw may be stale by the time it submits, so
every write that adds occupancy re-reads the day and re-checks it inside the
transaction that performs the write.

Atomicity comes from the ``booking_days`` ledger: one row per owner and
calendar day with a version counter. A write remembers the version it read,
checks the fresh occupancy, then moves the version forward with a
conditional ``UPDATE ... WHERE version = <read version>``. If that touches
no row another writer committed for the same owner and day in between, so
the transaction is rolled back and the whole check runs again. Writers for
other owners or other days never share a ledger row.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.models.appointment import Appointment
from booking_backend.models.blocked_time import BlockedTime
from booking_backend.models.booking_day import BookingDay
from booking_backend.scheduling.errors import (
    AppointmentNotFound,
    InvalidDuration,
    SchedulingError,
    SlotNoLongerAvailable,
    StorageUnavailable,
)
from booking_backend.scheduling.occupancy import appointment_interval, compute_occupied_intervals
from booking_backend.scheduling.resolver import is_bookable, validate_duration
from booking_backend.scheduling.store import day_bounds, fetch_owner_config, load_day_occupancy
from booking_backend.scheduling.types import (
    MINUTES_PER_DAY,
    AppointmentStatus,
    BookedAppointment,
    Interval,
    TimeOfDay,
    combine,
    time_of_day_from_datetime,
)

logger = logging.getLogger(__name__)

RowT = TypeVar('RowT')


@dataclass(frozen=True)
class ClientInfo:
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None


def _load_booking_day(db: Session, owner_id: int, day: date) -> Optional[BookingDay]:
    """Fetch the ledger row, inserting it on first use. ``None`` means a concurrent insert won."""
    booking_day = db.query(BookingDay).populate_existing().filter(
        BookingDay.owner_id == owner_id,
        BookingDay.day == day,
    ).first()
    if booking_day is not None:
        return booking_day

    booking_day = BookingDay(owner_id=owner_id, day=day, version=0)
    db.add(booking_day)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return None
    return booking_day


def _advance_booking_day(db: Session, booking_day: BookingDay, observed_version: int) -> bool:
    updated = db.query(BookingDay).filter(
        BookingDay.id == booking_day.id,
        BookingDay.version == observed_version,
    ).update({BookingDay.version: observed_version + 1}, synchronize_session=False)
    return updated == 1


def _ledgered_write(
    db: Session,
    owner_id: int,
    days: Iterable[date],
    prepare: Callable[[], RowT],
) -> RowT:
    """
    Run ``prepare`` (fresh reads, checks, builds the row) and persist its row
    only if no other writer touched any of ``days`` for this owner meanwhile.

    ``prepare`` raises ``SlotNoLongerAvailable`` (or another ``SchedulingError``)
    to abort without writing.
    """
    ordered_days = sorted(set(days))

    for attempt in range(1, config.BOOKING_COMMIT_MAX_ATTEMPTS + 1):
        try:
            claimed: list[tuple[BookingDay, int]] = []
            for day in ordered_days:
                booking_day = _load_booking_day(db, owner_id, day)
                if booking_day is None:
                    break
                claimed.append((booking_day, booking_day.version))
            if len(claimed) != len(ordered_days):
                logger.debug('Ledger insert race for owner %s (attempt %s); retrying', owner_id, attempt)
                continue

            row = prepare()

            if not all(_advance_booking_day(db, booking_day, version) for booking_day, version in claimed):
                db.rollback()
                logger.debug('Ledger moved for owner %s on %s (attempt %s); retrying', owner_id, ordered_days, attempt)
                continue

            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        except SchedulingError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Appointment store unavailable while writing for owner %s', owner_id)
            raise StorageUnavailable('Appointment store unavailable; nothing was written.') from exc

    raise StorageUnavailable(
        f'Booking ledger for owner {owner_id} stayed contended after '
        f'{config.BOOKING_COMMIT_MAX_ATTEMPTS} attempts; nothing was written.'
    )


def _to_booked_appointment(appointment: Appointment) -> BookedAppointment:
    return BookedAppointment(
        id=appointment.id,
        start=time_of_day_from_datetime(appointment.start_time),
        duration_minutes=appointment.duration_minutes,
        status=AppointmentStatus.parse(appointment.status, record_id=appointment.id),
        owner_id=appointment.owner_id,
    )


def commit_booking(
    db: Session,
    owner_id: int,
    day: date,
    start: TimeOfDay,
    duration_minutes: int,
    client_info: ClientInfo,
    appointment_type_id: Optional[int] = None,
) -> BookedAppointment:
    """
    Re-check availability against a fresh read and insert the appointment atomically.

    Raises:
        InvalidDuration: duration_minutes is zero or negative.
        OwnerNotFound: no such owner.
        SlotNoLongerAvailable: the start is off the owner's grid or the interval no longer fits;
            nothing was written.
        StorageUnavailable: the store failed or stayed contended; nothing was written.
    """
    validate_duration(duration_minutes)
    if not 0 <= start < MINUTES_PER_DAY:
        raise ValueError(f'Start minute {start} is outside the day.')

    def prepare() -> Appointment:
        owner_config = fetch_owner_config(db, owner_id)
        if start % owner_config.granularity_minutes != 0:
            logger.info(
                'Owner %s slot %s is off the %s-minute grid',
                owner_id, start, owner_config.granularity_minutes,
            )
            raise SlotNoLongerAvailable(owner_id, day, start, duration_minutes)
        occupied = compute_occupied_intervals(load_day_occupancy(db, owner_id, day))
        if not is_bookable(start, duration_minutes, occupied, owner_config.business_hours):
            logger.info(
                'Owner %s slot %s+%smin on %s is no longer available',
                owner_id, start, duration_minutes, day,
            )
            raise SlotNoLongerAvailable(owner_id, day, start, duration_minutes)

        return Appointment(
            owner_id=owner_id,
            appointment_type_id=appointment_type_id,
            start_time=combine(day, start),
            duration_minutes=duration_minutes,
            status=AppointmentStatus.SCHEDULED.value,
            client_name=client_info.name,
            client_email=client_info.email,
            client_phone=client_info.phone,
            notes=client_info.notes,
        )

    appointment = _ledgered_write(db, owner_id, [day], prepare)
    logger.info(
        'Booked appointment %s for owner %s on %s at %s for %s minutes',
        appointment.id, owner_id, day, start, duration_minutes,
    )
    return _to_booked_appointment(appointment)


def _days_spanned(start_at: datetime, end_at: datetime) -> list[date]:
    days = []
    current = start_at.date()
    while datetime.combine(current, datetime.min.time()) < end_at:
        days.append(current)
        current += timedelta(days=1)
    return days


def commit_blocked_time(
    db: Session,
    owner_id: int,
    start_at: datetime,
    end_at: datetime,
    reason: Optional[str] = None,
) -> BlockedTime:
    """Insert an owner block; refused if it overlaps a live appointment or another block."""
    start_at = start_at.replace(second=0, microsecond=0)
    end_at = end_at.replace(second=0, microsecond=0)
    if end_at <= start_at:
        raise InvalidDuration(int((end_at - start_at).total_seconds() // 60))

    days = _days_spanned(start_at, end_at)

    def prepare() -> BlockedTime:
        fetch_owner_config(db, owner_id)
        for day in days:
            day_start, day_end = day_bounds(day)
            clipped_start = max(start_at, day_start)
            clipped_end = min(end_at, day_end)
            candidate = Interval(
                time_of_day_from_datetime(clipped_start),
                MINUTES_PER_DAY if clipped_end == day_end else time_of_day_from_datetime(clipped_end),
            )
            occupied = compute_occupied_intervals(load_day_occupancy(db, owner_id, day))
            if any(candidate.overlaps(interval) for interval in occupied):
                raise SlotNoLongerAvailable(owner_id, day, candidate.start, candidate.duration_minutes)

        return BlockedTime(owner_id=owner_id, start_time=start_at, end_time=end_at, reason=reason)

    blocked_time = _ledgered_write(db, owner_id, days, prepare)
    logger.info('Blocked %s - %s for owner %s', start_at, end_at, owner_id)
    return blocked_time


def update_appointment_status(
    db: Session,
    owner_id: int,
    appointment_id: int,
    new_status: AppointmentStatus,
) -> Appointment:
    """
    Change an appointment's status. Freeing a slot is a plain update; putting a
    cancelled or rejected appointment back on the calendar re-checks the day
    through the ledger like a new booking.
    """
    try:
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.owner_id == owner_id,
        ).first()
    except SQLAlchemyError as exc:
        raise StorageUnavailable('Appointment store unavailable.') from exc
    if appointment is None:
        raise AppointmentNotFound(appointment_id)

    current_status = AppointmentStatus.parse(appointment.status, record_id=appointment.id)
    if not new_status.occupies_time or current_status.occupies_time:
        try:
            appointment.status = new_status.value
            db.commit()
            db.refresh(appointment)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Appointment store unavailable while updating appointment %s', appointment_id)
            raise StorageUnavailable('Appointment store unavailable; nothing was written.') from exc
        return appointment

    day = appointment.start_time.date()
    start = time_of_day_from_datetime(appointment.start_time)

    def prepare() -> Appointment:
        fresh = db.query(Appointment).populate_existing().filter(Appointment.id == appointment_id).one()
        occupancy = load_day_occupancy(db, owner_id, day)
        reactivated = next((booked for booked in occupancy if booked.id == appointment_id), None)
        if reactivated is None:
            raise AppointmentNotFound(appointment_id)

        candidate = appointment_interval(reactivated)
        occupied = compute_occupied_intervals(booked for booked in occupancy if booked.id != appointment_id)
        if any(candidate.overlaps(interval) for interval in occupied):
            raise SlotNoLongerAvailable(owner_id, day, start, candidate.duration_minutes)
        fresh.status = new_status.value
        return fresh

    return _ledgered_write(db, owner_id, [day], prepare)
