"""
Occupancy Calculator

Turns a day's booked appointments and owner blocks into half-open occupied
intervals. Cancelled and rejected appointments free their time and are left
out. A record with a non-positive duration is logged and skipped so that one
corrupt row cannot close the whole day.
"""

import logging
from typing import Iterable

from booking_backend.scheduling.errors import InvalidAppointmentData
from booking_backend.scheduling.types import BookedAppointment, Interval, MINUTES_PER_DAY

logger = logging.getLogger(__name__)


def appointment_interval(appointment: BookedAppointment) -> Interval:
    if appointment.duration_minutes is None or appointment.duration_minutes <= 0:
        raise InvalidAppointmentData(
            appointment.id,
            f'duration must be positive, got {appointment.duration_minutes}',
        )
    if not 0 <= appointment.start < MINUTES_PER_DAY:
        raise InvalidAppointmentData(appointment.id, f'start {appointment.start} is outside the day')

    return Interval(appointment.start, appointment.end)


def compute_occupied_intervals(appointments: Iterable[BookedAppointment]) -> set[Interval]:
    occupied: set[Interval] = set()

    for appointment in appointments:
        if not appointment.status.occupies_time:
            continue
        try:
            occupied.add(appointment_interval(appointment))
        except InvalidAppointmentData as exc:
            logger.warning('Skipping appointment %r in occupancy: %s', exc.record_id, exc.reason)

    return occupied
