"""
Availability Resolver

Decides whether a requested appointment fits at a candidate start time and
builds the per-slot availability list shown on the booking form.

Durations are exact minutes, not grid units: a 45 minute request on a
30 minute grid is checked against its real 45 minute span.
"""

import logging
from typing import Collection, Iterable

from booking_backend.core import config
from booking_backend.scheduling.business_hours import filter_to_business_hours
from booking_backend.scheduling.errors import InvalidDuration
from booking_backend.scheduling.grid import iter_grid
from booking_backend.scheduling.occupancy import compute_occupied_intervals
from booking_backend.scheduling.types import (
    AvailabilityQuery,
    AvailabilityResult,
    BookedAppointment,
    BusinessHours,
    Interval,
    Slot,
    SlotAvailability,
    TimeOfDay,
)

logger = logging.getLogger(__name__)


def validate_duration(requested_duration: int) -> int:
    if requested_duration is None or requested_duration <= 0:
        raise InvalidDuration(requested_duration)
    return requested_duration


def is_bookable(
    candidate_start: TimeOfDay,
    requested_duration: int,
    occupied: Collection[Interval],
    business_hours: BusinessHours,
) -> bool:
    """
    Check one candidate against the opening window and every occupied interval.

    Raises:
        InvalidDuration: requested_duration is zero or negative.
    """
    validate_duration(requested_duration)
    candidate = Interval(candidate_start, candidate_start + requested_duration)

    if candidate.end > business_hours.end:
        return False
    if candidate.start < business_hours.start:
        return False

    return not any(candidate.overlaps(interval) for interval in occupied)


def list_availability(
    query: AvailabilityQuery,
    all_appointments: Iterable[BookedAppointment],
    business_hours: BusinessHours,
    granularity_minutes: int = config.SLOT_GRANULARITY_MINUTES,
) -> AvailabilityResult:
    """
    Grid -> business hours -> occupancy -> per-slot check.

    Slots outside business hours are omitted; slots inside them are always
    returned, with ``bookable=False`` when the request does not fit. Never
    raises for bad durations or bad records: an invalid duration yields an
    all-disabled day.
    """
    open_slots = filter_to_business_hours(iter_grid(granularity_minutes), business_hours)
    occupied = frozenset(compute_occupied_intervals(all_appointments))

    try:
        validate_duration(query.requested_duration_minutes)
    except InvalidDuration as exc:
        logger.warning(
            'Availability for owner %s on %s requested with invalid duration %r',
            query.owner_id,
            query.date,
            exc.duration_minutes,
        )
        entries = tuple(SlotAvailability(Slot(start, granularity_minutes), False) for start in open_slots)
        return AvailabilityResult(
            query=query,
            business_hours=business_hours,
            entries=entries,
            granularity_minutes=granularity_minutes,
        )

    entries = tuple(
        SlotAvailability(
            Slot(start, granularity_minutes),
            is_bookable(start, query.requested_duration_minutes, occupied, business_hours),
        )
        for start in open_slots
    )
    return AvailabilityResult(
        query=query,
        business_hours=business_hours,
        entries=entries,
        granularity_minutes=granularity_minutes,
    )
