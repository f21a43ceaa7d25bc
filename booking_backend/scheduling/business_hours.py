"""Narrow the day grid to an owner's opening window."""

from typing import Iterable

from booking_backend.scheduling.types import BusinessHours, TimeOfDay


def filter_to_business_hours(grid: Iterable[TimeOfDay], business_hours: BusinessHours) -> list[TimeOfDay]:
    # Only asks "is the business open at t". Whether a given duration still
    # fits before closing is decided by the resolver.
    return [slot for slot in grid if business_hours.opens_at(slot)]
