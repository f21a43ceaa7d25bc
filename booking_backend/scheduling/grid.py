"""Canonical day grid of candidate start times."""

from typing import Iterator

from booking_backend.core import config
from booking_backend.scheduling.types import MINUTES_PER_DAY, TimeOfDay


def validate_granularity(granularity_minutes: int) -> int:
    if granularity_minutes <= 0 or MINUTES_PER_DAY % granularity_minutes != 0:
        raise ValueError(
            f'Slot granularity must be a positive divisor of {MINUTES_PER_DAY}, got {granularity_minutes}.'
        )
    return granularity_minutes


def iter_grid(granularity_minutes: int = config.SLOT_GRANULARITY_MINUTES) -> Iterator[TimeOfDay]:
    validate_granularity(granularity_minutes)
    return iter(range(0, MINUTES_PER_DAY, granularity_minutes))


def generate_grid(granularity_minutes: int = config.SLOT_GRANULARITY_MINUTES) -> list[TimeOfDay]:
    """All start times of the day, ``0`` through ``1440 - granularity``, ascending."""
    return list(iter_grid(granularity_minutes))
