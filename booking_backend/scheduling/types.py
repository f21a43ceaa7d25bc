"""
Value types for availability computation.

Times of day are plain ``int`` minutes since midnight in ``[0, 1440)``;
``HH:MM`` strings only appear at the HTTP boundary (see ``parse_time_of_day``
and ``format_time_of_day``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

from booking_backend.core import config
from booking_backend.scheduling.errors import InvalidAppointmentData

MINUTES_PER_DAY = config.MINUTES_PER_DAY

TimeOfDay = int


def parse_time_of_day(value: str) -> TimeOfDay:
    """Parse ``HH:MM`` (``24:00`` allowed as end of day) into minutes since midnight."""
    try:
        hours_text, minutes_text = value.strip().split(':')
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f'Invalid time of day {value!r}; expected HH:MM.') from exc

    if not (0 <= minutes < 60) or not (0 <= hours <= 24) or (hours == 24 and minutes != 0):
        raise ValueError(f'Invalid time of day {value!r}; expected HH:MM.')

    return hours * 60 + minutes


def format_time_of_day(minutes: TimeOfDay) -> str:
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f'Minute offset {minutes} is outside a single day.')
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def time_of_day_from_time(value: time) -> TimeOfDay:
    return value.hour * 60 + value.minute


def time_of_day_from_datetime(value: datetime) -> TimeOfDay:
    return time_of_day_from_time(value.time())


def combine(day: date, minutes: TimeOfDay) -> datetime:
    """Attach a minute offset to a calendar day; 1440 rolls over to the next midnight."""
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)


class AppointmentStatus(str, Enum):
    SCHEDULED = 'scheduled'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REJECTED = 'rejected'

    @property
    def occupies_time(self) -> bool:
        return self in _OCCUPYING_STATUSES

    @classmethod
    def parse(cls, value: Optional[str], record_id=None) -> 'AppointmentStatus':
        normalized = (value or '').strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidAppointmentData(record_id, f'unknown status {value!r}') from exc


_OCCUPYING_STATUSES = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
})


@dataclass(frozen=True)
class Slot:
    """A candidate start time on the fixed grid."""
    start: TimeOfDay
    granularity_minutes: int = config.SLOT_GRANULARITY_MINUTES

    def __post_init__(self):
        if self.granularity_minutes <= 0:
            raise ValueError('Slot granularity must be positive.')
        if not 0 <= self.start < MINUTES_PER_DAY:
            raise ValueError(f'Slot start {self.start} is outside the day.')
        if self.start % self.granularity_minutes != 0:
            raise ValueError(
                f'Slot start {self.start} is not aligned to a {self.granularity_minutes}-minute grid.'
            )

    @property
    def time(self) -> str:
        return format_time_of_day(self.start)


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open span ``[start, end)`` of minutes."""
    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f'Interval end {self.end} must be after start {self.start}.')

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: 'Interval') -> bool:
        # Strict on both sides: [09:30, 10:00) and [10:00, 10:30) do not overlap.
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class BusinessHours:
    """Same-day opening window ``[start, end)``."""
    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise ValueError(
                f'Business hours {self.start}-{self.end} must satisfy 0 <= start < end <= {MINUTES_PER_DAY}.'
            )

    @classmethod
    def default(cls) -> 'BusinessHours':
        return cls(config.DEFAULT_BUSINESS_HOURS_START, config.DEFAULT_BUSINESS_HOURS_END)

    @classmethod
    def from_times(cls, start: Optional[time], end: Optional[time]) -> 'BusinessHours':
        """Build from an owner's stored window, falling back to the default when unset."""
        if start is None or end is None:
            return cls.default()
        end_minutes = time_of_day_from_time(end)
        # A stored closing time of 00:00 means the window runs to midnight.
        if end_minutes == 0:
            end_minutes = MINUTES_PER_DAY
        return cls(time_of_day_from_time(start), end_minutes)

    def opens_at(self, minutes: TimeOfDay) -> bool:
        return self.start <= minutes < self.end


@dataclass(frozen=True)
class BookedAppointment:
    """An existing booking, or an owner block shaped like one (``blocked=True``, no owner)."""
    id: Union[int, str]
    start: TimeOfDay
    duration_minutes: int
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    owner_id: Optional[int] = None
    blocked: bool = False

    @property
    def end(self) -> TimeOfDay:
        return self.start + self.duration_minutes


@dataclass(frozen=True)
class AvailabilityQuery:
    date: date
    owner_id: int
    requested_duration_minutes: int


@dataclass(frozen=True)
class SlotAvailability:
    slot: Slot
    bookable: bool

    @property
    def time(self) -> str:
        return self.slot.time


@dataclass(frozen=True)
class AvailabilityResult:
    """Every business-hours slot of the day in ascending order, bookable or not."""
    query: AvailabilityQuery
    business_hours: BusinessHours
    entries: Tuple[SlotAvailability, ...] = field(default_factory=tuple)
    granularity_minutes: int = config.SLOT_GRANULARITY_MINUTES

    def __iter__(self) -> Iterator[SlotAvailability]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def bookable_times(self) -> list[str]:
        return [entry.time for entry in self.entries if entry.bookable]
