"""Scheduling error taxonomy.

``InvalidDuration`` and ``InvalidAppointmentData`` come out of the pure
availability code; ``SlotNoLongerAvailable`` and ``StorageUnavailable`` are
the only failures a booking commit can surface to its caller.
"""

from datetime import date


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling package."""


class InvalidDuration(SchedulingError, ValueError):
    def __init__(self, duration_minutes: int):
        self.duration_minutes = duration_minutes
        super().__init__(f'Appointment duration must be positive, got {duration_minutes} minutes.')


class InvalidAppointmentData(SchedulingError):
    def __init__(self, record_id, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f'Appointment {record_id!r} is malformed: {reason}')


class SlotNoLongerAvailable(SchedulingError):
    def __init__(self, owner_id: int, day: date, start: int, duration_minutes: int):
        self.owner_id = owner_id
        self.day = day
        self.start = start
        self.duration_minutes = duration_minutes
        super().__init__(
            f'Owner {owner_id} has no room for {duration_minutes} minutes '
            f'at minute {start} on {day.isoformat()}.'
        )


class StorageUnavailable(SchedulingError):
    """The appointment store could not be reached; nothing was written."""


class OwnerNotFound(SchedulingError, LookupError):
    def __init__(self, owner_id: int):
        self.owner_id = owner_id
        super().__init__(f'Owner {owner_id} not found.')


class AppointmentTypeNotFound(SchedulingError, LookupError):
    def __init__(self, appointment_type_id: int):
        self.appointment_type_id = appointment_type_id
        super().__init__(f'Appointment type {appointment_type_id} not found.')


class AppointmentNotFound(SchedulingError, LookupError):
    def __init__(self, appointment_id: int):
        self.appointment_id = appointment_id
        super().__init__(f'Appointment {appointment_id} not found.')
