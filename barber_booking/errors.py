# barber_booking/errors.py

from typing import Optional


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class FormatError(SchedulingError, ValueError):
    """A time string could not be parsed, or a time fell outside one day."""


class SlotNotFoundError(SchedulingError, LookupError):
    def __init__(self, start_time: str):
        self.start_time = start_time
        super().__init__(f"No slot starts at {start_time}")


class SlotRangeError(SchedulingError):
    """A slot run was requested that extends past the last slot of the day
    or across the gap between two shifts.

    Callers are expected to validate with ``has_consecutive_slots`` first,
    so reaching this is a logic error rather than a user-facing condition.
    """

    def __init__(self, start_time: str, slots_needed: int, available: int):
        self.start_time = start_time
        self.slots_needed = slots_needed
        self.available = available
        super().__init__(
            f"{slots_needed} slots needed from {start_time} but only {available} remain"
        )


class NoAvailabilityError(SchedulingError):
    def __init__(self, barber_id, on_date):
        self.barber_id = barber_id
        self.on_date = on_date
        super().__init__(f"No availability found for barber {barber_id} on {on_date}")


class SlotUnavailableError(SchedulingError):
    def __init__(self, duration: int, start_time: str):
        self.duration = duration
        self.start_time = start_time
        super().__init__(
            f"No consecutive slots available for {duration} minutes starting at {start_time}"
        )


class ConcurrentClaimConflict(SchedulingError):
    """The slots changed between the availability check and the write."""

    def __init__(self, barber_id, on_date):
        self.barber_id = barber_id
        self.on_date = on_date
        super().__init__(f"Slots for barber {barber_id} on {on_date} were modified concurrently")


class NotFoundError(SchedulingError, LookupError):
    def __init__(self, entity: str, entity_id: Optional[object] = None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{entity} not found")
        else:
            super().__init__(f"{entity} {entity_id} not found")


class RegenerationConflict(SchedulingError):
    def __init__(self, on_date, times):
        self.on_date = on_date
        self.times = list(times)
        super().__init__(
            f"Regenerating {on_date} would drop booked slots: {', '.join(self.times)}"
        )


class InvalidStatusTransition(SchedulingError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change booking status from {current} to {requested}")
