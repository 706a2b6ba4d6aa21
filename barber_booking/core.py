# barber_booking/core.py
"""Slot generation and availability search over a day's slot list.

Everything here is pure: functions take slots and configuration as
arguments and never touch the database. Slot lists are ordered the way
they were generated (shift order, ascending within a shift).
"""

import math
from datetime import date
from typing import Iterable, List, Sequence

from .config import SLOT_WIDTH
from .errors import SlotNotFoundError, SlotRangeError
from .schemas import ServiceItem, Slot, WorkingHoursConfig
from .timeutils import day_of_week, minutes_to_time, time_to_minutes


def slots_needed(duration: int, slot_width: int = SLOT_WIDTH) -> int:
    if duration <= 0:
        raise ValueError(f"duration must be positive, got {duration}")
    return math.ceil(duration / slot_width)


def generate_slot_times(start: str, end: str, slot_width: int = SLOT_WIDTH) -> List[str]:
    # start inclusive, end exclusive
    times = []
    current = time_to_minutes(start)
    end_minutes = time_to_minutes(end)
    while current < end_minutes:
        times.append(minutes_to_time(current))
        current += slot_width
    return times


def generate_day_slots(
    config: WorkingHoursConfig, on_date: date, slot_width: int = SLOT_WIDTH
) -> List[Slot]:
    weekday = day_of_week(on_date)
    if config.working_days and weekday not in config.working_days:
        return []

    shifts = config.shifts_for(weekday)
    times: List[str] = []
    if shifts:
        for shift in shifts:
            times.extend(generate_slot_times(shift.start, shift.end, slot_width))
    else:
        times = generate_slot_times(config.default_start, config.default_end, slot_width)

    return [Slot(time=t) for t in times]


def find_slot_index(slots: Sequence[Slot], start_time: str) -> int:
    for index, slot in enumerate(slots):
        if slot.time == start_time:
            return index
    raise SlotNotFoundError(start_time)


def _run_is_contiguous(slots: Sequence[Slot], start: int, count: int, slot_width: int) -> bool:
    # a run may not jump the gap between two shifts
    first = time_to_minutes(slots[start].time)
    for offset in range(1, count):
        if time_to_minutes(slots[start + offset].time) != first + offset * slot_width:
            return False
    return True


def _run_is_free(slots: Sequence[Slot], start: int, count: int, slot_width: int) -> bool:
    for offset in range(count):
        if slots[start + offset].is_booked:
            return False
    return _run_is_contiguous(slots, start, count, slot_width)


def has_consecutive_slots(
    slots: Sequence[Slot], start_time: str, duration: int, slot_width: int = SLOT_WIDTH
) -> bool:
    """True when ``duration`` minutes of free slots run from ``start_time``.

    The slots must follow one another without a gap, so a run never
    spans the break between two shifts.

    Raises SlotNotFoundError if no slot starts at ``start_time``.
    """
    needed = slots_needed(duration, slot_width)
    index = find_slot_index(slots, start_time)
    if index + needed > len(slots):
        return False
    return _run_is_free(slots, index, needed, slot_width)


def get_available_start_slots(
    slots: Sequence[Slot], duration: int, slot_width: int = SLOT_WIDTH
) -> List[Slot]:
    # a free slot only counts as a start when the whole run behind it is free
    needed = slots_needed(duration, slot_width)
    return [
        slots[i]
        for i in range(len(slots) - needed + 1)
        if _run_is_free(slots, i, needed, slot_width)
    ]


def _contiguous_length(slots: Sequence[Slot], start: int, slot_width: int) -> int:
    first = time_to_minutes(slots[start].time)
    length = 1
    while start + length < len(slots) and time_to_minutes(slots[start + length].time) == first + length * slot_width:
        length += 1
    return length


def get_slots_to_book(
    slots: Sequence[Slot], start_time: str, duration: int, slot_width: int = SLOT_WIDTH
) -> List[str]:
    needed = slots_needed(duration, slot_width)
    index = find_slot_index(slots, start_time)
    if index + needed > len(slots):
        raise SlotRangeError(start_time, needed, len(slots) - index)
    if not _run_is_contiguous(slots, index, needed, slot_width):
        raise SlotRangeError(start_time, needed, _contiguous_length(slots, index, slot_width))
    return [slot.time for slot in slots[index:index + needed]]


def calculate_total_duration(services: Iterable[ServiceItem]) -> int:
    return sum(service.duration for service in services)
