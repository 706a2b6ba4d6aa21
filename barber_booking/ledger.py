# barber_booking/ledger.py
"""Authoritative record of slot occupancy per barber per date.

Every write to a DayAvailability's slots goes through ``SlotLedger``. Two
guards keep concurrent writers from double-booking:

* a re-entrant lock per (barber_id, date), held by callers from the
  availability check until their transaction commits, and
* a ``version`` column; writes are conditional updates on the version
  that was read, so a writer in another process that got there first
  turns into ``ConcurrentClaimConflict`` instead of a lost update.
"""

import logging
import threading
from contextlib import ExitStack, contextmanager
from datetime import date, timedelta
from typing import Dict, Hashable, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from .config import SLOT_WIDTH
from .core import (
    find_slot_index,
    generate_day_slots,
    get_slots_to_book,
    has_consecutive_slots,
)
from .errors import (
    ConcurrentClaimConflict,
    NoAvailabilityError,
    RegenerationConflict,
    SlotNotFoundError,
    SlotRangeError,
    SlotUnavailableError,
)
from .models import Barber, DayAvailability
from .schemas import Slot, WorkingHoursConfig
from .timeutils import calendar_day, normalize_time

logger = logging.getLogger(__name__)


class KeyedLocks:
    """Re-entrant locks created on demand and dropped once nobody uses them."""

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def working_hours_for(barber: Barber) -> WorkingHoursConfig:
    return WorkingHoursConfig.model_validate(barber.working_hours or {})


def load_slots(day: DayAvailability) -> List[Slot]:
    return [Slot.model_validate(raw) for raw in day.slots]


class SlotLedger:
    def __init__(self, slot_width: int = SLOT_WIDTH):
        self.slot_width = slot_width
        self._locks = KeyedLocks()

    @contextmanager
    def locked(self, barber_id: int, on_date):
        with self._locks.hold((barber_id, calendar_day(on_date))):
            yield

    def get_day(self, session: Session, barber_id: int, on_date) -> Optional[DayAvailability]:
        stmt = (
            select(DayAvailability)
            .where(DayAvailability.barber_id == barber_id)
            .where(DayAvailability.date == calendar_day(on_date))
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def write_slots(self, session: Session, day: DayAvailability, slots: List[Slot]) -> None:
        table = DayAvailability.__table__
        stmt = (
            update(table)
            .where(table.c.id == day.id)
            .where(table.c.version == day.version)
            .values(slots=[slot.model_dump() for slot in slots], version=day.version + 1)
        )
        result = session.connection().execute(stmt)
        if result.rowcount != 1:
            logger.warning(
                f"Version conflict writing slots for barber {day.barber_id} on {day.date} "
                f"(read version {day.version})"
            )
            raise ConcurrentClaimConflict(day.barber_id, day.date)
        session.expire(day)

    def claim_slots(
        self,
        session: Session,
        barber_id: int,
        on_date,
        start_time: str,
        duration: int,
        booking_id: int,
    ) -> List[str]:
        """Mark the run starting at ``start_time`` as booked by ``booking_id``.

        Flushes the change into the session's transaction; the caller
        commits (or rolls back) together with the booking itself.
        """
        on_date = calendar_day(on_date)
        start_time = normalize_time(start_time)
        with self.locked(barber_id, on_date):
            day = self.get_day(session, barber_id, on_date)
            if day is None:
                raise NoAvailabilityError(barber_id, on_date)

            slots = load_slots(day)
            try:
                free = has_consecutive_slots(slots, start_time, duration, self.slot_width)
            except SlotNotFoundError:
                free = False
            if not free:
                raise SlotUnavailableError(duration, start_time)

            times = get_slots_to_book(slots, start_time, duration, self.slot_width)
            index = find_slot_index(slots, start_time)
            for slot in slots[index:index + len(times)]:
                slot.is_booked = True
                slot.booking_id = booking_id

            self.write_slots(session, day, slots)
            logger.info(
                f"Booking {booking_id} claimed {len(times)} slots from {start_time} "
                f"for barber {barber_id} on {on_date}"
            )
            return times

    def release_slots(
        self,
        session: Session,
        barber_id: int,
        on_date,
        start_time: str,
        duration: int,
        booking_id: int,
    ) -> List[str]:
        """Free the run starting at ``start_time``, but only slots still held by ``booking_id``."""
        on_date = calendar_day(on_date)
        with self.locked(barber_id, on_date):
            day = self.get_day(session, barber_id, on_date)
            if day is None:
                logger.warning(f"No availability for barber {barber_id} on {on_date}; nothing to release")
                return []

            slots = load_slots(day)
            try:
                times = get_slots_to_book(slots, start_time, duration, self.slot_width)
                index = find_slot_index(slots, start_time)
            except (SlotNotFoundError, SlotRangeError) as exc:
                logger.warning(f"Cannot locate slots of booking {booking_id}: {exc}")
                return []

            released = []
            for slot in slots[index:index + len(times)]:
                if slot.booking_id is not None and slot.booking_id == booking_id:
                    slot.is_booked = False
                    slot.booking_id = None
                    released.append(slot.time)

            if released:
                self.write_slots(session, day, slots)
            logger.info(f"Booking {booking_id} released {len(released)} slots on {on_date}")
            return released

    def regenerate(self, session: Session, barber: Barber, days: int, today: Optional[date] = None) -> dict:
        """Rebuild the barber's availability for ``days`` days from ``today``.

        Past dates are left alone. Future claims are carried over onto the
        regenerated slots; if the new working hours no longer contain a
        claimed slot, nothing is changed and RegenerationConflict is raised.
        Commits on success.
        """
        today = calendar_day(today or date.today())
        config = working_hours_for(barber)
        window = [today + timedelta(days=i) for i in range(days)]

        existing_dates = session.exec(
            select(DayAvailability.date)
            .where(DayAvailability.barber_id == barber.id)
            .where(DayAvailability.date >= today)
        ).all()
        # fixed order so two regenerations never deadlock
        keys = sorted(set(existing_dates) | set(window))

        with ExitStack() as stack:
            for key in keys:
                stack.enter_context(self.locked(barber.id, key))

            existing = session.exec(
                select(DayAvailability)
                .where(DayAvailability.barber_id == barber.id)
                .where(DayAvailability.date >= today)
                .execution_options(populate_existing=True)
            ).all()

            generated = {}
            for on_date in window:
                slots = generate_day_slots(config, on_date, self.slot_width)
                if slots:
                    generated[on_date] = slots

            for day in existing:
                booked = [slot for slot in load_slots(day) if slot.is_booked]
                if not booked:
                    continue
                by_time = {slot.time: slot for slot in generated.get(day.date, [])}
                missing = [slot.time for slot in booked if slot.time not in by_time]
                if missing:
                    raise RegenerationConflict(day.date, missing)
                for slot in booked:
                    by_time[slot.time].is_booked = True
                    by_time[slot.time].booking_id = slot.booking_id

            for day in existing:
                session.delete(day)
            session.flush()

            for on_date, slots in generated.items():
                session.add(
                    DayAvailability(
                        barber_id=barber.id,
                        date=on_date,
                        slots=[slot.model_dump() for slot in slots],
                    )
                )
            session.commit()

        slots_created = sum(len(slots) for slots in generated.values())
        logger.info(
            f"Regenerated {days} days of availability for barber {barber.id} "
            f"({len(generated)} working days, {slots_created} slots)"
        )
        return {"days_generated": days, "slots_created": slots_created}
