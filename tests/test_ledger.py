# tests/test_ledger.py

import copy
from datetime import timedelta

import pytest
from sqlmodel import Session, select

from barber_booking.errors import (
    ConcurrentClaimConflict,
    NoAvailabilityError,
    RegenerationConflict,
    SlotUnavailableError,
)
from barber_booking.ledger import KeyedLocks, load_slots
from barber_booking.models import DayAvailability
from barber_booking.schemas import Slot, WorkingHoursConfig

from .conftest import MONDAY, SUNDAY, TUESDAY, seed_barber


def booked_times(day):
    return [slot.time for slot in load_slots(day) if slot.is_booked]


def test_regenerate_builds_working_days_only(session, ledger, barber):
    summary = ledger.regenerate(session, barber, 7, today=MONDAY)

    assert summary == {"days_generated": 7, "slots_created": 6 * 36}
    days = session.exec(select(DayAvailability).order_by(DayAvailability.date)).all()
    assert [day.date for day in days] == [MONDAY + timedelta(days=i) for i in range(6)]
    assert ledger.get_day(session, barber.id, MONDAY + timedelta(days=6)) is None
    assert len(ledger.get_day(session, barber.id, MONDAY).slots) == 36


def test_regenerate_keeps_past_days(session, ledger, barber):
    past = MONDAY - timedelta(days=2)
    history = [Slot(time="09:00", is_booked=True, booking_id=7).model_dump()]
    session.add(DayAvailability(barber_id=barber.id, date=past, slots=history))
    session.commit()

    ledger.regenerate(session, barber, 7, today=MONDAY)
    ledger.regenerate(session, barber, 7, today=MONDAY)

    kept = ledger.get_day(session, barber.id, past)
    assert kept.slots == history
    rows = session.exec(select(DayAvailability).where(DayAvailability.date == MONDAY)).all()
    assert len(rows) == 1


def test_regenerate_carries_claims_over(session, ledger, barber, week):
    ledger.claim_slots(session, barber.id, TUESDAY, "10:00", 30, booking_id=11)
    session.commit()

    ledger.regenerate(session, barber, 7, today=MONDAY)

    day = ledger.get_day(session, barber.id, TUESDAY)
    assert booked_times(day) == ["10:00", "10:15"]
    assert {slot.booking_id for slot in load_slots(day) if slot.is_booked} == {11}


def test_regenerate_refuses_to_drop_claims(session, ledger, barber, week):
    ledger.claim_slots(session, barber.id, TUESDAY, "17:00", 30, booking_id=12)
    session.commit()

    barber.working_hours = WorkingHoursConfig(default_start="09:00", default_end="12:00").model_dump()
    session.add(barber)
    session.commit()

    with pytest.raises(RegenerationConflict) as excinfo:
        ledger.regenerate(session, barber, 7, today=MONDAY)
    assert excinfo.value.times == ["17:00", "17:15"]

    session.rollback()
    day = ledger.get_day(session, barber.id, TUESDAY)
    assert len(day.slots) == 36
    assert booked_times(day) == ["17:00", "17:15"]


def test_claim_marks_run_and_bumps_version(session, ledger, barber, week):
    claimed = ledger.claim_slots(session, barber.id, MONDAY, "10:00", 50, booking_id=1)
    session.commit()

    assert claimed == ["10:00", "10:15", "10:30", "10:45"]
    day = ledger.get_day(session, barber.id, MONDAY)
    assert booked_times(day) == claimed
    assert day.version == 2


def test_claim_without_availability(session, ledger, barber, week):
    with pytest.raises(NoAvailabilityError):
        ledger.claim_slots(session, barber.id, SUNDAY, "10:00", 30, booking_id=1)


def test_claim_rejects_booked_or_unknown_slots(session, ledger, barber, week):
    ledger.claim_slots(session, barber.id, MONDAY, "10:00", 30, booking_id=1)
    session.commit()

    with pytest.raises(SlotUnavailableError) as excinfo:
        ledger.claim_slots(session, barber.id, MONDAY, "09:45", 30, booking_id=2)
    assert excinfo.value.duration == 30
    assert excinfo.value.start_time == "09:45"

    with pytest.raises(SlotUnavailableError):
        ledger.claim_slots(session, barber.id, MONDAY, "09:07", 15, booking_id=2)
    with pytest.raises(SlotUnavailableError):
        ledger.claim_slots(session, barber.id, MONDAY, "17:45", 30, booking_id=2)


def test_claim_then_release_restores_slots(session, ledger, barber, week):
    before = copy.deepcopy(ledger.get_day(session, barber.id, MONDAY).slots)

    ledger.claim_slots(session, barber.id, MONDAY, "10:00", 50, booking_id=5)
    session.commit()
    released = ledger.release_slots(session, barber.id, MONDAY, "10:00", 50, booking_id=5)
    session.commit()

    assert released == ["10:00", "10:15", "10:30", "10:45"]
    assert ledger.get_day(session, barber.id, MONDAY).slots == before


def test_release_checks_ownership(session, ledger, barber, week):
    ledger.claim_slots(session, barber.id, MONDAY, "10:00", 50, booking_id=5)
    session.commit()
    before = copy.deepcopy(ledger.get_day(session, barber.id, MONDAY).slots)

    released = ledger.release_slots(session, barber.id, MONDAY, "10:00", 50, booking_id=6)
    session.commit()

    assert released == []
    assert ledger.get_day(session, barber.id, MONDAY).slots == before


def test_release_twice_is_idempotent(session, ledger, barber, week):
    ledger.claim_slots(session, barber.id, MONDAY, "10:00", 30, booking_id=5)
    session.commit()

    ledger.release_slots(session, barber.id, MONDAY, "10:00", 30, booking_id=5)
    session.commit()
    once = copy.deepcopy(ledger.get_day(session, barber.id, MONDAY).slots)
    assert ledger.release_slots(session, barber.id, MONDAY, "10:00", 30, booking_id=5) == []
    session.commit()

    assert ledger.get_day(session, barber.id, MONDAY).slots == once


def test_release_without_day_or_slot_is_a_noop(session, ledger, barber, week):
    assert ledger.release_slots(session, barber.id, SUNDAY, "10:00", 30, booking_id=5) == []
    assert ledger.release_slots(session, barber.id, MONDAY, "20:00", 30, booking_id=5) == []


def test_stale_write_raises_conflict(engine, session, ledger, barber, week):
    stale = ledger.get_day(session, barber.id, MONDAY)
    slots = load_slots(stale)

    with Session(engine) as other:
        ledger.claim_slots(other, barber.id, MONDAY, "10:00", 30, booking_id=8)
        other.commit()

    slots[0].is_booked = True
    slots[0].booking_id = 9
    with pytest.raises(ConcurrentClaimConflict):
        ledger.write_slots(session, stale, slots)
    session.rollback()

    day = ledger.get_day(session, barber.id, MONDAY)
    assert booked_times(day) == ["10:00", "10:15"]


def test_locks_are_dropped_once_released(session, ledger, barber, week):
    ledger.claim_slots(session, barber.id, MONDAY, "10:00", 30, booking_id=1)
    session.commit()
    ledger.release_slots(session, barber.id, MONDAY, "10:00", 30, booking_id=1)
    session.commit()
    ledger.regenerate(session, barber, 7, today=MONDAY)

    assert len(ledger._locks) == 0


def test_keyed_locks_are_reentrant():
    locks = KeyedLocks()
    with locks.hold(("a", 1)):
        with locks.hold(("a", 1)):
            assert len(locks) == 1
        with locks.hold(("b", 1)):
            assert len(locks) == 2
        assert len(locks) == 1
    assert len(locks) == 0


def test_claim_does_not_cross_the_break_between_shifts(session, ledger):
    barber = seed_barber(
        session,
        working_days=[1],
        daily_schedule=[
            {"day_of_week": 1, "shifts": [{"start": "09:00", "end": "12:00"}, {"start": "13:00", "end": "17:00"}]}
        ],
    )
    ledger.regenerate(session, barber, 1, today=MONDAY)

    with pytest.raises(SlotUnavailableError):
        ledger.claim_slots(session, barber.id, MONDAY, "11:45", 30, booking_id=1)
    session.rollback()

    assert booked_times(ledger.get_day(session, barber.id, MONDAY)) == []
    assert ledger.claim_slots(session, barber.id, MONDAY, "11:30", 30, booking_id=2) == ["11:30", "11:45"]
