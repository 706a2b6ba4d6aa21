# barber_booking/availability.py

import logging
from datetime import date
from typing import Optional

from pydantic import ValidationError
from sqlmodel import Session

from .config import AVAILABILITY_DAYS
from .core import get_available_start_slots
from .errors import FormatError, NotFoundError
from .ledger import SlotLedger, load_slots, working_hours_for
from .models import Barber
from .schemas import SlotPublic, WorkingHoursConfig
from .timeutils import calendar_day, to_12_hour

logger = logging.getLogger(__name__)


def get_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise NotFoundError("Barber", barber_id)
    return barber


def get_working_hours(session: Session, barber_id: int) -> WorkingHoursConfig:
    return working_hours_for(get_barber(session, barber_id))


def update_working_hours(session: Session, barber_id: int, config: WorkingHoursConfig) -> WorkingHoursConfig:
    # takes effect for dates generated after this call; existing slots stay
    barber = get_barber(session, barber_id)
    # fields left out of the request keep their stored values
    merged = {**(barber.working_hours or {}), **config.model_dump(exclude_unset=True)}
    try:
        updated = WorkingHoursConfig.model_validate(merged)
    except ValidationError as exc:
        raise FormatError(f"Invalid working hours: {exc}")
    barber.working_hours = updated.model_dump()
    session.add(barber)
    session.commit()
    session.refresh(barber)
    logger.info(f"Updated working hours for barber {barber_id}")
    return working_hours_for(barber)


def generate_availability(
    session: Session,
    ledger: SlotLedger,
    barber_id: int,
    days: int = AVAILABILITY_DAYS,
    today: Optional[date] = None,
) -> dict:
    barber = get_barber(session, barber_id)
    summary = ledger.regenerate(session, barber, days, today=today)
    return {"barber_id": barber_id, **summary}


def get_available_slots(
    session: Session,
    ledger: SlotLedger,
    barber_id: int,
    on_date,
    duration: int,
) -> dict:
    get_barber(session, barber_id)
    on_date = calendar_day(on_date)
    result = {
        "barber_id": barber_id,
        "date": on_date,
        "service_duration": duration,
        "total_slots": 0,
        "booked_slots": 0,
        "available_start_slots": 0,
        "slots": [],
    }

    day = ledger.get_day(session, barber_id, on_date)
    if day is None:
        result["message"] = "No availability for this date"
        return result

    slots = load_slots(day)
    starts = get_available_start_slots(slots, duration, ledger.slot_width)
    result.update(
        total_slots=len(slots),
        booked_slots=sum(1 for slot in slots if slot.is_booked),
        available_start_slots=len(starts),
        slots=[
            SlotPublic(**slot.model_dump(), display_time=to_12_hour(slot.time))
            for slot in starts
        ],
    )
    return result
