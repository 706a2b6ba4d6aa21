# barber_booking/routers/barbers_routes.py

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from barber_booking.availability import (
    generate_availability,
    get_available_slots,
    get_working_hours,
    update_working_hours,
)
from barber_booking.db import get_ledger, get_session
from barber_booking.deps import http_error
from barber_booking.errors import SchedulingError
from barber_booking.ledger import SlotLedger
from barber_booking.schemas import (
    AvailabilityResponse,
    GenerateAvailabilityRequest,
    GenerateAvailabilityResponse,
    WorkingHoursConfig,
)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.put("/{barber_id}/working-hours", response_model=WorkingHoursConfig)
def put_working_hours(
    barber_id: int,
    config: WorkingHoursConfig,
    session: Session = Depends(get_session),
):
    try:
        return update_working_hours(session, barber_id, config)
    except SchedulingError as exc:
        raise http_error(exc)


@router.get("/{barber_id}/working-hours", response_model=WorkingHoursConfig)
def read_working_hours(
    barber_id: int,
    session: Session = Depends(get_session),
):
    try:
        return get_working_hours(session, barber_id)
    except SchedulingError as exc:
        raise http_error(exc)


@router.post("/{barber_id}/availability/generate", response_model=GenerateAvailabilityResponse)
def generate_barber_availability(
    barber_id: int,
    body: GenerateAvailabilityRequest = GenerateAvailabilityRequest(),
    session: Session = Depends(get_session),
    ledger: SlotLedger = Depends(get_ledger),
):
    try:
        return generate_availability(session, ledger, barber_id, body.days)
    except SchedulingError as exc:
        raise http_error(exc)


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: date,
    service_duration: int = Query(gt=0),
    session: Session = Depends(get_session),
    ledger: SlotLedger = Depends(get_ledger),
):
    if service_duration > 24 * 60:
        raise HTTPException(status_code=422, detail="service_duration cannot exceed one day")
    try:
        return get_available_slots(session, ledger, barber_id, date, service_duration)
    except SchedulingError as exc:
        raise http_error(exc)
