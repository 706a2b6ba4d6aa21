# barber_booking/routers/bookings_routes.py

from typing import Optional, List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barber_booking.bookings import (
    cancel_booking,
    create_booking,
    get_booking,
    list_bookings,
    update_booking_status,
)
from barber_booking.db import get_ledger, get_session
from barber_booking.deps import http_error
from barber_booking.errors import SchedulingError
from barber_booking.ledger import SlotLedger
from barber_booking.schemas import (
    BookingCreate,
    BookingPublic,
    BookingStatus,
    BookingStatusUpdate,
)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post("", response_model=BookingPublic, status_code=201)
def create(
    booking: BookingCreate,
    session: Session = Depends(get_session),
    ledger: SlotLedger = Depends(get_ledger),
):
    try:
        return create_booking(session, ledger, booking)
    except SchedulingError as exc:
        raise http_error(exc)


@router.get("", response_model=List[BookingPublic])
def list_all(
    status: Optional[BookingStatus] = None,
    barber_id: Optional[int] = None,
    client_email: Optional[str] = None,
    session: Session = Depends(get_session),
):
    return list_bookings(
        session,
        status=status.value if status is not None else None,
        barber_id=barber_id,
        client_email=client_email,
    )


@router.get("/{booking_id}", response_model=BookingPublic)
def read(
    booking_id: int,
    session: Session = Depends(get_session),
):
    try:
        return get_booking(session, booking_id)
    except SchedulingError as exc:
        raise http_error(exc)


@router.patch("/{booking_id}/status", response_model=BookingPublic)
def change_status(
    booking_id: int,
    body: BookingStatusUpdate,
    session: Session = Depends(get_session),
    ledger: SlotLedger = Depends(get_ledger),
):
    try:
        return update_booking_status(session, ledger, booking_id, body.status)
    except SchedulingError as exc:
        raise http_error(exc)


@router.patch("/{booking_id}/cancel", response_model=BookingPublic)
def cancel(
    booking_id: int,
    session: Session = Depends(get_session),
    ledger: SlotLedger = Depends(get_ledger),
):
    try:
        return cancel_booking(session, ledger, booking_id)
    except SchedulingError as exc:
        raise http_error(exc)
