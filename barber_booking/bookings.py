# barber_booking/bookings.py
"""Booking creation, cancellation and status changes.

A booking and the slots it claims are written in one transaction: the
booking row is flushed to get its id, the ledger claims the slots under
that id, and both are committed together. Losing a claim race rolls back
both and the whole check is repeated a bounded number of times.
"""

import logging
from typing import Callable, List, Optional

from sqlmodel import Session, col, select

from .availability import get_barber
from .config import CLAIM_RETRIES
from .core import calculate_total_duration, has_consecutive_slots
from .errors import (
    ConcurrentClaimConflict,
    FormatError,
    InvalidStatusTransition,
    NoAvailabilityError,
    NotFoundError,
    SchedulingError,
    SlotNotFoundError,
    SlotUnavailableError,
)
from .ledger import SlotLedger, load_slots
from .models import Booking, Service
from .schemas import BookingCreate, BookingStatus
from .timeutils import add_minutes, calendar_day, normalize_time

logger = logging.getLogger(__name__)


def _with_retries(session: Session, action: Callable[[], Booking], max_retries: int) -> Booking:
    attempt = 0
    while True:
        try:
            return action()
        except ConcurrentClaimConflict as exc:
            session.rollback()
            if attempt >= max_retries:
                logger.warning(f"Giving up after {attempt + 1} attempts: {exc}")
                raise
            attempt += 1
            logger.info(f"Retrying after claim conflict ({attempt}/{max_retries}): {exc}")
        except SchedulingError:
            session.rollback()
            raise


def resolve_services(session: Session, service_ids: List[int]) -> List[Service]:
    # each service counts once, in the order requested
    wanted = list(dict.fromkeys(service_ids))
    rows = session.exec(select(Service).where(col(Service.id).in_(wanted))).all()
    by_id = {service.id: service for service in rows if service.is_active}
    for service_id in wanted:
        if service_id not in by_id:
            raise NotFoundError("Service", service_id)
    return [by_id[service_id] for service_id in wanted]


def create_booking(
    session: Session,
    ledger: SlotLedger,
    request: BookingCreate,
    max_retries: int = CLAIM_RETRIES,
) -> Booking:
    get_barber(session, request.barber_id)
    services = resolve_services(session, request.services)
    total_duration = calculate_total_duration(services)
    on_date = calendar_day(request.date)
    start_time = normalize_time(request.slot_time)
    if total_duration <= 0:
        # nothing to occupy; such services cannot be scheduled
        raise SlotUnavailableError(total_duration, request.slot_time)

    def attempt() -> Booking:
        with ledger.locked(request.barber_id, on_date):
            day = ledger.get_day(session, request.barber_id, on_date)
            if day is None:
                raise NoAvailabilityError(request.barber_id, on_date)

            try:
                free = has_consecutive_slots(load_slots(day), start_time, total_duration, ledger.slot_width)
            except SlotNotFoundError:
                free = False
            if not free:
                raise SlotUnavailableError(total_duration, request.slot_time)

            try:
                slot_end_time = add_minutes(start_time, total_duration)
            except FormatError:
                # would end past midnight
                raise SlotUnavailableError(total_duration, request.slot_time)

            booking = Booking(
                barber_id=request.barber_id,
                date=on_date,
                services=[service.id for service in services],
                slot_time=start_time,
                slot_end_time=slot_end_time,
                total_duration=total_duration,
                status=BookingStatus.pending.value,
                client_email=request.client_email,
            )
            session.add(booking)
            session.flush()  # fills booking.id

            ledger.claim_slots(session, request.barber_id, on_date, start_time, total_duration, booking.id)
            session.commit()

        session.refresh(booking)
        logger.info(
            f"Created booking {booking.id} for barber {booking.barber_id} on {booking.date} "
            f"{booking.slot_time}-{booking.slot_end_time}"
        )
        return booking

    return _with_retries(session, attempt, max_retries)


def get_booking(session: Session, booking_id: int) -> Booking:
    booking = session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking", booking_id)
    return booking


def list_bookings(
    session: Session,
    status: Optional[str] = None,
    barber_id: Optional[int] = None,
    client_email: Optional[str] = None,
) -> List[Booking]:
    stmt = select(Booking)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    if barber_id is not None:
        stmt = stmt.where(Booking.barber_id == barber_id)
    if client_email is not None:
        stmt = stmt.where(Booking.client_email == client_email)
    stmt = stmt.order_by(col(Booking.created_at).desc())
    return list(session.exec(stmt).all())


def cancel_booking(
    session: Session,
    ledger: SlotLedger,
    booking_id: int,
    max_retries: int = CLAIM_RETRIES,
) -> Booking:
    """Cancel a booking and free the slots it still holds.

    Cancelling an already cancelled booking succeeds without touching any
    slot: release only frees slots tagged with this booking's id.
    """

    def attempt() -> Booking:
        booking = get_booking(session, booking_id)
        with ledger.locked(booking.barber_id, booking.date):
            if booking.status == BookingStatus.cancelled.value:
                logger.info(f"Booking {booking_id} is already cancelled")
            booking.status = BookingStatus.cancelled.value
            session.add(booking)
            ledger.release_slots(
                session,
                booking.barber_id,
                booking.date,
                booking.slot_time,
                booking.total_duration,
                booking.id,
            )
            session.commit()
        session.refresh(booking)
        return booking

    return _with_retries(session, attempt, max_retries)


def update_booking_status(
    session: Session,
    ledger: SlotLedger,
    booking_id: int,
    status: BookingStatus,
) -> Booking:
    status = BookingStatus(status)
    if status == BookingStatus.cancelled:
        return cancel_booking(session, ledger, booking_id)

    booking = get_booking(session, booking_id)
    if booking.status == BookingStatus.cancelled.value:
        # its slots may already belong to someone else
        raise InvalidStatusTransition(booking.status, status.value)

    booking.status = status.value
    session.add(booking)
    session.commit()
    session.refresh(booking)
    logger.info(f"Booking {booking_id} is now {booking.status}")
    return booking
