# barber_booking/deps.py

from fastapi import HTTPException

from .errors import (
    ConcurrentClaimConflict,
    FormatError,
    InvalidStatusTransition,
    NoAvailabilityError,
    NotFoundError,
    RegenerationConflict,
    SchedulingError,
    SlotUnavailableError,
)

STATUS_CODES = {
    NotFoundError: 404,
    FormatError: 422,
    NoAvailabilityError: 400,
    SlotUnavailableError: 409,
    ConcurrentClaimConflict: 409,
    RegenerationConflict: 409,
    InvalidStatusTransition: 409,
}


def http_error(exc: SchedulingError) -> HTTPException:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
