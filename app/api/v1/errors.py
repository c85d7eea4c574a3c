# app/api/v1/errors.py
from fastapi import HTTPException, status

from app.core.exceptions import (
    ClinicError,
    InvalidStateTransition,
    NotFoundError,
    SlotConflict,
    TokenAllocationFailed,
)

_STATUS_BY_ERROR: dict[type, int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    SlotConflict: status.HTTP_409_CONFLICT,
    TokenAllocationFailed: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvalidStateTransition: status.HTTP_400_BAD_REQUEST,
}


def to_http(exc: ClinicError) -> HTTPException:
    """Map a domain error onto the HTTP status the API reports for it."""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
