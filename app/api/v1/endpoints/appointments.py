# app/api/v1/endpoints/appointments.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.errors import to_http
from app.core.database import get_db
from app.core.exceptions import ClinicError
from app.models.appointment import AppointmentStatus
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    DoctorAvailabilityResponse,
    WorkingHours,
)
from app.services.appointment_service import (
    create_appointment,
    delete_appointment,
    get_appointment,
    list_appointments,
    update_appointment,
)
from app.services.availability_service import available_slots

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=AppointmentListResponse)
def list_appointments_endpoint(
    day: Optional[date] = Query(None, alias="date", description="Clinic day; results come back in token order"),
    doctor_id: Optional[UUID] = Query(None),
    patient_id: Optional[UUID] = Query(None),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> AppointmentListResponse:
    items, total = list_appointments(
        db,
        day=day,
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=status_filter,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return AppointmentListResponse(
        items=[AppointmentResponse.model_validate(a) for a in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/doctor/{doctor_id}/availability", response_model=DoctorAvailabilityResponse)
def doctor_availability_endpoint(
    doctor_id: UUID,
    day: date = Query(..., alias="date", description="Clinic day to list free slots for"),
    db: Session = Depends(get_db),
) -> DoctorAvailabilityResponse:
    """
    Free slots for a doctor on a day: working hours for that weekday minus the
    times held by scheduled/confirmed appointments.
    """
    try:
        result = available_slots(db, doctor_id, day)
    except ClinicError as exc:
        raise to_http(exc) from exc

    if not result.is_available:
        return DoctorAvailabilityResponse(is_available=False, message="Doctor is not available on this day")

    return DoctorAvailabilityResponse(
        is_available=True,
        available_slots=result.available_slots,
        working_hours=WorkingHours(start=result.start_time, end=result.end_time),
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment_endpoint(
    appointment_id: UUID,
    db: Session = Depends(get_db),
) -> AppointmentResponse:
    try:
        appointment = get_appointment(db, appointment_id)
    except ClinicError as exc:
        raise to_http(exc) from exc
    return AppointmentResponse.model_validate(appointment)


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_appointment_endpoint(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
) -> AppointmentResponse:
    """
    Book an appointment and assign its daily token.

    Rules:
    - Patient and doctor must exist (404).
    - Doctor must not hold a scheduled/confirmed appointment at the same date and time (409).
    - Sustained token contention surfaces as 503; the request can be resubmitted.
    """
    try:
        appointment = create_appointment(db, payload)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to create appointment")
        raise HTTPException(status_code=500, detail="Failed to create appointment.")

    return AppointmentResponse.model_validate(appointment)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment_endpoint(
    appointment_id: UUID,
    payload: AppointmentUpdate,
    db: Session = Depends(get_db),
) -> AppointmentResponse:
    try:
        appointment = update_appointment(db, appointment_id, payload)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to update appointment id=%s", appointment_id)
        raise HTTPException(status_code=500, detail="Failed to update appointment.")

    return AppointmentResponse.model_validate(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment_endpoint(
    appointment_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    try:
        delete_appointment(db, appointment_id)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to delete appointment id=%s", appointment_id)
        raise HTTPException(status_code=500, detail="Failed to delete appointment.")
