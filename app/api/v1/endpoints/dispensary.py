# app/api/v1/endpoints/dispensary.py
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
from app.schemas.dispense import (
    DispenseCreate,
    DispenseResponse,
    DispenseStats,
    DispenseUpdate,
    PaymentCreate,
)
from app.services import dispense_service
from app.utils.datetime_utils import clinic_today

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/dispenses", response_model=list[DispenseResponse])
def list_dispenses(
    patient_id: Optional[UUID] = Query(None),
    day: Optional[date] = Query(None, alias="date", description="Appointment day, used together with token"),
    token: Optional[int] = Query(None, ge=1),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
) -> list[DispenseResponse]:
    """
    Dispense records by patient, by appointment day + token, or by creation date range.
    """
    by_token = day is not None and token is not None
    if patient_id is None and not by_token and start_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide patient_id, (date and token), or start_date",
        )

    dispenses = dispense_service.list_dispenses(
        db,
        patient_id=patient_id,
        day=day if by_token else None,
        token=token if by_token else None,
        start=start_date,
        end=end_date,
    )
    return [DispenseResponse.model_validate(d) for d in dispenses]


@router.get("/stats", response_model=DispenseStats)
def get_stats(
    start_date: Optional[date] = Query(None, description="Defaults to today"),
    end_date: Optional[date] = Query(None, description="Defaults to start_date"),
    db: Session = Depends(get_db),
) -> DispenseStats:
    start = start_date or clinic_today()
    return DispenseStats(**dispense_service.dispense_stats(db, start, end_date))


@router.get("/dispenses/{dispense_id}", response_model=DispenseResponse)
def get_dispense(
    dispense_id: UUID,
    db: Session = Depends(get_db),
) -> DispenseResponse:
    try:
        dispense = dispense_service.get_dispense(db, dispense_id)
    except ClinicError as exc:
        raise to_http(exc) from exc
    return DispenseResponse.model_validate(dispense)


@router.post(
    "/dispenses",
    response_model=DispenseResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_dispense(
    payload: DispenseCreate,
    db: Session = Depends(get_db),
) -> DispenseResponse:
    """
    Create a dispense record (by appointment date + token, or by patient_id).
    Stock is consumed for catalog items; the bill number is assigned on first payment.
    """
    try:
        dispense = dispense_service.create_dispense(db, payload)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to create dispense")
        raise HTTPException(status_code=500, detail="Failed to create dispense.")

    return DispenseResponse.model_validate(dispense)


@router.put("/dispenses/{dispense_id}", response_model=DispenseResponse)
def update_dispense(
    dispense_id: UUID,
    payload: DispenseUpdate,
    db: Session = Depends(get_db),
) -> DispenseResponse:
    try:
        dispense = dispense_service.update_dispense(db, dispense_id, payload)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to update dispense id=%s", dispense_id)
        raise HTTPException(status_code=500, detail="Failed to update dispense.")

    return DispenseResponse.model_validate(dispense)


@router.post("/dispenses/{dispense_id}/cancel", response_model=DispenseResponse)
def cancel_dispense(
    dispense_id: UUID,
    db: Session = Depends(get_db),
) -> DispenseResponse:
    try:
        dispense = dispense_service.cancel_dispense(db, dispense_id)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to cancel dispense id=%s", dispense_id)
        raise HTTPException(status_code=500, detail="Failed to cancel dispense.")

    return DispenseResponse.model_validate(dispense)


@router.post("/dispenses/{dispense_id}/pay", response_model=DispenseResponse)
def pay_dispense(
    dispense_id: UUID,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
) -> DispenseResponse:
    try:
        dispense = dispense_service.collect_payment(db, dispense_id, payload.amount)
    except ClinicError as exc:
        raise to_http(exc) from exc
    except SQLAlchemyError:
        logger.exception("Failed to record payment dispense=%s", dispense_id)
        raise HTTPException(status_code=500, detail="Failed to record payment.")

    return DispenseResponse.model_validate(dispense)
