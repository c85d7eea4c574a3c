# app/api/v1/endpoints/medicines.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.medicine import MedicineEnsure, MedicineResponse
from app.services.medicine_service import ensure_medicine, list_medicines

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[MedicineResponse])
def list_medicines_endpoint(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
) -> list[MedicineResponse]:
    return [MedicineResponse.model_validate(m) for m in list_medicines(db, include_inactive=include_inactive)]


@router.post("", response_model=MedicineResponse)
def ensure_medicine_endpoint(
    payload: MedicineEnsure,
    response: Response,
    db: Session = Depends(get_db),
) -> MedicineResponse:
    """
    Ensure a master record exists for (name, strength, form).

    201 when it was created, 200 when it already existed (left unchanged).
    """
    try:
        medicine, created = ensure_medicine(db, payload)
    except SQLAlchemyError:
        logger.exception("Failed to ensure medicine name=%s", payload.name)
        raise HTTPException(status_code=500, detail="Failed to save medicine.")

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return MedicineResponse.model_validate(medicine)
