# app/services/medicine_service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.medicine import Medicine
from app.schemas.medicine import MedicineEnsure

logger = logging.getLogger(__name__)


def list_medicines(db: Session, *, include_inactive: bool = False) -> list[Medicine]:
    query = db.query(Medicine)
    if not include_inactive:
        query = query.filter(Medicine.is_active.is_(True))
    return query.order_by(Medicine.name.asc(), Medicine.strength.asc(), Medicine.form.asc()).all()


def _find_exact(db: Session, name: str, strength: str, form: str) -> Medicine | None:
    return (
        db.query(Medicine)
        .filter(
            Medicine.name == name,
            Medicine.strength == strength,
            Medicine.form == form,
        )
        .first()
    )


def ensure_medicine(db: Session, payload: MedicineEnsure) -> tuple[Medicine, bool]:
    """
    Idempotent "ensure master record" for (name, strength, form).

    Returns (medicine, created). Runs before the stock ledger, never inside it.
    A concurrent creator winning the unique constraint is resolved by re-reading.
    """
    existing = _find_exact(db, payload.name, payload.strength, payload.form)
    if existing:
        return existing, False

    medicine = Medicine(
        name=payload.name,
        strength=payload.strength,
        form=payload.form,
        salt=payload.salt,
        cost_price=payload.cost_price,
        selling_price=payload.selling_price,
        stock=payload.stock,
        min_stock=payload.min_stock,
        pending_pricing=payload.selling_price == 0,
    )

    try:
        db.add(medicine)
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_exact(db, payload.name, payload.strength, payload.form)
        if existing is None:
            raise
        logger.info("Medicine created concurrently name=%s strength=%s form=%s", payload.name, payload.strength, payload.form)
        return existing, False
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(medicine)
    return medicine, True
