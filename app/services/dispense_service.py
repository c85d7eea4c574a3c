# app/services/dispense_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy import case, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import InvalidStateTransition, NotFoundError
from app.models.appointment import Appointment, PaymentStatus
from app.models.dispense import Dispense, DispenseItem
from app.models.patient import Patient
from app.schemas.dispense import DispenseCreate, DispenseItemIn, DispenseUpdate
from app.services import stock_ledger
from app.services.events import DispenseCreated, publish
from app.services.payment_status import D, derive_payment_status, money2
from app.utils.datetime_utils import day_bounds, day_of, utc_now
from app.utils.id_generators import generate_bill_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerLine:
    """Detached copy of a bill line, safe to use after the ORM rows are replaced."""

    name: str
    quantity: int
    strength: str | None = None
    form: str | None = None


def _lines(items: Iterable) -> list[LedgerLine]:
    return [LedgerLine(it.name, int(it.quantity), it.strength, it.form) for it in items]


def compute_totals(items: Iterable, tax=0, discount=0) -> tuple[Decimal, Decimal]:
    """Return (subtotal, total) with total = max(0, subtotal + tax - discount)."""
    subtotal = sum((D(it.quantity) * D(it.unit_price) for it in items), Decimal("0"))
    total = max(Decimal("0"), subtotal + D(tax) - D(discount))
    return money2(subtotal), money2(total)


def _build_items(items: list[DispenseItemIn]) -> list[DispenseItem]:
    return [
        DispenseItem(
            position=position,
            name=it.name,
            quantity=it.quantity,
            unit_price=it.unit_price,
            strength=it.strength,
            form=it.form,
            duration=it.duration,
            notes=it.notes,
        )
        for position, it in enumerate(items)
    ]


def get_dispense(db: Session, dispense_id: UUID, *, lock: bool = False) -> Dispense:
    """
    Load a bill with its items.

    lock=True re-reads the row FOR UPDATE, overwriting whatever this session
    already holds for it.
    """
    query = db.query(Dispense).options(selectinload(Dispense.items)).filter(Dispense.id == dispense_id)
    if lock:
        query = query.populate_existing().with_for_update()

    dispense = query.first()
    if not dispense:
        raise NotFoundError("Dispense record not found")
    return dispense


def _claim_open(db: Session, dispense_id: UUID, message: str, **values) -> Dispense:
    """
    Conditionally write `values` to a bill that is not cancelled and return it locked.

    The status test and the write are a single UPDATE, so of two sessions racing
    on the same bill only one can see it open once the other has cancelled it.
    Raises NotFoundError or InvalidStateTransition(message) when nothing matched.
    """
    result = db.execute(
        update(Dispense)
        .where(Dispense.id == dispense_id, Dispense.payment_status != PaymentStatus.CANCELLED)
        .values(updated_at=utc_now(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        get_dispense(db, dispense_id)
        raise InvalidStateTransition(message)

    return get_dispense(db, dispense_id, lock=True)


def list_dispenses(
    db: Session,
    *,
    patient_id: UUID | None = None,
    day: date | None = None,
    token: int | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Dispense]:
    """
    Dispenses by patient, by appointment day + token, or by creation date range
    (inclusive clinic days). Newest first.
    """
    query = db.query(Dispense).options(selectinload(Dispense.items))

    if patient_id is not None:
        query = query.filter(Dispense.patient_id == patient_id)
    if day is not None and token is not None:
        query = query.filter(Dispense.appointment_day == day, Dispense.daily_token == token)
    if start is not None:
        range_start, _ = day_bounds(start)
        _, range_end = day_bounds(end or start)
        query = query.filter(Dispense.created_at >= range_start, Dispense.created_at < range_end)

    return query.order_by(Dispense.created_at.desc()).all()


def create_dispense(db: Session, payload: DispenseCreate) -> Dispense:
    """
    Create a bill and consume stock for its items.

    The patient comes from the appointment holding (date, token) when given,
    otherwise from patient_id. The bill starts pending with no bill number.
    """
    appointment: Appointment | None = None
    appointment_day: date | None = None
    daily_token: int | None = None

    if payload.date is not None and payload.token is not None:
        appointment_day = day_of(payload.date)
        daily_token = payload.token
        appointment = (
            db.query(Appointment)
            .filter(
                Appointment.appointment_day == appointment_day,
                Appointment.daily_token == daily_token,
            )
            .first()
        )
        if not appointment:
            raise NotFoundError("No appointment found for given token and date")
        patient_id = appointment.patient_id
        if not db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise NotFoundError("Patient not found from appointment")
    else:
        patient_id = payload.patient_id
        if not db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise NotFoundError("Patient not found")

    subtotal, total = compute_totals(payload.items, payload.tax, payload.discount)

    dispense = Dispense(
        patient_id=patient_id,
        appointment_id=appointment.id if appointment else None,
        appointment_day=appointment_day,
        daily_token=daily_token,
        items=_build_items(payload.items),
        subtotal=subtotal,
        tax=payload.tax,
        discount=payload.discount,
        total=total,
        payment_status=PaymentStatus.PENDING,
        paid_amount=Decimal("0"),
        bill_number=None,
        dispensed_by=payload.dispensed_by,
    )

    try:
        db.add(dispense)
        db.flush()
        stock_ledger.apply_delta(db, _lines(payload.items), stock_ledger.CONSUME)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Dispense created id=%s patient=%s total=%s", dispense.id, patient_id, total)

    dispense_id = dispense.id
    publish(db, DispenseCreated(dispense_id=dispense_id, appointment_id=dispense.appointment_id))

    return get_dispense(db, dispense_id)

def update_dispense(db: Session, dispense_id: UUID, payload: DispenseUpdate) -> Dispense:
    """
    Replace items and/or tax/discount on an open bill.

    Stock is reconciled revert-then-reapply and payment_status is re-derived from
    the existing paid_amount against the new total.
    """
    try:
        dispense = _claim_open(db, dispense_id, "Cannot update cancelled dispense")

        old_lines = _lines(dispense.items)
        new_items = payload.items
        new_lines = _lines(new_items) if new_items is not None else old_lines

        tax = payload.tax if payload.tax is not None else dispense.tax
        discount = payload.discount if payload.discount is not None else dispense.discount
        subtotal, total = compute_totals(new_items if new_items is not None else dispense.items, tax, discount)

        stock_ledger.reconcile(db, old_lines, new_lines)

        if new_items is not None:
            dispense.items = _build_items(new_items)
        dispense.tax = tax
        dispense.discount = discount
        dispense.subtotal = subtotal
        dispense.total = total
        dispense.payment_status = derive_payment_status(dispense.paid_amount, total)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Dispense updated id=%s total=%s status=%s", dispense_id, total, dispense.payment_status.value)
    return get_dispense(db, dispense_id)


def cancel_dispense(db: Session, dispense_id: UUID) -> Dispense:
    """
    Cancel an open bill and restore stock. paid_amount is kept as history.
    Re-cancelling is rejected, including by a concurrent session that loaded
    the bill while it was still open.
    """
    try:
        dispense = _claim_open(db, dispense_id, "Already cancelled", payment_status=PaymentStatus.CANCELLED)
        stock_ledger.apply_delta(db, _lines(dispense.items), stock_ledger.RESTORE)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Dispense cancelled id=%s", dispense_id)
    return get_dispense(db, dispense_id)


def collect_payment(db: Session, dispense_id: UUID, amount: Decimal) -> Dispense:
    """
    Record a payment. The first payment that moves the bill out of pending
    assigns its bill number; an existing bill number never changes.

    paid_amount is incremented in the database, never from a value read earlier.
    """
    try:
        dispense = _claim_open(
            db,
            dispense_id,
            "Cannot pay for cancelled dispense",
            paid_amount=Dispense.paid_amount + money2(amount),
        )

        dispense.payment_status = derive_payment_status(dispense.paid_amount, dispense.total)
        if not dispense.bill_number and dispense.payment_status != PaymentStatus.PENDING:
            dispense.bill_number = generate_bill_number(dispense.id)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    dispense = get_dispense(db, dispense_id)
    logger.info(
        "Payment recorded dispense=%s amount=%s paid=%s status=%s",
        dispense_id,
        amount,
        dispense.paid_amount,
        dispense.payment_status.value,
    )
    return dispense


def dispense_stats(db: Session, start: date, end: date | None = None) -> dict:
    """
    Money totals over dispenses created between two clinic days (inclusive).
    """
    range_start, _ = day_bounds(start)
    _, range_end = day_bounds(end or start)

    outstanding = case((Dispense.total > Dispense.paid_amount, Dispense.total - Dispense.paid_amount), else_=0)
    refunds = case((Dispense.paid_amount > Dispense.total, Dispense.paid_amount - Dispense.total), else_=0)

    row = (
        db.query(
            func.coalesce(func.sum(Dispense.total), 0),
            func.coalesce(func.sum(Dispense.paid_amount), 0),
            func.count(Dispense.id),
            func.coalesce(func.sum(outstanding), 0),
            func.coalesce(func.sum(refunds), 0),
        )
        .filter(Dispense.created_at >= range_start, Dispense.created_at < range_end)
        .one()
    )

    return {
        "total_billed": money2(row[0]),
        "total_collected": money2(row[1]),
        "count": int(row[2] or 0),
        "total_pending": money2(row[3]),
        "total_refunds": money2(row[4]),
    }
