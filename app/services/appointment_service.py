# app/services/appointment_service.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, SlotConflict
from app.models.appointment import (
    ACTIVE_SLOT_STATUSES,
    Appointment,
    AppointmentStatus,
    PaymentStatus,
)
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.schemas.appointment import AppointmentCreate, AppointmentUpdate
from app.services.conflict_detector import has_conflict
from app.services.payment_status import D, derive_payment_status
from app.services.token_allocator import allocate_daily_token
from app.utils.datetime_utils import as_utc, day_of

logger = logging.getLogger(__name__)

SLOT_FIELDS = ("doctor_id", "appointment_date", "appointment_time")


def list_appointments(
    db: Session,
    *,
    day: date | None = None,
    doctor_id: UUID | None = None,
    patient_id: UUID | None = None,
    status: AppointmentStatus | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> tuple[list[Appointment], int]:
    """
    Basic appointment listing helper with optional filters.

    A day listing is the queue order (daily_token); otherwise appointments come
    back by date, token, then time. Returns (page, total).
    """
    query = db.query(Appointment)

    if doctor_id is not None:
        query = query.filter(Appointment.doctor_id == doctor_id)
    if patient_id is not None:
        query = query.filter(Appointment.patient_id == patient_id)
    if status is not None:
        query = query.filter(Appointment.status == status)
    if day is not None:
        query = query.filter(Appointment.appointment_day == day)

    total = query.count()

    if day is not None:
        query = query.order_by(Appointment.daily_token.asc())
    else:
        query = query.order_by(
            Appointment.appointment_date.asc(),
            Appointment.daily_token.asc(),
            Appointment.appointment_time.asc(),
        )

    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)

    return query.all(), total


def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def _require_patient(db: Session, patient_id: UUID) -> Patient:
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


def _require_doctor(db: Session, doctor_id: UUID) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor


def _payment_status_for(
    status: AppointmentStatus,
    *,
    amount: Any,
    discount: Any,
    payment_online: Any,
    payment_offline: Any,
) -> PaymentStatus:
    if status == AppointmentStatus.CANCELLED:
        return PaymentStatus.CANCELLED
    paid = D(payment_online) + D(payment_offline)
    return derive_payment_status(paid, amount, discount)


def create_appointment(db: Session, payload: AppointmentCreate) -> Appointment:
    """
    Book an appointment.

    Rules:
    - Patient and doctor must exist.
    - The doctor must not already hold a scheduled/confirmed appointment at the
      same appointment_date + appointment_time.
    - appointment_day is derived from appointment_date; daily_token is the next
      free token for that day, allocated with bounded retry.
    """
    _require_patient(db, payload.patient_id)
    _require_doctor(db, payload.doctor_id)

    appointment_date = as_utc(payload.appointment_date)

    if has_conflict(db, payload.doctor_id, appointment_date, payload.appointment_time):
        raise SlotConflict("Doctor already has an appointment at this time")

    day = day_of(appointment_date)
    fields = payload.model_dump()
    fields["appointment_date"] = appointment_date
    fields["status"] = AppointmentStatus.SCHEDULED
    fields["payment_status"] = _payment_status_for(
        AppointmentStatus.SCHEDULED,
        amount=payload.amount,
        discount=payload.discount,
        payment_online=payload.payment_online,
        payment_offline=payload.payment_offline,
    )

    def write(token: int) -> Appointment:
        appointment = Appointment(**fields, appointment_day=day, daily_token=token)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    try:
        appointment = allocate_daily_token(db, day, write)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "Appointment booked id=%s day=%s token=%s",
        appointment.id,
        appointment.appointment_day,
        appointment.daily_token,
    )
    return appointment


def update_appointment(db: Session, appointment_id: UUID, payload: AppointmentUpdate) -> Appointment:
    """
    Apply a partial update.

    - Reassigning the doctor without an explicit amount resets amount to the new
      doctor's consultation fee.
    - Any change to doctor, date, time or status that leaves the appointment
      scheduled/confirmed is checked for a slot conflict using the effective
      (post-update) values.
    - Moving appointment_date to another day reallocates daily_token.
    - payment_status is re-derived from the effective payment fields.
    """
    appointment = get_appointment(db, appointment_id)
    changes = payload.model_dump(exclude_unset=True)

    # Explicit nulls on required columns mean "leave as is"
    for key in ("patient_id", "doctor_id", "appointment_date", "appointment_time", "status", "type", "duration"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    for key in ("discount", "payment_online", "payment_offline"):
        if key in changes and changes[key] is None:
            changes[key] = Decimal("0")

    if "patient_id" in changes:
        _require_patient(db, changes["patient_id"])

    if "doctor_id" in changes:
        doctor = _require_doctor(db, changes["doctor_id"])
        if "amount" not in changes and doctor.consultation_fee is not None:
            changes["amount"] = doctor.consultation_fee

    if "appointment_date" in changes:
        changes["appointment_date"] = as_utc(changes["appointment_date"])

    def effective(key: str) -> Any:
        return changes[key] if key in changes else getattr(appointment, key)

    # Re-activating a cancelled/no-show appointment claims its slot again
    slot_touched = any(key in changes for key in SLOT_FIELDS) or "status" in changes
    if slot_touched and effective("status") in ACTIVE_SLOT_STATUSES:
        if has_conflict(
            db,
            effective("doctor_id"),
            effective("appointment_date"),
            effective("appointment_time"),
            exclude_id=appointment.id,
        ):
            raise SlotConflict("Doctor already has an appointment at this time")

    changes["payment_status"] = _payment_status_for(
        effective("status"),
        amount=effective("amount"),
        discount=effective("discount"),
        payment_online=effective("payment_online"),
        payment_offline=effective("payment_offline"),
    )

    new_day = day_of(changes["appointment_date"]) if "appointment_date" in changes else None

    if new_day is not None and new_day != appointment.appointment_day:

        def write(token: int) -> Appointment:
            # A lost race rolled the session back; start from the stored row again
            current = get_appointment(db, appointment_id)
            for key, value in changes.items():
                setattr(current, key, value)
            current.appointment_day = new_day
            current.daily_token = token
            db.commit()
            db.refresh(current)
            return current

        try:
            appointment = allocate_daily_token(db, new_day, write, exclude_id=appointment_id)
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info(
            "Appointment rescheduled id=%s day=%s token=%s",
            appointment.id,
            appointment.appointment_day,
            appointment.daily_token,
        )
        return appointment

    for key, value in changes.items():
        setattr(appointment, key, value)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(appointment)
    return appointment


def delete_appointment(db: Session, appointment_id: UUID) -> None:
    """Administrative hard delete."""
    appointment = get_appointment(db, appointment_id)
    try:
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Appointment deleted id=%s", appointment_id)


def mark_prescription_dispensed(db: Session, appointment_id: UUID) -> Appointment | None:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        logger.warning("Dispensed appointment no longer exists id=%s", appointment_id)
        return None

    appointment.status = AppointmentStatus.PRESCRIPTION_DISPENSED
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return appointment
