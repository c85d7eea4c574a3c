# app/services/conflict_detector.py
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.appointment import ACTIVE_SLOT_STATUSES, Appointment
from app.utils.datetime_utils import as_utc


def has_conflict(
    db: Session,
    doctor_id: UUID,
    appointment_date: datetime,
    appointment_time: str,
    exclude_id: UUID | None = None,
) -> bool:
    """
    True if the doctor already holds a scheduled/confirmed appointment at exactly
    this date and time.

    This is a check-then-act pre-check. Two concurrent bookings of one slot can
    both pass it; there is no store-level constraint behind it.
    """
    query = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == as_utc(appointment_date),
        Appointment.appointment_time == appointment_time,
        Appointment.status.in_(ACTIVE_SLOT_STATUSES),
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)

    return query.first() is not None
