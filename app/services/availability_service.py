# app/services/availability_service.py
"""
Free booking slots for a doctor on a clinic day.

The grid is the doctor's working hours for that weekday cut into
settings.slot_minutes steps; a step is taken when a scheduled/confirmed
appointment sits at exactly that time, the same rule the conflict
detector enforces on write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import NotFoundError
from app.models.appointment import ACTIVE_SLOT_STATUSES, Appointment
from app.models.doctor import Doctor
from app.utils.datetime_utils import day_bounds


@dataclass
class DayAvailability:
    is_available: bool
    available_slots: list[str] = field(default_factory=list)
    start_time: str | None = None
    end_time: str | None = None


def _to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def _to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def booked_times(db: Session, doctor_id: UUID, day: date) -> set[str]:
    start, end = day_bounds(day)
    rows = (
        db.query(Appointment.appointment_time)
        .filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date >= start,
            Appointment.appointment_date < end,
            Appointment.status.in_(ACTIVE_SLOT_STATUSES),
        )
        .all()
    )
    return {time for (time,) in rows}


def available_slots(
    db: Session,
    doctor_id: UUID,
    day: date,
    *,
    slot_minutes: int | None = None,
) -> DayAvailability:
    """
    Working-hours grid for `day` minus the times already held.

    A doctor marked unavailable, or with no (or disabled) hours for the weekday,
    is not available that day. Raises NotFoundError for an unknown doctor.
    """
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise NotFoundError("Doctor not found")

    hours = next((h for h in doctor.availability if h.weekday == day.weekday()), None)
    if not doctor.is_available or hours is None or not hours.is_available:
        return DayAvailability(is_available=False)
    if not hours.start_time or not hours.end_time:
        return DayAvailability(is_available=False)

    step = slot_minutes or get_settings().slot_minutes
    taken = booked_times(db, doctor_id, day)

    free = [
        _to_hhmm(minute)
        for minute in range(_to_minutes(hours.start_time), _to_minutes(hours.end_time), step)
        if _to_hhmm(minute) not in taken
    ]

    return DayAvailability(
        is_available=True,
        available_slots=free,
        start_time=hours.start_time,
        end_time=hours.end_time,
    )
