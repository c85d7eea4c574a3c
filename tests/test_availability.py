from datetime import date
from uuid import uuid4

import pytest

from app.core.exceptions import NotFoundError
from app.models import DoctorAvailability
from app.models.appointment import AppointmentStatus
from app.schemas.appointment import AppointmentUpdate
from app.services.appointment_service import update_appointment
from app.services.availability_service import available_slots

MONDAY = date(2024, 1, 1)


@pytest.fixture()
def monday_hours(db, doctor):
    hours = DoctorAvailability(doctor_id=doctor.id, weekday=MONDAY.weekday(), start_time="09:00", end_time="11:00")
    db.add(hours)
    db.commit()
    return hours


def test_working_hours_are_cut_into_slots(db, doctor, monday_hours):
    result = available_slots(db, doctor.id, MONDAY)

    assert result.is_available
    assert result.available_slots == ["09:00", "09:30", "10:00", "10:30"]
    assert (result.start_time, result.end_time) == ("09:00", "11:00")


def test_booked_time_is_removed_and_freed_on_cancel(db, doctor, monday_hours, book):
    appt = book(day=(2024, 1, 1), time="10:00")

    assert available_slots(db, doctor.id, MONDAY).available_slots == ["09:00", "09:30", "10:30"]

    update_appointment(db, appt.id, AppointmentUpdate(status=AppointmentStatus.CANCELLED))

    assert "10:00" in available_slots(db, doctor.id, MONDAY).available_slots


def test_booking_on_another_day_does_not_take_the_slot(db, doctor, monday_hours, book):
    book(day=(2024, 1, 8), time="10:00")

    assert "10:00" in available_slots(db, doctor.id, MONDAY).available_slots


def test_slot_length_can_be_overridden(db, doctor, monday_hours):
    result = available_slots(db, doctor.id, MONDAY, slot_minutes=60)

    assert result.available_slots == ["09:00", "10:00"]


def test_day_without_hours_is_unavailable(db, doctor, monday_hours):
    tuesday = date(2024, 1, 2)

    assert not available_slots(db, doctor.id, tuesday).is_available


def test_disabled_weekday_or_unavailable_doctor(db, doctor, monday_hours):
    monday_hours.is_available = False
    db.commit()
    assert not available_slots(db, doctor.id, MONDAY).is_available

    monday_hours.is_available = True
    doctor.is_available = False
    db.commit()
    assert not available_slots(db, doctor.id, MONDAY).is_available


def test_unknown_doctor_is_not_found(db):
    with pytest.raises(NotFoundError):
        available_slots(db, uuid4(), MONDAY)
