from datetime import datetime, timezone

import pytest

from app.core.exceptions import SlotConflict
from app.models.appointment import AppointmentStatus
from app.schemas.appointment import AppointmentUpdate
from app.services.appointment_service import get_appointment, list_appointments, update_appointment
from app.services.conflict_detector import has_conflict

SLOT = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_double_booking_a_scheduled_slot_is_rejected(book):
    book(time="10:00")

    with pytest.raises(SlotConflict):
        book(time="10:00")


def test_slot_freed_by_cancellation_can_be_rebooked(db, book):
    first = book(time="10:00")
    update_appointment(db, first.id, AppointmentUpdate(status=AppointmentStatus.CANCELLED))

    second = book(time="10:00")

    assert second.daily_token == 2
    assert second.status == AppointmentStatus.SCHEDULED


@pytest.mark.parametrize(
    "status, blocks",
    [
        (AppointmentStatus.SCHEDULED, True),
        (AppointmentStatus.CONFIRMED, True),
        (AppointmentStatus.COMPLETED, False),
        (AppointmentStatus.NO_SHOW, False),
        (AppointmentStatus.PRESCRIPTION_DISPENSED, False),
    ],
)
def test_only_scheduled_and_confirmed_hold_the_slot(db, book, doctor, status, blocks):
    appt = book(time="10:00")
    update_appointment(db, appt.id, AppointmentUpdate(status=status))

    assert has_conflict(db, doctor.id, SLOT, "10:00") is blocks


def test_other_doctor_and_other_time_do_not_conflict(db, book, doctor, make_doctor):
    book(time="10:00")
    other = make_doctor("Ravi")

    assert has_conflict(db, other.id, SLOT, "10:00") is False
    assert has_conflict(db, doctor.id, SLOT, "10:30") is False
    assert has_conflict(db, doctor.id, SLOT, "10:00") is True


def test_appointment_does_not_conflict_with_itself(db, book, doctor):
    appt = book(time="10:00")

    assert has_conflict(db, doctor.id, SLOT, "10:00", exclude_id=appt.id) is False
    updated = update_appointment(db, appt.id, AppointmentUpdate(notes="bring reports"))
    assert updated.notes == "bring reports"


def test_update_checks_the_effective_slot(db, book, make_doctor):
    busy = make_doctor("Ravi")
    book(time="10:00", doctor_id=busy.id)
    appt = book(time="10:00")

    # Only the doctor changes; date and time come from the stored row
    with pytest.raises(SlotConflict):
        update_appointment(db, appt.id, AppointmentUpdate(doctor_id=busy.id))

    with pytest.raises(SlotConflict):
        update_appointment(db, appt.id, AppointmentUpdate(doctor_id=busy.id, appointment_time="10:00"))

    moved = update_appointment(db, appt.id, AppointmentUpdate(doctor_id=busy.id, appointment_time="10:30"))
    assert moved.doctor_id == busy.id


def test_reactivating_a_cancelled_appointment_rechecks_the_slot(db, book):
    first = book(time="10:00")
    update_appointment(db, first.id, AppointmentUpdate(status=AppointmentStatus.CANCELLED))
    book(time="10:00")

    with pytest.raises(SlotConflict):
        update_appointment(db, first.id, AppointmentUpdate(status=AppointmentStatus.SCHEDULED))
    with pytest.raises(SlotConflict):
        update_appointment(db, first.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED))

    assert get_appointment(db, first.id).status == AppointmentStatus.CANCELLED
    _, active = list_appointments(db, status=AppointmentStatus.SCHEDULED)
    assert active == 1


def test_reactivating_into_a_free_slot_is_allowed(db, book):
    appt = book(time="10:00")
    update_appointment(db, appt.id, AppointmentUpdate(status=AppointmentStatus.NO_SHOW))

    restored = update_appointment(db, appt.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED))

    assert restored.status == AppointmentStatus.CONFIRMED
