import random
from datetime import date, datetime, timezone

import pytest

from app.core.exceptions import TokenAllocationFailed
from app.models.appointment import Appointment
from app.schemas.appointment import AppointmentUpdate
from app.services import token_allocator
from app.services.appointment_service import delete_appointment, update_appointment
from app.services.token_allocator import next_daily_token, renumber_daily_tokens


def _slot(i: int) -> str:
    return f"{8 + i // 60:02d}:{i % 60:02d}"


def test_tokens_are_distinct_within_a_day(book):
    n = 25
    order = list(range(n))
    random.Random(7).shuffle(order)

    appointments = [book(day=(2024, 1, 1), time=_slot(i)) for i in order]

    tokens = [a.daily_token for a in appointments]
    assert len(set(tokens)) == n
    assert sorted(tokens) == list(range(1, n + 1))
    assert {a.appointment_day for a in appointments} == {date(2024, 1, 1)}


def test_tokens_restart_each_day(book):
    first = book(day=(2024, 1, 1), time="09:00")
    second = book(day=(2024, 1, 1), time="09:15")
    other_day = book(day=(2024, 1, 2), time="09:00")

    assert (first.daily_token, second.daily_token) == (1, 2)
    assert other_day.daily_token == 1


def test_deleted_token_does_not_cause_collision(db, book):
    first = book(time="09:00")
    book(time="09:15")
    book(time="09:30")

    delete_appointment(db, first.id)

    # count is 2 but token 3 is still held
    assert next_daily_token(db, date(2024, 1, 1)) == 4
    assert book(time="09:45").daily_token == 4


def test_reschedule_takes_a_fresh_token_on_the_new_day(db, book):
    moving = book(day=(2024, 1, 1), time="09:00")
    book(day=(2024, 1, 1), time="09:15")
    book(day=(2024, 1, 2), time="09:00")
    book(day=(2024, 1, 2), time="09:15")

    moved = update_appointment(
        db,
        moving.id,
        AppointmentUpdate(appointment_date=datetime(2024, 1, 2, 11, 0, tzinfo=timezone.utc), appointment_time="11:00"),
    )

    assert moved.appointment_day == date(2024, 1, 2)
    assert moved.daily_token == 3
    tokens = [a.daily_token for a in db.query(Appointment).filter(Appointment.appointment_day == date(2024, 1, 2))]
    assert len(set(tokens)) == len(tokens) == 3


def test_same_day_time_change_keeps_token(db, book):
    appt = book(time="09:00")
    book(time="09:15")

    updated = update_appointment(db, appt.id, AppointmentUpdate(appointment_time="12:00"))

    assert updated.daily_token == 1


def test_lost_race_is_retried_with_a_new_token(db, book, monkeypatch):
    book(time="09:00")

    real_next = token_allocator.next_daily_token
    calls = []

    def stale_then_real(session, day, exclude_id=None):
        calls.append(day)
        if len(calls) == 1:
            # Another writer already stored token 1 for this day
            return 1
        return real_next(session, day, exclude_id=exclude_id)

    monkeypatch.setattr(token_allocator, "next_daily_token", stale_then_real)

    appt = book(time="09:30")

    assert appt.daily_token == 2
    assert len(calls) == 2


def test_sustained_contention_raises_after_max_attempts(db, book, monkeypatch):
    book(time="09:00")
    attempts = []

    def always_taken(session, day, exclude_id=None):
        attempts.append(day)
        return 1

    monkeypatch.setattr(token_allocator, "next_daily_token", always_taken)

    with pytest.raises(TokenAllocationFailed) as exc_info:
        book(time="09:30")

    assert len(attempts) == 3
    assert exc_info.value.attempts == 3
    assert db.query(Appointment).count() == 1


def test_allocate_respects_explicit_max_attempts(db, book, monkeypatch):
    book(time="09:00")
    monkeypatch.setattr(token_allocator, "next_daily_token", lambda session, day, exclude_id=None: 1)

    def write(token):
        existing = db.query(Appointment).one()
        db.add(
            Appointment(
                patient_id=existing.patient_id,
                doctor_id=existing.doctor_id,
                appointment_date=existing.appointment_date,
                appointment_day=existing.appointment_day,
                appointment_time="11:00",
                daily_token=token,
            )
        )
        db.commit()

    with pytest.raises(TokenAllocationFailed) as exc_info:
        token_allocator.allocate_daily_token(db, date(2024, 1, 1), write, max_attempts=5)

    assert exc_info.value.attempts == 5


def test_renumber_daily_tokens_backfills_by_time(db, patient, doctor):
    rows = [
        # (appointment_date, stored day, stored token, time)
        (datetime(2024, 1, 1, 10, 0), date(2024, 1, 1), 7, "10:00"),
        (datetime(2024, 1, 1, 9, 0), date(2024, 1, 1), 5, "09:00"),
        (datetime(2024, 1, 2, 9, 0), date(2024, 1, 1), 1, "09:00"),
    ]
    for when, day, token, time in rows:
        db.add(
            Appointment(
                patient_id=patient.id,
                doctor_id=doctor.id,
                appointment_date=when.replace(tzinfo=timezone.utc),
                appointment_day=day,
                appointment_time=time,
                daily_token=token,
            )
        )
    db.commit()

    changed = renumber_daily_tokens(db)
    db.commit()

    assert changed == 3
    result = {
        (a.appointment_day, a.appointment_time): a.daily_token
        for a in db.query(Appointment).all()
    }
    assert result == {
        (date(2024, 1, 1), "09:00"): 1,
        (date(2024, 1, 1), "10:00"): 2,
        (date(2024, 1, 2), "09:00"): 1,
    }

    assert renumber_daily_tokens(db) == 0
