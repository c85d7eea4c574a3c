# app/services/token_allocator.py
"""
Per-day queue tokens for appointments.

There is no counter row to increment. A token is proposed from what is already
stored for the day and the write is attempted; the unique constraint on
(appointment_day, daily_token) decides the winner when two writers propose the
same token. Losers roll back and try again with a fresh proposal.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Callable, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import TokenAllocationFailed
from app.models.appointment import Appointment
from app.utils.datetime_utils import day_of

logger = logging.getLogger(__name__)

T = TypeVar("T")


def next_daily_token(db: Session, day: date, exclude_id: UUID | None = None) -> int:
    """
    Propose the next token for `day`.

    count + 1 on a day without gaps. Deletions and reschedules can leave the
    count pointing at a token that is still held, so the highest stored token
    is taken into account as well.
    """
    query = db.query(func.count(Appointment.id), func.max(Appointment.daily_token)).filter(
        Appointment.appointment_day == day
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)

    count, highest = query.one()
    return max(count or 0, highest or 0) + 1


def allocate_daily_token(
    db: Session,
    day: date,
    write: Callable[[int], T],
    *,
    exclude_id: UUID | None = None,
    max_attempts: int | None = None,
) -> T:
    """
    Compare-and-retry loop around a token-bearing write.

    `write(token)` must persist the appointment with the given token and commit.
    An IntegrityError from it is treated as a lost race: the session is rolled
    back and a new token is proposed. Any other error propagates.

    Raises TokenAllocationFailed once `max_attempts` writes have lost.
    """
    if max_attempts is None:
        max_attempts = get_settings().token_allocation_max_attempts

    for attempt in range(1, max_attempts + 1):
        token = next_daily_token(db, day, exclude_id=exclude_id)
        try:
            return write(token)
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Daily token collision day=%s token=%s attempt=%s/%s",
                day,
                token,
                attempt,
                max_attempts,
            )

    raise TokenAllocationFailed(day, max_attempts)


def renumber_daily_tokens(db: Session) -> int:
    """
    Rebuild appointment_day and daily_token for every appointment.

    Appointments are grouped by the truncated day of appointment_date and numbered
    1..n ordered by appointment_time, then by their existing token. Returns the
    number of rows changed. The caller commits.
    """
    appointments = db.query(Appointment).all()

    by_day: dict[date, list[Appointment]] = defaultdict(list)
    for appt in appointments:
        by_day[day_of(appt.appointment_date)].append(appt)

    planned: list[tuple[Appointment, date, int]] = []
    for day, group in by_day.items():
        group.sort(key=lambda a: (a.appointment_time or "", a.daily_token or 0))
        for index, appt in enumerate(group, start=1):
            if appt.appointment_day != day or appt.daily_token != index:
                planned.append((appt, day, index))

    if not planned:
        return 0

    # Park changed rows on distinct negative tokens first so no intermediate
    # state collides with a token that has not been moved yet.
    for placeholder, (appt, _day, _token) in enumerate(planned, start=1):
        appt.daily_token = -placeholder
    db.flush()

    for appt, day, token in planned:
        appt.appointment_day = day
        appt.daily_token = token
    db.flush()

    logger.info("Renumbered daily tokens for %s appointments", len(planned))
    return len(planned)
