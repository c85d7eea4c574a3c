# app/core/exceptions.py
"""
Domain errors raised by the appointment and dispensary services.

Endpoints translate these into HTTP responses; scripts let them propagate.
None of them is fatal to the process.
"""


class ClinicError(Exception):
    pass


class NotFoundError(ClinicError):
    """A referenced patient, doctor, medicine, appointment or dispense is absent."""


class SlotConflict(ClinicError):
    """The doctor already holds a scheduled/confirmed appointment at this date and time."""


class TokenAllocationFailed(ClinicError):
    """No unique daily token could be stored within the allowed attempts."""

    def __init__(self, day, attempts: int):
        self.day = day
        self.attempts = attempts
        super().__init__(f"Failed to assign daily token for {day} after {attempts} attempts")


class InvalidStateTransition(ClinicError):
    """The requested change is not allowed from the record's current state."""
