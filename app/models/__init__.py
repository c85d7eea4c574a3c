# app/models/__init__.py
from app.models.base import Base
from app.models.patient import Patient
from app.models.doctor import Doctor, DoctorAvailability
from app.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    PaymentStatus,
)
from app.models.medicine import Medicine
from app.models.dispense import Dispense, DispenseItem

__all__ = [
    "Base",
    "Patient",
    "Doctor",
    "DoctorAvailability",
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "PaymentStatus",
    "Medicine",
    "Dispense",
    "DispenseItem",
]
