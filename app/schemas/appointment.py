# app/schemas/appointment.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.models.appointment import AppointmentStatus, AppointmentType, PaymentStatus

TimeStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, pattern=r"^([01]\d|2[0-3]):[0-5]\d$"),
]

Money = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


class AppointmentCreate(BaseModel):
    patient_id: UUID
    doctor_id: UUID
    appointment_date: datetime
    appointment_time: TimeStr
    reason: str = Field(min_length=1, max_length=500)
    type: AppointmentType = AppointmentType.CONSULTATION
    duration: int = Field(default=30, ge=15, le=120)
    notes: str | None = None

    amount: Money | None = None
    discount: Money = Decimal("0")
    payment_online: Money = Decimal("0")
    payment_offline: Money = Decimal("0")

    model_config = ConfigDict(extra="forbid")


class AppointmentUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied
    (model_dump(exclude_unset=True)).

    Changing appointment_date to another day reallocates daily_token.
    """

    patient_id: UUID | None = None
    doctor_id: UUID | None = None
    appointment_date: datetime | None = None
    appointment_time: TimeStr | None = None
    reason: str | None = Field(default=None, min_length=1, max_length=500)
    type: AppointmentType | None = None
    duration: int | None = Field(default=None, ge=15, le=120)
    status: AppointmentStatus | None = None
    notes: str | None = None

    amount: Money | None = None
    discount: Money | None = None
    payment_online: Money | None = None
    payment_offline: Money | None = None

    model_config = ConfigDict(extra="forbid")


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    appointment_date: datetime
    appointment_day: date
    appointment_time: str
    daily_token: int
    duration: int
    status: AppointmentStatus
    type: AppointmentType
    reason: str | None = None
    notes: str | None = None

    amount: Decimal | None = None
    discount: Decimal
    payment_online: Decimal
    payment_offline: Decimal
    payment_status: PaymentStatus

    created_at: datetime


class AppointmentListResponse(BaseModel):
    items: list[AppointmentResponse]
    total: int
    page: int
    page_size: int


class WorkingHours(BaseModel):
    start: str
    end: str


class DoctorAvailabilityResponse(BaseModel):
    is_available: bool
    available_slots: list[str] = Field(default_factory=list)
    working_hours: WorkingHours | None = None
    message: str | None = None
