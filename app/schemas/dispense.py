# app/schemas/dispense.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from app.models.appointment import PaymentStatus

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

OptStr50 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=50),
    ]
    | None
)

Money = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


class DispenseItemIn(BaseModel):
    name: NameStr
    quantity: int = Field(gt=0)
    unit_price: Money
    strength: OptStr50 = None
    form: OptStr50 = None
    duration: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("strength", "form", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class DispenseCreate(BaseModel):
    """
    Either `patient_id`, or `date` + `token` identifying the day's appointment.
    """

    items: list[DispenseItemIn] = Field(min_length=1)
    tax: Money = Decimal("0")
    discount: Money = Decimal("0")

    patient_id: UUID | None = None
    date: datetime | None = None
    token: int | None = Field(default=None, gt=0)

    dispensed_by: str | None = Field(default=None, max_length=100)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def require_patient_or_token(self) -> "DispenseCreate":
        if (self.date is None) != (self.token is None):
            raise ValueError("date and token must be provided together")
        if self.patient_id is None and self.token is None:
            raise ValueError("Provide (date and token) or patient_id")
        return self


class DispenseUpdate(BaseModel):
    items: list[DispenseItemIn] | None = Field(default=None, min_length=1)
    tax: Money | None = None
    discount: Money | None = None

    model_config = ConfigDict(extra="forbid")


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

    model_config = ConfigDict(extra="forbid")


class DispenseItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    quantity: int
    unit_price: Decimal
    strength: str | None = None
    form: str | None = None
    duration: str | None = None
    notes: str | None = None


class DispenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: UUID
    appointment_id: UUID | None = None
    appointment_day: date | None = None
    daily_token: int | None = None

    items: list[DispenseItemResponse]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal

    payment_status: PaymentStatus
    paid_amount: Decimal
    bill_number: str | None = None

    dispensed_by: str | None = None
    created_at: datetime
    updated_at: datetime


class DispenseStats(BaseModel):
    total_billed: Decimal
    total_collected: Decimal
    count: int
    total_pending: Decimal
    total_refunds: Decimal
