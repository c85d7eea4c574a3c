# app/models/appointment.py
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.utils.datetime_utils import utc_now


class AppointmentStatus(str, PyEnum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    PRESCRIPTION_DISPENSED = "prescription-dispensed"


# Statuses that hold a doctor's slot
ACTIVE_SLOT_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)


class AppointmentType(str, PyEnum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"
    ROUTINE_CHECKUP = "routine-checkup"
    VACCINATION = "vaccination"


class PaymentStatus(str, PyEnum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELLED = "cancelled"


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


APPOINTMENT_STATUS_ENUM = SAEnum(
    AppointmentStatus,
    name="appointment_status_enum",
    values_callable=_enum_values,
)
APPOINTMENT_TYPE_ENUM = SAEnum(
    AppointmentType,
    name="appointment_type_enum",
    values_callable=_enum_values,
)
PAYMENT_STATUS_ENUM = SAEnum(
    PaymentStatus,
    name="payment_status_enum",
    values_callable=_enum_values,
)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Authoritative guard for the daily token sequence
        UniqueConstraint("appointment_day", "daily_token", name="uq_appointments_day_token"),
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
        Index("ix_appointments_patient_date", "patient_id", "appointment_date"),
    )

    # Primary Key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Foreign Keys
    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Scheduling
    appointment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    appointment_day: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        doc="appointment_date truncated to the clinic calendar day; never user supplied",
    )
    appointment_time: Mapped[str] = mapped_column(String(5), nullable=False, doc="HH:MM")
    daily_token: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Queue number, unique among appointments sharing appointment_day",
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30, doc="Minutes")

    status: Mapped[AppointmentStatus] = mapped_column(
        APPOINTMENT_STATUS_ENUM,
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    type: Mapped[AppointmentType] = mapped_column(
        APPOINTMENT_TYPE_ENUM,
        nullable=False,
        default=AppointmentType.CONSULTATION,
    )
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Billing
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    payment_online: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    payment_offline: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    payment_status: Mapped[PaymentStatus] = mapped_column(
        PAYMENT_STATUS_ENUM,
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    patient: Mapped["Patient"] = relationship("Patient")
    doctor: Mapped["Doctor"] = relationship("Doctor")
