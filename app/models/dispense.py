# app/models/dispense.py
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.appointment import PAYMENT_STATUS_ENUM, Appointment, PaymentStatus
from app.models.base import Base
from app.models.patient import Patient
from app.utils.datetime_utils import utc_now


class Dispense(Base):
    """
    A dispensary bill.

    Lifecycle: pending -> partial/paid (follows paid_amount) -> cancelled (terminal).
    bill_number stays NULL until the first payment moves the bill out of pending.
    """

    __tablename__ = "dispenses"
    __table_args__ = (
        Index("ix_dispenses_day_token", "appointment_day", "daily_token"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Snapshot of the appointment's queue position at dispense time
    appointment_day: Mapped[date | None] = mapped_column(Date, nullable=True)
    daily_token: Mapped[int | None] = mapped_column(Integer, nullable=True)

    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    payment_status: Mapped[PaymentStatus] = mapped_column(
        PAYMENT_STATUS_ENUM,
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    bill_number: Mapped[str | None] = mapped_column(String(40), nullable=True, unique=True)

    dispensed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    patient: Mapped["Patient"] = relationship("Patient")
    appointment: Mapped["Appointment | None"] = relationship("Appointment")
    items: Mapped[list["DispenseItem"]] = relationship(
        "DispenseItem",
        back_populates="dispense",
        order_by="DispenseItem.position",
        cascade="all, delete-orphan",
    )


class DispenseItem(Base):
    __tablename__ = "dispense_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_dispense_items_quantity_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    dispense_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("dispenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    strength: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. "500mg"
    form: Mapped[str | None] = mapped_column(String(50), nullable=True)      # e.g. "tablet"
    duration: Mapped[str | None] = mapped_column(String(100), nullable=True)  # e.g. "5 days"
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    dispense: Mapped["Dispense"] = relationship("Dispense", back_populates="items")
