# app/models/doctor.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(100), nullable=True)

    consultation_fee: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        doc="Default appointment amount when the doctor is assigned without an explicit amount.",
    )

    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    availability: Mapped[list["DoctorAvailability"]] = relationship(
        "DoctorAvailability",
        back_populates="doctor",
        order_by="DoctorAvailability.weekday",
        cascade="all, delete-orphan",
    )


class DoctorAvailability(Base):
    """
    Working hours for one weekday. A weekday with no row, or with
    is_available=False, is a day off.
    """

    __tablename__ = "doctor_availability"
    __table_args__ = (
        UniqueConstraint("doctor_id", "weekday", name="uq_doctor_availability_weekday"),
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_doctor_availability_weekday"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    weekday: Mapped[int] = mapped_column(Integer, nullable=False, doc="0=Monday .. 6=Sunday (date.weekday())")
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True, doc="HH:MM")
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True, doc="HH:MM, exclusive")

    doctor: Mapped["Doctor"] = relationship("Doctor", back_populates="availability")
