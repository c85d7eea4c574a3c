# app/models/medicine.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class Medicine(Base):
    """
    Master catalog entry for a dispensable medicine.

    (name, strength, form) is the natural key. Missing strength/form are stored
    as empty strings so the composite unique constraint also covers them.
    `stock` is changed only by the stock ledger after creation.
    """

    __tablename__ = "medicines"
    __table_args__ = (
        UniqueConstraint("name", "strength", "form", name="uq_medicines_name_strength_form"),
        CheckConstraint("stock >= 0", name="ck_medicines_stock_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    salt: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    strength: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
        server_default=text("''"),
        doc="e.g., 500mg",
    )
    form: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
        server_default=text("''"),
        doc="e.g., tablet, syrup",
    )

    cost_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    selling_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    stock: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    pending_pricing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

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
