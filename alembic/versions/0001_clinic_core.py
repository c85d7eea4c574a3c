"""clinic_core

Revision ID: clinic_core_0001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "clinic_core_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APPOINTMENT_STATUSES = (
    "scheduled",
    "confirmed",
    "in-progress",
    "completed",
    "cancelled",
    "no-show",
    "prescription-dispensed",
)
APPOINTMENT_TYPES = ("consultation", "follow-up", "emergency", "routine-checkup", "vaccination")
PAYMENT_STATUSES = ("pending", "partial", "paid", "cancelled")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("reg_no", sa.String(length=50), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reg_no"),
    )

    op.create_table(
        "doctors",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("specialization", sa.String(length=100), nullable=True),
        sa.Column("consultation_fee", sa.Numeric(12, 2), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("patient_id", sa.Uuid(), nullable=False),
        sa.Column("doctor_id", sa.Uuid(), nullable=False),
        sa.Column("appointment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("appointment_day", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.String(length=5), nullable=False),
        sa.Column("daily_token", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column(
            "status",
            sa.Enum(*APPOINTMENT_STATUSES, name="appointment_status_enum"),
            nullable=False,
            server_default=sa.text("'scheduled'"),
        ),
        sa.Column(
            "type",
            sa.Enum(*APPOINTMENT_TYPES, name="appointment_type_enum"),
            nullable=False,
            server_default=sa.text("'consultation'"),
        ),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_online", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_offline", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "payment_status",
            sa.Enum(*PAYMENT_STATUSES, name="payment_status_enum"),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_day", "daily_token", name="uq_appointments_day_token"),
    )
    op.create_index("ix_appointments_appointment_day", "appointments", ["appointment_day"])
    op.create_index("ix_appointments_doctor_date", "appointments", ["doctor_id", "appointment_date"])
    op.create_index("ix_appointments_patient_date", "appointments", ["patient_id", "appointment_date"])

    op.create_table(
        "medicines",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("salt", sa.String(length=255), nullable=True),
        sa.Column("strength", sa.String(length=50), nullable=False, server_default=sa.text("''")),
        sa.Column("form", sa.String(length=50), nullable=False, server_default=sa.text("''")),
        sa.Column("cost_price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("selling_price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("min_stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("pending_pricing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "strength", "form", name="uq_medicines_name_strength_form"),
        sa.CheckConstraint("stock >= 0", name="ck_medicines_stock_non_negative"),
    )
    op.create_index("ix_medicines_name", "medicines", ["name"])
    op.create_index("ix_medicines_salt", "medicines", ["salt"])

    op.create_table(
        "dispenses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("patient_id", sa.Uuid(), nullable=False),
        sa.Column("appointment_id", sa.Uuid(), nullable=True),
        sa.Column("appointment_day", sa.Date(), nullable=True),
        sa.Column("daily_token", sa.Integer(), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "payment_status",
            postgresql.ENUM(*PAYMENT_STATUSES, name="payment_status_enum", create_type=False),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("bill_number", sa.String(length=40), nullable=True),
        sa.Column("dispensed_by", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bill_number"),
    )
    op.create_index("ix_dispenses_patient_id", "dispenses", ["patient_id"])
    op.create_index("ix_dispenses_created_at", "dispenses", ["created_at"])
    op.create_index("ix_dispenses_day_token", "dispenses", ["appointment_day", "daily_token"])

    op.create_table(
        "dispense_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("dispense_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("strength", sa.String(length=50), nullable=True),
        sa.Column("form", sa.String(length=50), nullable=True),
        sa.Column("duration", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(["dispense_id"], ["dispenses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity > 0", name="ck_dispense_items_quantity_positive"),
    )
    op.create_index("ix_dispense_items_dispense_id", "dispense_items", ["dispense_id"])


def downgrade() -> None:
    op.drop_index("ix_dispense_items_dispense_id", table_name="dispense_items")
    op.drop_table("dispense_items")
    op.drop_index("ix_dispenses_day_token", table_name="dispenses")
    op.drop_index("ix_dispenses_created_at", table_name="dispenses")
    op.drop_index("ix_dispenses_patient_id", table_name="dispenses")
    op.drop_table("dispenses")
    op.drop_index("ix_medicines_salt", table_name="medicines")
    op.drop_index("ix_medicines_name", table_name="medicines")
    op.drop_table("medicines")
    op.drop_index("ix_appointments_patient_date", table_name="appointments")
    op.drop_index("ix_appointments_doctor_date", table_name="appointments")
    op.drop_index("ix_appointments_appointment_day", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("doctors")
    op.drop_table("patients")
    sa.Enum(name="payment_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="appointment_type_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="appointment_status_enum").drop(op.get_bind(), checkfirst=True)
