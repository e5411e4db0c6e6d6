"""Initial schema for car-wash scheduling.

Revision ID: 4b8e1c02d7aa
Revises:
Create Date: 2024-06-03 10:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4b8e1c02d7aa"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

appointment_status = sa.Enum(
    "scheduled", "in_progress", "completed", "paid", "cancelled", name="appointmentstatus"
)
payment_status = sa.Enum("unpaid", "pending", "paid", name="paymentstatus")
payment_method = sa.Enum("pix", "cartao", "dinheiro", name="paymentmethod")
booking_channel = sa.Enum("staff", "portal", name="bookingchannel")

DEFAULT_SETTINGS = (
    ("business_hours_start", "08:00", "Business hours start (HH:MM)"),
    ("business_hours_end", "18:00", "Business hours end (HH:MM)"),
    ("appointment_interval", "30", "Interval between appointment slots (minutes)"),
    ("max_concurrent_appointments", "3", "Maximum concurrent appointments per slot"),
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("client_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_clients_email", "clients", ["email"])

    op.create_table(
        "vehicles",
        sa.Column("vehicle_id", sa.String(length=26), primary_key=True),
        sa.Column("client_id", sa.String(length=26), sa.ForeignKey("clients.client_id", ondelete="CASCADE"), nullable=False),
        sa.Column("license_plate", sa.String(length=16), nullable=False),
        sa.Column("brand", sa.String(length=60), nullable=False),
        sa.Column("model", sa.String(length=60), nullable=False),
        sa.Column("color", sa.String(length=30), nullable=False),
        sa.Column("year", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_client_id", "vehicles", ["client_id"])

    op.create_table(
        "services",
        sa.Column("service_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_services_price_positive"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), primary_key=True),
        sa.Column("client_id", sa.String(length=26), sa.ForeignKey("clients.client_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("vehicle_id", sa.String(length=26), sa.ForeignKey("vehicles.vehicle_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("service_id", sa.String(length=26), sa.ForeignKey("services.service_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time", sa.Time(), nullable=False),
        sa.Column("status", appointment_status, nullable=False, server_default="scheduled"),
        sa.Column("notes", sa.Text()),
        sa.Column("payment_status", payment_status),
        sa.Column("payment_method", payment_method),
        sa.Column("amount_paid", sa.Numeric(10, 2)),
        sa.Column("created_by", sa.String(length=26), nullable=False),
        sa.Column("created_via", booking_channel, nullable=False),
        sa.Column("in_progress_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_appointments_slot_status", "appointments", ["scheduled_date", "scheduled_time", "status"])
    op.create_index("ix_appointments_client_date", "appointments", ["client_id", "scheduled_date"])

    op.create_table(
        "slot_reservations",
        sa.Column("reservation_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time", sa.Time(), nullable=False),
        sa.Column("ordinal", sa.Integer(), nullable=False),
        sa.UniqueConstraint("scheduled_date", "scheduled_time", "ordinal", name="uq_slot_reservation_ordinal"),
    )

    settings_table = op.create_table(
        "business_settings",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.bulk_insert(
        settings_table,
        [{"key": key, "value": value, "description": description} for key, value, description in DEFAULT_SETTINGS],
    )


def downgrade() -> None:
    op.drop_table("business_settings")
    op.drop_table("slot_reservations")
    op.drop_index("ix_appointments_client_date", table_name="appointments")
    op.drop_index("ix_appointments_slot_status", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("services")
    op.drop_index("ix_vehicles_client_id", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_index("ix_clients_email", table_name="clients")
    op.drop_table("clients")

    bind = op.get_bind()
    for enum_type in (booking_channel, payment_method, payment_status, appointment_status):
        enum_type.drop(bind, checkfirst=True)
