"""Appointment ORM model."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, Numeric, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from washbay.core.database import Base
from washbay.shared.enums import (
    AppointmentStatus,
    BookingChannel,
    PaymentMethod,
    PaymentStatus,
    enum_values,
)
from washbay.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from washbay.modules.catalog.models import Client, Service, Vehicle


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_slot_status", "scheduled_date", "scheduled_time", "status"),
        Index("ix_appointments_client_date", "client_id", "scheduled_date"),
    )

    appointment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    client_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("clients.client_id", ondelete="RESTRICT"),
        nullable=False,
    )
    vehicle_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("vehicles.vehicle_id", ondelete="RESTRICT"),
        nullable=False,
    )
    service_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("services.service_id", ondelete="RESTRICT"),
        nullable=False,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="appointmentstatus",
        ),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    payment_status: Mapped[PaymentStatus | None] = mapped_column(
        Enum(
            PaymentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="paymentstatus",
        ),
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(
            PaymentMethod,
            values_callable=enum_values,
            validate_strings=True,
            name="paymentmethod",
        ),
    )
    amount_paid: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    created_by: Mapped[str] = mapped_column(String(26), nullable=False)
    created_via: Mapped[BookingChannel] = mapped_column(
        Enum(
            BookingChannel,
            values_callable=enum_values,
            validate_strings=True,
            name="bookingchannel",
        ),
        nullable=False,
    )

    in_progress_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    client: Mapped[Client] = relationship(back_populates="appointments")
    vehicle: Mapped[Vehicle] = relationship(back_populates="appointments")
    service: Mapped[Service] = relationship(back_populates="appointments")

    @property
    def client_name(self) -> str | None:
        return self.client.name if self.client else None

    @property
    def license_plate(self) -> str | None:
        return self.vehicle.license_plate if self.vehicle else None

    @property
    def service_name(self) -> str | None:
        return self.service.name if self.service else None

    @property
    def service_price(self) -> Decimal | None:
        return self.service.price if self.service else None

    @property
    def duration_minutes(self) -> int | None:
        return self.service.duration_minutes if self.service else None


# Late import so relationship targets are registered with the mapper.
from washbay.modules.catalog.models import Client, Service, Vehicle  # noqa: E402
