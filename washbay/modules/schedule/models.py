"""Schedule ORM models."""

from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, ForeignKey, String, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from washbay.core.database import Base
from washbay.shared.models import generate_ulid


class BusinessSetting(Base):
    """Key/value business settings editable at runtime."""

    __tablename__ = "business_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SlotReservation(Base):
    """One row per active appointment; the ordinal caps concurrent bookings per slot."""

    __tablename__ = "slot_reservations"
    __table_args__ = (
        UniqueConstraint("scheduled_date", "scheduled_time", "ordinal", name="uq_slot_reservation_ordinal"),
    )

    reservation_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    appointment_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[time] = mapped_column(Time, nullable=False)
    ordinal: Mapped[int] = mapped_column(nullable=False)
