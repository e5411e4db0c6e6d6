"""Slot capacity and conflict checks.

Two policies live here and are deliberately kept apart:

* slot-exact capacity (portal bookings and reschedules): count active
  appointments starting at exactly the same date and time;
* duration overlap (staff bookings): any active appointment whose
  ``[start, start + service duration)`` interval intersects the candidate.

Every active appointment also holds a ``SlotReservation`` row. The unique
``(date, time, ordinal)`` key turns the read-count-then-insert sequence into an
atomic check-and-reserve: two concurrent bookings racing for the last ordinal
cannot both commit.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from itertools import count

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from washbay.core.exceptions import ScheduleConflictError
from washbay.modules.appointments.models import Appointment
from washbay.modules.catalog.models import Service
from washbay.modules.schedule.config import BusinessConfig
from washbay.modules.schedule.models import SlotReservation
from washbay.shared.enums import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


async def count_active_at(
    db: AsyncSession,
    target_date: date,
    target_time: time,
    exclude_id: str | None = None,
) -> int:
    stmt = select(func.count(Appointment.appointment_id)).where(
        Appointment.scheduled_date == target_date,
        Appointment.scheduled_time == target_time,
        Appointment.status.in_(ACTIVE_STATUSES),
    )
    if exclude_id:
        stmt = stmt.where(Appointment.appointment_id != exclude_id)
    result = await db.execute(stmt)
    return result.scalar_one()


async def has_capacity(
    db: AsyncSession,
    target_date: date,
    target_time: time,
    config: BusinessConfig,
    exclude_id: str | None = None,
) -> bool:
    active = await count_active_at(db, target_date, target_time, exclude_id)
    return active < config.max_concurrent_appointments


async def active_counts_by_time(db: AsyncSession, target_date: date) -> dict[time, int]:
    """Active appointment count per start time for a whole day."""
    stmt = (
        select(Appointment.scheduled_time, func.count(Appointment.appointment_id))
        .where(
            Appointment.scheduled_date == target_date,
            Appointment.status.in_(ACTIVE_STATUSES),
        )
        .group_by(Appointment.scheduled_time)
    )
    result = await db.execute(stmt)
    return {slot_time: total for slot_time, total in result.all()}


def _overlaps(
    slot_a: tuple[datetime, datetime],
    slot_b: tuple[datetime, datetime],
) -> bool:
    start_a, end_a = slot_a
    start_b, end_b = slot_b
    return start_a < end_b and end_a > start_b


async def find_overlapping(
    db: AsyncSession,
    target_date: date,
    start_time: time,
    duration_minutes: int,
    exclude_id: str | None = None,
) -> list[Appointment]:
    """Active appointments on ``target_date`` whose service interval overlaps the candidate."""
    stmt = (
        select(Appointment, Service.duration_minutes)
        .join(Service, Appointment.service_id == Service.service_id)
        .where(
            Appointment.scheduled_date == target_date,
            Appointment.status.in_(ACTIVE_STATUSES),
        )
    )
    if exclude_id:
        stmt = stmt.where(Appointment.appointment_id != exclude_id)
    result = await db.execute(stmt)

    candidate_start = datetime.combine(target_date, start_time)
    candidate = (candidate_start, candidate_start + timedelta(minutes=duration_minutes))
    overlapping: list[Appointment] = []
    for appointment, existing_duration in result.all():
        existing_start = datetime.combine(target_date, appointment.scheduled_time)
        existing = (existing_start, existing_start + timedelta(minutes=existing_duration))
        if _overlaps(candidate, existing):
            overlapping.append(appointment)
    return overlapping


async def reserve_slot(db: AsyncSession, appointment: Appointment, limit: int | None) -> SlotReservation:
    """Hold a reservation ordinal for the appointment's current slot.

    ``limit`` caps the ordinal (the slot capacity); ``None`` reserves whatever
    ordinal is free. The reservation is flushed immediately so a concurrent
    winner surfaces here as ``ScheduleConflictError``; the caller owns the
    rollback.
    """
    result = await db.execute(
        select(SlotReservation).where(SlotReservation.appointment_id == appointment.appointment_id)
    )
    current = result.scalar_one_or_none()
    if (
        current is not None
        and current.scheduled_date == appointment.scheduled_date
        and current.scheduled_time == appointment.scheduled_time
    ):
        return current
    if current is not None:
        await db.delete(current)
        await db.flush()

    held_result = await db.execute(
        select(SlotReservation.ordinal).where(
            SlotReservation.scheduled_date == appointment.scheduled_date,
            SlotReservation.scheduled_time == appointment.scheduled_time,
        )
    )
    held = set(held_result.scalars().all())
    if limit is not None and len(held) >= limit:
        raise ScheduleConflictError("Time slot unavailable")

    ordinal = next(candidate for candidate in count() if candidate not in held)
    reservation = SlotReservation(
        appointment_id=appointment.appointment_id,
        scheduled_date=appointment.scheduled_date,
        scheduled_time=appointment.scheduled_time,
        ordinal=ordinal,
    )
    db.add(reservation)
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning(
            "Lost reservation race for %s %s (ordinal %s)",
            appointment.scheduled_date,
            appointment.scheduled_time,
            ordinal,
        )
        raise ScheduleConflictError("Time slot was just taken, please try again") from exc
    return reservation


async def release_slot(db: AsyncSession, appointment_id: str) -> None:
    await db.execute(delete(SlotReservation).where(SlotReservation.appointment_id == appointment_id))


async def sync_reservation(db: AsyncSession, appointment: Appointment, limit: int | None = None) -> None:
    """Make the reservation table agree with the appointment's status and slot."""
    if appointment.status in ACTIVE_STATUSES:
        await reserve_slot(db, appointment, limit)
    else:
        await release_slot(db, appointment.appointment_id)
