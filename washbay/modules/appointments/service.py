"""Appointment service layer: booking, rescheduling and the status lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from washbay.core.clock import BusinessClock
from washbay.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    OutOfHoursError,
    OwnershipError,
    PastDateError,
    ScheduleConflictError,
    ValidationError,
)
from washbay.modules.appointments.models import Appointment
from washbay.modules.appointments.schemas import (
    AppointmentUpdate,
    PortalAppointmentCreate,
    StaffAppointmentCreate,
)
from washbay.modules.catalog.models import Client, Service, Vehicle
from washbay.modules.schedule.capacity import find_overlapping, has_capacity, release_slot, sync_reservation
from washbay.modules.schedule.config import BusinessConfig, load_business_config
from washbay.modules.schedule.slots import format_time
from washbay.shared.enums import (
    AppointmentStatus,
    BookingChannel,
    PaymentMethod,
    PaymentStatus,
    Weekday,
)

logger = logging.getLogger(__name__)

# action -> (statuses it may start from, resulting status)
TRANSITIONS: dict[str, tuple[frozenset[AppointmentStatus], AppointmentStatus]] = {
    "start": (frozenset({AppointmentStatus.SCHEDULED}), AppointmentStatus.IN_PROGRESS),
    "complete": (frozenset({AppointmentStatus.IN_PROGRESS}), AppointmentStatus.COMPLETED),
    "cancel": (
        frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS}),
        AppointmentStatus.CANCELLED,
    ),
    "pay": (
        frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.IN_PROGRESS}),
        AppointmentStatus.PAID,
    ),
}

# Statuses the generic staff update may write directly.
UPDATABLE_STATUSES = frozenset(
    {
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }
)
UNDELETABLE_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.PAID})


def next_status(current: AppointmentStatus, action: str) -> AppointmentStatus:
    """Resolve a lifecycle action against the current status or raise InvalidTransitionError."""
    sources, target = TRANSITIONS[action]
    if current not in sources:
        raise InvalidTransitionError(f"Cannot {action} an appointment that is {current}")
    return target


@dataclass
class AppointmentFilters:
    start_date: date | None = None
    end_date: date | None = None
    client_id: str | None = None
    vehicle_id: str | None = None
    service_id: str | None = None
    status: AppointmentStatus | None = None


class AppointmentService:
    def __init__(self, db: AsyncSession, clock: BusinessClock | None = None):
        self.db = db
        self.clock = clock or BusinessClock()

    def _now(self) -> datetime:
        return self.clock.now()

    async def get(self, appointment_id: str) -> Appointment:
        return await self._get_by_id(appointment_id)

    async def list_appointments(self, filters: AppointmentFilters | None = None) -> list[Appointment]:
        filters = filters or AppointmentFilters()
        stmt = self._select_with_relations().order_by(Appointment.scheduled_date, Appointment.scheduled_time)
        if filters.start_date:
            stmt = stmt.where(Appointment.scheduled_date >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(Appointment.scheduled_date <= filters.end_date)
        if filters.client_id:
            stmt = stmt.where(Appointment.client_id == filters.client_id)
        if filters.vehicle_id:
            stmt = stmt.where(Appointment.vehicle_id == filters.vehicle_id)
        if filters.service_id:
            stmt = stmt.where(Appointment.service_id == filters.service_id)
        if filters.status:
            stmt = stmt.where(Appointment.status == filters.status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def history_for_client(self, client_id: str) -> list[Appointment]:
        stmt = (
            self._select_with_relations()
            .where(Appointment.client_id == client_id)
            .order_by(Appointment.scheduled_date.desc(), Appointment.scheduled_time.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def last_for_client(self, client_id: str) -> Appointment | None:
        """Most recently created appointment, used by the portal to repeat a booking."""
        stmt = (
            self._select_with_relations()
            .where(Appointment.client_id == client_id)
            .order_by(Appointment.created_at.desc(), Appointment.appointment_id.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_staff(self, payload: StaffAppointmentCreate, staff_user_id: str) -> Appointment:
        client = await self._get_client(payload.client_id)
        vehicle = await self._get_vehicle(payload.vehicle_id)
        if vehicle.client_id != client.client_id:
            raise ValidationError("The selected vehicle does not belong to this client")
        service = await self._get_service(payload.service_id)

        config = await load_business_config(self.db)
        self._ensure_future(payload.scheduled_date, payload.scheduled_time)
        self._ensure_business_hours(payload.scheduled_date, payload.scheduled_time, config)

        overlapping = await find_overlapping(
            self.db,
            payload.scheduled_date,
            payload.scheduled_time,
            service.duration_minutes,
        )
        if overlapping:
            logger.info(
                "Staff booking rejected: %s %s overlaps %d active appointment(s)",
                payload.scheduled_date,
                format_time(payload.scheduled_time),
                len(overlapping),
            )
            raise ScheduleConflictError("An appointment already exists at this time")

        appointment = Appointment(
            client_id=client.client_id,
            vehicle_id=vehicle.vehicle_id,
            service_id=service.service_id,
            scheduled_date=payload.scheduled_date,
            scheduled_time=payload.scheduled_time,
            status=AppointmentStatus.SCHEDULED,
            notes=payload.notes,
            created_by=staff_user_id,
            created_via=BookingChannel.STAFF,
        )
        self.db.add(appointment)
        created = await self._save(appointment, limit=config.max_concurrent_appointments)
        logger.info("Appointment %s booked by staff %s", created.appointment_id, staff_user_id)
        return created

    async def create_portal(self, payload: PortalAppointmentCreate, client_id: str) -> Appointment:
        client = await self._get_client(client_id)
        vehicle = await self._get_vehicle(payload.vehicle_id)
        if vehicle.client_id != client.client_id:
            raise OwnershipError("The selected vehicle does not belong to this customer")
        service = await self._get_service(payload.service_id)

        self._ensure_future(payload.scheduled_date, payload.scheduled_time)
        config = await load_business_config(self.db)
        await self._ensure_capacity(payload.scheduled_date, payload.scheduled_time, config)

        payment_status = None
        if payload.payment_method is not None:
            # Cash is settled at the counter; other methods wait for confirmation.
            if payload.payment_method == PaymentMethod.DINHEIRO:
                payment_status = PaymentStatus.UNPAID
            else:
                payment_status = PaymentStatus.PENDING

        appointment = Appointment(
            client_id=client.client_id,
            vehicle_id=vehicle.vehicle_id,
            service_id=service.service_id,
            scheduled_date=payload.scheduled_date,
            scheduled_time=payload.scheduled_time,
            status=AppointmentStatus.SCHEDULED,
            notes=payload.notes,
            payment_method=payload.payment_method,
            payment_status=payment_status,
            created_by=client.client_id,
            created_via=BookingChannel.PORTAL,
        )
        self.db.add(appointment)
        created = await self._save(appointment, limit=config.max_concurrent_appointments)
        logger.info("Appointment %s booked through the portal by client %s", created.appointment_id, client_id)
        return created

    async def update(self, appointment_id: str, payload: AppointmentUpdate) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field == "notes"
        }
        if not changes:
            raise ValidationError("No valid fields to update")

        if "client_id" in changes:
            await self._get_client(changes["client_id"])
        if "vehicle_id" in changes:
            await self._get_vehicle(changes["vehicle_id"])
        if "service_id" in changes:
            await self._get_service(changes["service_id"])

        new_date = changes.get("scheduled_date", appointment.scheduled_date)
        new_time = changes.get("scheduled_time", appointment.scheduled_time)
        if (new_date, new_time) != (appointment.scheduled_date, appointment.scheduled_time):
            config = await load_business_config(self.db)
            self._ensure_future(new_date, new_time)
            self._ensure_business_hours(new_date, new_time, config)
            # Staff edits do not re-check overlap or slot capacity.

        if "status" in changes and changes["status"] not in UPDATABLE_STATUSES:
            raise ValidationError(f"Status cannot be set to {changes['status']} directly")

        for field, value in changes.items():
            setattr(appointment, field, value)
        updated = await self._save(appointment, limit=None)
        logger.info("Appointment %s updated: %s", appointment_id, sorted(changes))
        return updated

    async def reschedule(
        self,
        appointment_id: str,
        new_date: date,
        new_time: time,
        client_id: str,
    ) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        if appointment.client_id != client_id:
            raise NotFoundError("Appointment not found")
        if appointment.status != AppointmentStatus.SCHEDULED:
            raise InvalidTransitionError("Only scheduled appointments can be rescheduled")

        self._ensure_future(new_date, new_time)
        config = await load_business_config(self.db)
        await self._ensure_capacity(new_date, new_time, config, exclude_id=appointment.appointment_id)

        appointment.scheduled_date = new_date
        appointment.scheduled_time = new_time
        rescheduled = await self._save(appointment, limit=config.max_concurrent_appointments)
        logger.info("Appointment %s rescheduled to %s %s", appointment_id, new_date, format_time(new_time))
        return rescheduled

    async def start(self, appointment_id: str) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        appointment.status = next_status(appointment.status, "start")
        if appointment.in_progress_at is None:
            appointment.in_progress_at = self._now()
        return await self._transitioned(appointment, "started")

    async def complete(self, appointment_id: str) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        appointment.status = next_status(appointment.status, "complete")
        if appointment.completed_at is None:
            appointment.completed_at = self._now()
        return await self._transitioned(appointment, "completed")

    async def cancel(self, appointment_id: str) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        appointment.status = next_status(appointment.status, "cancel")
        return await self._transitioned(appointment, "cancelled")

    async def pay(
        self,
        appointment_id: str,
        method: PaymentMethod | str | None,
        amount: Decimal | int | float | str | None = None,
    ) -> Appointment:
        payment_method = self._parse_payment_method(method)
        appointment = await self._get_by_id(appointment_id)
        new_status = next_status(appointment.status, "pay")

        if amount is None or amount == "":
            amount_paid = appointment.service.price if appointment.service else Decimal("0")
        else:
            amount_paid = self._parse_amount(amount)

        appointment.status = new_status
        appointment.payment_status = PaymentStatus.PAID
        appointment.payment_method = payment_method
        appointment.amount_paid = amount_paid
        if appointment.paid_at is None:
            appointment.paid_at = self._now()
        return await self._transitioned(appointment, f"paid ({payment_method}, {amount_paid})")

    async def delete(self, appointment_id: str) -> None:
        appointment = await self._get_by_id(appointment_id)
        if appointment.status in UNDELETABLE_STATUSES:
            raise InvalidTransitionError("Completed or paid appointments cannot be deleted")
        if appointment.scheduled_date < self.clock.today():
            raise PastDateError("Appointments from past dates cannot be deleted")

        try:
            await release_slot(self.db, appointment.appointment_id)
            await self.db.delete(appointment)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Appointment %s deleted", appointment_id)

    async def _transitioned(self, appointment: Appointment, label: str) -> Appointment:
        saved = await self._save(appointment, limit=None)
        logger.info("Appointment %s %s", saved.appointment_id, label)
        return saved

    async def _save(self, appointment: Appointment, limit: int | None) -> Appointment:
        """Flush, align the slot reservation with the new state and commit as one unit."""
        try:
            await self.db.flush()
            await sync_reservation(self.db, appointment, limit)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self._get_by_id(appointment.appointment_id)

    def _ensure_future(self, target_date: date, target_time: time) -> None:
        if self.clock.combine(target_date, target_time) <= self._now():
            raise PastDateError("Cannot book a date/time in the past")

    def _ensure_business_hours(self, target_date: date, target_time: time, config: BusinessConfig) -> None:
        if not Weekday.from_date(target_date).is_business_day:
            raise OutOfHoursError("Appointments can only be booked Monday to Friday")
        if not config.within_hours(target_time):
            raise OutOfHoursError(
                "Appointments must start between "
                f"{format_time(config.business_hours_start)} and {format_time(config.business_hours_end)}"
            )

    async def _ensure_capacity(
        self,
        target_date: date,
        target_time: time,
        config: BusinessConfig,
        exclude_id: str | None = None,
    ) -> None:
        if not await has_capacity(self.db, target_date, target_time, config, exclude_id=exclude_id):
            logger.info("Slot %s %s is full", target_date, format_time(target_time))
            raise ScheduleConflictError("Time slot unavailable")

    @staticmethod
    def _parse_payment_method(method: PaymentMethod | str | None) -> PaymentMethod:
        if method is None or not str(method).strip():
            raise ValidationError("Payment method is required")
        try:
            return PaymentMethod(str(method).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Invalid payment method '{method}'") from exc

    @staticmethod
    def _parse_amount(amount: Decimal | int | float | str) -> Decimal:
        try:
            value = Decimal(str(amount))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid payment amount '{amount}'") from exc
        if value < 0:
            raise ValidationError("Payment amount cannot be negative")
        return value

    async def _get_client(self, client_id: str) -> Client:
        result = await self.db.execute(select(Client).where(Client.client_id == client_id))
        client = result.scalar_one_or_none()
        if client is None or not client.is_active:
            raise ValidationError("Client not found or inactive")
        return client

    async def _get_vehicle(self, vehicle_id: str) -> Vehicle:
        result = await self.db.execute(select(Vehicle).where(Vehicle.vehicle_id == vehicle_id))
        vehicle = result.scalar_one_or_none()
        if vehicle is None or not vehicle.is_active:
            raise ValidationError("Vehicle not found or inactive")
        return vehicle

    async def _get_service(self, service_id: str) -> Service:
        result = await self.db.execute(select(Service).where(Service.service_id == service_id))
        service = result.scalar_one_or_none()
        if service is None or not service.is_active:
            raise ValidationError("Service not found or inactive")
        return service

    @staticmethod
    def _select_with_relations() -> Select:
        return select(Appointment).options(
            selectinload(Appointment.client),
            selectinload(Appointment.vehicle),
            selectinload(Appointment.service),
        )

    async def _get_by_id(self, appointment_id: str) -> Appointment:
        stmt = (
            self._select_with_relations()
            .where(Appointment.appointment_id == appointment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment
