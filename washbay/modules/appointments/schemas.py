"""Appointments schemas."""

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from washbay.modules.schedule.slots import format_time, require_local_time
from washbay.shared.enums import AppointmentStatus, BookingChannel, PaymentMethod, PaymentStatus


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(serialization_alias="id")
    client_id: str
    vehicle_id: str
    service_id: str
    scheduled_date: date
    scheduled_time: time
    status: AppointmentStatus
    notes: str | None = None
    payment_status: PaymentStatus | None = None
    payment_method: PaymentMethod | None = None
    amount_paid: Decimal | None = None
    created_by: str
    created_via: BookingChannel
    created_at: datetime | None = None
    updated_at: datetime | None = None
    in_progress_at: datetime | None = None
    completed_at: datetime | None = None
    paid_at: datetime | None = None

    @field_serializer("scheduled_time")
    def _serialize_time(self, value: time) -> str:
        return format_time(value)


class AppointmentDetail(AppointmentPublic):
    client_name: str | None = None
    license_plate: str | None = None
    service_name: str | None = None
    service_price: Decimal | None = None
    duration_minutes: int | None = None


class _ScheduleFields(BaseModel):
    scheduled_date: date
    scheduled_time: time
    notes: str | None = None

    @field_validator("scheduled_time")
    @classmethod
    def business_local_time(cls, value):
        return require_local_time(value)


class StaffAppointmentCreate(_ScheduleFields):
    client_id: str = Field(min_length=1)
    vehicle_id: str = Field(min_length=1)
    service_id: str = Field(min_length=1)


class PortalAppointmentCreate(_ScheduleFields):
    vehicle_id: str = Field(min_length=1)
    service_id: str = Field(min_length=1)
    payment_method: PaymentMethod | None = None

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or None
        return value


class AppointmentUpdate(BaseModel):
    client_id: str | None = None
    vehicle_id: str | None = None
    service_id: str | None = None
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    status: AppointmentStatus | None = None
    notes: str | None = None

    @field_validator("scheduled_time")
    @classmethod
    def business_local_time(cls, value):
        return require_local_time(value)


class RescheduleRequest(BaseModel):
    new_date: date
    new_time: time

    @field_validator("new_time")
    @classmethod
    def business_local_time(cls, value):
        return require_local_time(value)


class PaymentRequest(BaseModel):
    method: str = ""
    amount: Decimal | None = Field(None, ge=0)
