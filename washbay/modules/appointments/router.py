"""Appointments API routes (staff schedule and customer portal)."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from washbay.core.clock import BusinessClock, get_clock
from washbay.core.database import get_db
from washbay.core.deps import Actor, require_customer, require_staff
from washbay.modules.appointments.schemas import (
    AppointmentDetail,
    AppointmentUpdate,
    PaymentRequest,
    PortalAppointmentCreate,
    RescheduleRequest,
    StaffAppointmentCreate,
)
from washbay.modules.appointments.service import AppointmentFilters, AppointmentService
from washbay.shared.enums import AppointmentStatus

router = APIRouter(prefix="/api/schedule", tags=["schedule"])
portal_router = APIRouter(prefix="/api/portal", tags=["portal"])


def get_service(
    db: AsyncSession = Depends(get_db),
    clock: BusinessClock = Depends(get_clock),
) -> AppointmentService:
    return AppointmentService(db, clock)


@router.get("", response_model=list[AppointmentDetail])
async def list_appointments(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    client_id: str | None = Query(None),
    vehicle_id: str | None = Query(None),
    service_id: str | None = Query(None),
    status_value: AppointmentStatus | None = Query(None, alias="status"),
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentDetail]:
    filters = AppointmentFilters(
        start_date=start_date,
        end_date=end_date,
        client_id=client_id,
        vehicle_id=vehicle_id,
        service_id=service_id,
        status=status_value,
    )
    return await service.list_appointments(filters)


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: str,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.get(appointment_id)


@router.post("", response_model=AppointmentDetail, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: StaffAppointmentCreate,
    current: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.create_staff(payload, current.subject)


@router.put("/{appointment_id}", response_model=AppointmentDetail)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.update(appointment_id, payload)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> None:
    await service.delete(appointment_id)


@router.post("/{appointment_id}/start", response_model=AppointmentDetail)
async def start_appointment(
    appointment_id: str,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.start(appointment_id)


@router.post("/{appointment_id}/complete", response_model=AppointmentDetail)
async def complete_appointment(
    appointment_id: str,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.complete(appointment_id)


@router.post("/{appointment_id}/cancel", response_model=AppointmentDetail)
async def cancel_appointment(
    appointment_id: str,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.cancel(appointment_id)


@router.post("/{appointment_id}/pay", response_model=AppointmentDetail)
async def pay_appointment(
    appointment_id: str,
    payload: PaymentRequest,
    _: Actor = Depends(require_staff),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.pay(appointment_id, payload.method, payload.amount)


@portal_router.post("/schedule", response_model=AppointmentDetail, status_code=status.HTTP_201_CREATED)
async def portal_create_appointment(
    payload: PortalAppointmentCreate,
    customer: Actor = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.create_portal(payload, customer.client_id)


@portal_router.post("/reschedule/{appointment_id}", response_model=AppointmentDetail)
async def portal_reschedule_appointment(
    appointment_id: str,
    payload: RescheduleRequest,
    customer: Actor = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail:
    return await service.reschedule(appointment_id, payload.new_date, payload.new_time, customer.client_id)


@portal_router.get("/history", response_model=list[AppointmentDetail])
async def portal_history(
    customer: Actor = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentDetail]:
    return await service.history_for_client(customer.client_id)


@portal_router.get("/last-schedule", response_model=AppointmentDetail | None)
async def portal_last_schedule(
    customer: Actor = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> AppointmentDetail | None:
    return await service.last_for_client(customer.client_id)
