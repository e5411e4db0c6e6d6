"""Availability routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from washbay.core.clock import BusinessClock, get_clock
from washbay.core.database import get_db
from washbay.core.deps import Actor, require_customer, require_staff
from washbay.modules.schedule.schemas import AvailableTimes, SuggestedSlots
from washbay.modules.schedule.service import get_available_times, get_suggested_slots

router = APIRouter(prefix="/api/schedule", tags=["schedule"])
portal_router = APIRouter(prefix="/api/portal", tags=["portal"])


@router.get("/available-times/{target_date}", response_model=AvailableTimes)
async def available_times(
    target_date: date,
    _: Actor = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    clock: BusinessClock = Depends(get_clock),
) -> AvailableTimes:
    return await get_available_times(target_date, db, clock)


@portal_router.get("/suggested-slots", response_model=SuggestedSlots)
async def suggested_slots(
    date_value: date | None = Query(None, alias="date"),
    _: Actor = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
    clock: BusinessClock = Depends(get_clock),
) -> SuggestedSlots:
    return await get_suggested_slots(db, date_value, clock)
