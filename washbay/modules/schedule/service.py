"""Business logic for computing availability."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from washbay.core.clock import BusinessClock
from washbay.core.exceptions import PastDateError
from washbay.modules.schedule.capacity import active_counts_by_time
from washbay.modules.schedule.config import BusinessConfig, load_business_config
from washbay.modules.schedule.schemas import AvailableTimes, SuggestedSlots
from washbay.modules.schedule.slots import generate_slots
from washbay.shared.enums import Weekday

logger = logging.getLogger(__name__)

CLOSED_ON_WEEKENDS = "No service on weekends"


async def get_available_times(
    target_date: date,
    db: AsyncSession,
    clock: BusinessClock | None = None,
    config: BusinessConfig | None = None,
) -> AvailableTimes:
    """Free start times for ``target_date`` as seen by staff.

    Times already passed today and slots at full capacity are dropped;
    ``occupied_times`` lists every time holding at least one active booking.
    """
    clock = clock or BusinessClock()
    today = clock.today()
    if target_date < today:
        raise PastDateError("Cannot check availability for past dates")

    if not Weekday.from_date(target_date).is_business_day:
        return AvailableTimes(target_date=target_date, available=False, message=CLOSED_ON_WEEKENDS)

    config = config or await load_business_config(db)
    slots = generate_slots(target_date, config)
    if target_date == today:
        now = clock.now()
        slots = [slot for slot in slots if clock.combine(target_date, slot) > now]

    counts = await active_counts_by_time(db, target_date)
    free = [slot for slot in slots if counts.get(slot, 0) < config.max_concurrent_appointments]
    return AvailableTimes(
        target_date=target_date,
        available=bool(free),
        available_times=free,
        occupied_times=sorted(counts),
        total_slots=len(slots),
        available_slots=len(free),
    )


async def get_suggested_slots(
    db: AsyncSession,
    target_date: date | None = None,
    clock: BusinessClock | None = None,
    config: BusinessConfig | None = None,
) -> SuggestedSlots:
    """Portal suggestions: every generated slot still under capacity, nothing else."""
    if target_date is None:
        target_date = (clock or BusinessClock()).today()
    config = config or await load_business_config(db)
    counts = await active_counts_by_time(db, target_date)
    slots = [
        slot
        for slot in generate_slots(target_date, config)
        if counts.get(slot, 0) < config.max_concurrent_appointments
    ]
    logger.debug("Suggested %d slots for %s", len(slots), target_date)
    return SuggestedSlots(target_date=target_date, slots=slots)
