"""Business configuration loaded from the business_settings table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from washbay.core.config import settings
from washbay.core.exceptions import ValidationError
from washbay.modules.schedule.models import BusinessSetting
from washbay.modules.schedule.slots import format_time, parse_time

logger = logging.getLogger(__name__)

KEY_HOURS_START = "business_hours_start"
KEY_HOURS_END = "business_hours_end"
KEY_INTERVAL = "appointment_interval"
KEY_CAPACITY = "max_concurrent_appointments"

SETTING_DESCRIPTIONS = {
    KEY_HOURS_START: "Business hours start (HH:MM)",
    KEY_HOURS_END: "Business hours end (HH:MM)",
    KEY_INTERVAL: "Interval between appointment slots (minutes)",
    KEY_CAPACITY: "Maximum concurrent appointments per slot",
}


@dataclass(frozen=True)
class BusinessConfig:
    business_hours_start: time
    business_hours_end: time
    appointment_interval_minutes: int
    max_concurrent_appointments: int

    def within_hours(self, value: time) -> bool:
        return self.business_hours_start <= value < self.business_hours_end

    def validate(self) -> None:
        if self.business_hours_start >= self.business_hours_end:
            raise ValidationError("Business hours start must be before business hours end")
        if self.appointment_interval_minutes <= 0:
            raise ValidationError("Appointment interval must be a positive number of minutes")
        if self.max_concurrent_appointments < 1:
            raise ValidationError("Max concurrent appointments must be at least 1")


def default_business_config() -> BusinessConfig:
    return BusinessConfig(
        business_hours_start=parse_time(settings.default_business_hours_start),
        business_hours_end=parse_time(settings.default_business_hours_end),
        appointment_interval_minutes=settings.default_appointment_interval,
        max_concurrent_appointments=settings.default_max_concurrent_appointments,
    )


def _read(rows: dict[str, str], key: str, parser, fallback, accept=None):
    raw = rows.get(key)
    if raw is None:
        return fallback
    try:
        value = parser(raw)
    except ValueError:
        value = None
    if value is None or (accept is not None and not accept(value)):
        logger.warning("Ignoring invalid business setting %s=%r, using %r", key, raw, fallback)
        return fallback
    return value


async def load_business_config(db: AsyncSession) -> BusinessConfig:
    """Read the current business configuration. Never cached: settings may change between requests."""
    result = await db.execute(select(BusinessSetting).where(BusinessSetting.key.in_(SETTING_DESCRIPTIONS)))
    rows = {row.key: row.value for row in result.scalars().all()}
    defaults = default_business_config()
    start = _read(rows, KEY_HOURS_START, parse_time, defaults.business_hours_start)
    end = _read(rows, KEY_HOURS_END, parse_time, defaults.business_hours_end)
    if start >= end:
        logger.warning(
            "Ignoring inverted business hours %s-%s, using %s-%s",
            format_time(start),
            format_time(end),
            format_time(defaults.business_hours_start),
            format_time(defaults.business_hours_end),
        )
        start, end = defaults.business_hours_start, defaults.business_hours_end
    return BusinessConfig(
        business_hours_start=start,
        business_hours_end=end,
        appointment_interval_minutes=_read(
            rows, KEY_INTERVAL, int, defaults.appointment_interval_minutes, accept=lambda value: value > 0
        ),
        max_concurrent_appointments=_read(
            rows, KEY_CAPACITY, int, defaults.max_concurrent_appointments, accept=lambda value: value >= 1
        ),
    )


async def update_business_config(db: AsyncSession, **changes) -> BusinessConfig:
    """Validate and persist a partial update of the business configuration."""
    current = await load_business_config(db)
    updated = replace(current, **{field: value for field, value in changes.items() if value is not None})
    updated.validate()

    values = {
        KEY_HOURS_START: format_time(updated.business_hours_start),
        KEY_HOURS_END: format_time(updated.business_hours_end),
        KEY_INTERVAL: str(updated.appointment_interval_minutes),
        KEY_CAPACITY: str(updated.max_concurrent_appointments),
    }
    result = await db.execute(select(BusinessSetting).where(BusinessSetting.key.in_(values)))
    existing = {row.key: row for row in result.scalars().all()}
    for key, value in values.items():
        row = existing.get(key)
        if row is None:
            db.add(BusinessSetting(key=key, value=value, description=SETTING_DESCRIPTIONS[key]))
        else:
            row.value = value
    await db.commit()
    logger.info("Business configuration updated: %s", values)
    return updated
