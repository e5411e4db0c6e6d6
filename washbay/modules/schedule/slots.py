"""Slot generation from business hours.

Pure functions: no clock, no timezone and no database access, so the same
date and configuration always yield the same slots.
"""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from washbay.modules.schedule.config import BusinessConfig


def parse_time(value: str) -> time:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string into a time-of-day."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"invalid time-of-day {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def require_local_time(value: time | None) -> time | None:
    """Reject offset-carrying times; every time-of-day is business-local."""
    if value is not None and value.tzinfo is not None:
        raise ValueError("time must not carry a UTC offset; use business-local time")
    return value


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def generate_slots(target_date: date, config: BusinessConfig) -> list[time]:
    """Every start time in ``[start, end)`` stepping by the configured interval.

    A trailing remainder shorter than the interval produces no extra slot. The
    result is identical for every ``target_date``; callers that need to drop
    already-passed times on the current day do so themselves.
    """
    interval = config.appointment_interval_minutes
    if interval <= 0:
        raise ValueError("appointment interval must be positive")

    end = to_minutes(config.business_hours_end)
    slots: list[time] = []
    cursor = to_minutes(config.business_hours_start)
    while cursor < end:
        slots.append(from_minutes(cursor))
        cursor += interval
    return slots
