"""Business-timezone clock."""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from .config import settings


class BusinessClock:
    """Supplies "now" and date/time arithmetic in the single business timezone."""

    def __init__(self, timezone: str | None = None):
        self.tz = ZoneInfo(timezone or settings.business_timezone)

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)

    def today(self) -> date:
        return self.now().date()

    def combine(self, day: date, value: time) -> datetime:
        """Build an aware instant from a local business date and time-of-day."""
        return datetime.combine(day, value.replace(tzinfo=None), tzinfo=self.tz)


def get_clock() -> BusinessClock:
    return BusinessClock()
