from datetime import date, time

import pytest

from washbay.modules.schedule.config import BusinessConfig
from washbay.modules.schedule.slots import format_time, generate_slots, parse_time, to_minutes


def _config(start: str, end: str, interval: int, capacity: int = 3) -> BusinessConfig:
    return BusinessConfig(
        business_hours_start=parse_time(start),
        business_hours_end=parse_time(end),
        appointment_interval_minutes=interval,
        max_concurrent_appointments=capacity,
    )


def test_default_business_day_yields_twenty_half_hour_slots():
    slots = generate_slots(date(2024, 6, 10), _config("08:00", "18:00", 30))
    assert len(slots) == 20
    assert slots[0] == time(8, 0)
    assert slots[-1] == time(17, 30)


def test_uneven_interval_drops_partial_final_slot():
    slots = generate_slots(date(2024, 6, 10), _config("08:00", "09:00", 25))
    assert [format_time(slot) for slot in slots] == ["08:00", "08:25", "08:50"]


@pytest.mark.parametrize(
    ("start", "end", "interval"),
    [("08:00", "18:00", 30), ("07:30", "12:10", 20), ("09:15", "17:45", 45), ("10:00", "10:05", 60)],
)
def test_slots_stay_inside_business_hours_and_evenly_spaced(start, end, interval):
    config = _config(start, end, interval)
    slots = generate_slots(date(2024, 6, 10), config)

    assert slots, "at least the opening time is always a slot"
    assert slots[0] == config.business_hours_start
    assert all(config.business_hours_start <= slot < config.business_hours_end for slot in slots)
    gaps = {to_minutes(b) - to_minutes(a) for a, b in zip(slots, slots[1:])}
    assert gaps <= {interval}
    assert slots == sorted(slots)


def test_slots_do_not_depend_on_date():
    config = _config("08:00", "12:00", 60)
    assert generate_slots(date(2024, 6, 10), config) == generate_slots(date(2024, 12, 25), config)


def test_non_positive_interval_is_rejected():
    with pytest.raises(ValueError):
        generate_slots(date(2024, 6, 10), _config("08:00", "18:00", 0))


def test_parse_time_accepts_seconds_and_rejects_garbage():
    assert parse_time("08:00") == time(8, 0)
    assert parse_time(" 17:30:00 ") == time(17, 30)
    with pytest.raises(ValueError):
        parse_time("8h")
    with pytest.raises(ValueError):
        parse_time("25:00")
