from datetime import time

import pytest
from sqlalchemy import select

from washbay.core.exceptions import ValidationError
from washbay.modules.schedule.config import (
    KEY_CAPACITY,
    KEY_HOURS_END,
    KEY_HOURS_START,
    KEY_INTERVAL,
    default_business_config,
    load_business_config,
    update_business_config,
)
from washbay.modules.schedule.models import BusinessSetting


@pytest.mark.asyncio
async def test_missing_rows_fall_back_to_defaults(db_session):
    config = await load_business_config(db_session)

    assert config == default_business_config()
    assert config.business_hours_start == time(8, 0)
    assert config.business_hours_end == time(18, 0)
    assert config.appointment_interval_minutes == 30
    assert config.max_concurrent_appointments == 3


@pytest.mark.asyncio
async def test_update_persists_rows_and_is_visible_on_next_read(db_session):
    updated = await update_business_config(db_session, appointment_interval_minutes=45, max_concurrent_appointments=2)
    assert updated.appointment_interval_minutes == 45

    reloaded = await load_business_config(db_session)
    assert reloaded.appointment_interval_minutes == 45
    assert reloaded.max_concurrent_appointments == 2
    assert reloaded.business_hours_start == time(8, 0)

    result = await db_session.execute(select(BusinessSetting).where(BusinessSetting.key == KEY_INTERVAL))
    row = result.scalar_one()
    assert row.value == "45"
    assert row.description

    await update_business_config(db_session, appointment_interval_minutes=20)
    assert (await load_business_config(db_session)).appointment_interval_minutes == 20


@pytest.mark.asyncio
async def test_malformed_rows_are_ignored(db_session):
    db_session.add(BusinessSetting(key=KEY_CAPACITY, value="lots"))
    await db_session.commit()

    config = await load_business_config(db_session)

    assert config.max_concurrent_appointments == default_business_config().max_concurrent_appointments


@pytest.mark.parametrize(
    "changes",
    [
        {"business_hours_start": time(18, 0), "business_hours_end": time(8, 0)},
        {"business_hours_end": time(8, 0)},
        {"appointment_interval_minutes": 0},
        {"max_concurrent_appointments": 0},
    ],
)
@pytest.mark.asyncio
async def test_invalid_updates_are_rejected_and_not_stored(db_session, changes):
    with pytest.raises(ValidationError):
        await update_business_config(db_session, **changes)

    result = await db_session.execute(select(BusinessSetting))
    assert result.scalars().all() == []


@pytest.mark.parametrize(
    ("rows", "expected"),
    [
        ({KEY_INTERVAL: "0"}, {"appointment_interval_minutes": 30}),
        ({KEY_INTERVAL: "-15"}, {"appointment_interval_minutes": 30}),
        ({KEY_CAPACITY: "0"}, {"max_concurrent_appointments": 3}),
        (
            {KEY_HOURS_START: "19:00", KEY_HOURS_END: "07:00"},
            {"business_hours_start": time(8, 0), "business_hours_end": time(18, 0)},
        ),
    ],
)
@pytest.mark.asyncio
async def test_out_of_range_rows_fall_back_to_defaults(db_session, rows, expected):
    db_session.add_all([BusinessSetting(key=key, value=value) for key, value in rows.items()])
    await db_session.commit()

    config = await load_business_config(db_session)

    for field, value in expected.items():
        assert getattr(config, field) == value
    config.validate()
