import os
import sys
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from washbay.core.clock import BusinessClock  # noqa: E402
from washbay.core.database import Base, build_engine  # noqa: E402
from washbay.modules.appointments.models import Appointment  # noqa: E402,F401
from washbay.modules.catalog.models import Client, Service, Vehicle  # noqa: E402
from washbay.modules.schedule.models import BusinessSetting, SlotReservation  # noqa: E402,F401
from washbay.shared.models import generate_ulid  # noqa: E402

# Monday 2024-06-10, 07:00 in the business timezone.
NOW = datetime(2024, 6, 10, 7, 0)
TODAY = date(2024, 6, 10)
TOMORROW = date(2024, 6, 11)
SATURDAY = date(2024, 6, 15)


class FrozenClock(BusinessClock):
    def __init__(self, moment: datetime):
        super().__init__("America/Sao_Paulo")
        self.moment = moment if moment.tzinfo else moment.replace(tzinfo=self.tz)

    def now(self) -> datetime:
        return self.moment


@dataclass
class Catalog:
    client: Client
    vehicle: Vehicle
    other_client: Client
    other_vehicle: Vehicle
    service: Service
    long_service: Service


@pytest_asyncio.fixture
async def db_session():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest_asyncio.fixture
async def catalog(db_session) -> Catalog:
    client = Client(client_id=generate_ulid(), name="Ana Souza", phone="11999990000", is_active=True)
    other_client = Client(client_id=generate_ulid(), name="Bruno Lima", is_active=True)
    vehicle = Vehicle(
        vehicle_id=generate_ulid(),
        client_id=client.client_id,
        license_plate="ABC1D23",
        brand="Fiat",
        model="Uno",
        color="Branco",
        is_active=True,
    )
    other_vehicle = Vehicle(
        vehicle_id=generate_ulid(),
        client_id=other_client.client_id,
        license_plate="XYZ9K87",
        brand="VW",
        model="Gol",
        color="Prata",
        is_active=True,
    )
    service = Service(
        service_id=generate_ulid(),
        name="Lavagem Simples",
        price=Decimal("45.00"),
        duration_minutes=30,
        is_active=True,
    )
    long_service = Service(
        service_id=generate_ulid(),
        name="Lavagem Completa",
        price=Decimal("75.00"),
        duration_minutes=90,
        is_active=True,
    )
    db_session.add_all([client, other_client, vehicle, other_vehicle, service, long_service])
    await db_session.commit()
    return Catalog(
        client=client,
        vehicle=vehicle,
        other_client=other_client,
        other_vehicle=other_vehicle,
        service=service,
        long_service=long_service,
    )
