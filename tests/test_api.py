from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import create_app
from tests.conftest import SATURDAY, TOMORROW
from washbay.core.clock import get_clock
from washbay.core.database import get_db
from washbay.core.security import create_access_token, decode_access_token
from washbay.shared.enums import UserRole

STAFF_ID = "01STAFFUSER000000000000000"
ADMIN_ID = "01ADMINUSER000000000000000"


def _auth(subject: str, role: UserRole, client_id: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject, role.value, client_id=client_id)}"}


@pytest_asyncio.fixture
async def api_client(db_session, clock):
    app = create_app()

    async def override_db():
        yield db_session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def staff_headers():
    return _auth(STAFF_ID, UserRole.EMPLOYEE)


@pytest.fixture
def customer_headers(catalog):
    return _auth("customer-login", UserRole.CUSTOMER, client_id=catalog.client.client_id)


@pytest.mark.asyncio
async def test_routes_require_a_valid_token(api_client, customer_headers):
    assert (await api_client.get("/api/schedule")).status_code == 401

    bad = await api_client.get("/api/schedule", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401

    forbidden = await api_client.get("/api/schedule", headers=customer_headers)
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_staff_books_and_walks_appointment_through_lifecycle(api_client, catalog, staff_headers):
    created = await api_client.post(
        "/api/schedule",
        json={
            "client_id": catalog.client.client_id,
            "vehicle_id": catalog.vehicle.vehicle_id,
            "service_id": catalog.service.service_id,
            "scheduled_date": TOMORROW.isoformat(),
            "scheduled_time": "09:00",
        },
        headers=staff_headers,
    )
    assert created.status_code == 201
    body = created.json()
    appointment_id = body["id"]
    assert body["scheduled_time"] == "09:00"
    assert body["status"] == "scheduled"
    assert body["created_by"] == STAFF_ID
    assert body["license_plate"] == "ABC1D23"

    for action, expected in (("start", "in_progress"), ("complete", "completed")):
        response = await api_client.post(f"/api/schedule/{appointment_id}/{action}", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["status"] == expected

    paid = await api_client.post(
        f"/api/schedule/{appointment_id}/pay",
        json={"method": "PIX"},
        headers=staff_headers,
    )
    assert paid.status_code == 200
    assert paid.json()["payment_method"] == "pix"
    assert Decimal(paid.json()["amount_paid"]) == Decimal("45")

    again = await api_client.post(f"/api/schedule/{appointment_id}/start", headers=staff_headers)
    assert again.status_code == 400
    assert again.json() == {
        "success": False,
        "error": "InvalidTransitionError",
        "message": again.json()["message"],
    }

    refused = await api_client.delete(f"/api/schedule/{appointment_id}", headers=staff_headers)
    assert refused.status_code == 400


@pytest.mark.asyncio
async def test_domain_errors_map_to_status_codes(api_client, catalog, staff_headers, customer_headers):
    base = {
        "client_id": catalog.client.client_id,
        "vehicle_id": catalog.vehicle.vehicle_id,
        "service_id": catalog.service.service_id,
        "scheduled_date": SATURDAY.isoformat(),
        "scheduled_time": "09:00",
    }
    weekend = await api_client.post("/api/schedule", json=base, headers=staff_headers)
    assert weekend.status_code == 400
    assert weekend.json()["error"] == "OutOfHoursError"

    past = await api_client.post(
        "/api/schedule",
        json={**base, "scheduled_date": "2024-06-07"},
        headers=staff_headers,
    )
    assert past.status_code == 400
    assert past.json()["error"] == "PastDateError"

    missing = await api_client.get("/api/schedule/does-not-exist", headers=staff_headers)
    assert missing.status_code == 404

    foreign = await api_client.post(
        "/api/portal/schedule",
        json={
            "vehicle_id": catalog.other_vehicle.vehicle_id,
            "service_id": catalog.service.service_id,
            "scheduled_date": TOMORROW.isoformat(),
            "scheduled_time": "09:00",
        },
        headers=customer_headers,
    )
    assert foreign.status_code == 403
    assert foreign.json()["error"] == "OwnershipError"


@pytest.mark.asyncio
async def test_portal_booking_flow(api_client, catalog, customer_headers, staff_headers):
    admin_headers = _auth(ADMIN_ID, UserRole.ADMIN)
    settings_resp = await api_client.put(
        "/api/settings/business",
        json={"max_concurrent_appointments": 1},
        headers=admin_headers,
    )
    assert settings_resp.status_code == 200
    assert settings_resp.json()["max_concurrent_appointments"] == 1

    slots = await api_client.get(
        "/api/portal/suggested-slots",
        params={"date": TOMORROW.isoformat()},
        headers=customer_headers,
    )
    assert slots.status_code == 200
    assert slots.json()["date"] == TOMORROW.isoformat()
    assert slots.json()["slots"][0] == "08:00"

    booking = {
        "vehicle_id": catalog.vehicle.vehicle_id,
        "service_id": catalog.service.service_id,
        "scheduled_date": TOMORROW.isoformat(),
        "scheduled_time": "08:00",
        "payment_method": "pix",
    }
    created = await api_client.post("/api/portal/schedule", json=booking, headers=customer_headers)
    assert created.status_code == 201
    assert created.json()["payment_status"] == "pending"
    assert created.json()["created_via"] == "portal"
    appointment_id = created.json()["id"]

    full = await api_client.post("/api/portal/schedule", json=booking, headers=customer_headers)
    assert full.status_code == 409
    assert full.json()["error"] == "ScheduleConflictError"

    availability = await api_client.get(f"/api/schedule/available-times/{TOMORROW.isoformat()}", headers=staff_headers)
    assert "08:00" not in availability.json()["available_times"]
    assert availability.json()["occupied_times"] == ["08:00"]

    moved = await api_client.post(
        f"/api/portal/reschedule/{appointment_id}",
        json={"new_date": TOMORROW.isoformat(), "new_time": "10:30"},
        headers=customer_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["scheduled_time"] == "10:30"

    history = await api_client.get("/api/portal/history", headers=customer_headers)
    assert [item["id"] for item in history.json()] == [appointment_id]

    last = await api_client.get("/api/portal/last-schedule", headers=customer_headers)
    assert last.json()["id"] == appointment_id


@pytest.mark.asyncio
async def test_business_settings_require_admin_to_change(api_client, staff_headers):
    current = await api_client.get("/api/settings/business", headers=staff_headers)
    assert current.status_code == 200
    assert current.json() == {
        "business_hours_start": "08:00",
        "business_hours_end": "18:00",
        "appointment_interval_minutes": 30,
        "max_concurrent_appointments": 3,
    }

    denied = await api_client.put(
        "/api/settings/business",
        json={"appointment_interval_minutes": 15},
        headers=staff_headers,
    )
    assert denied.status_code == 403

    invalid = await api_client.put(
        "/api/settings/business",
        json={"business_hours_start": "19:00"},
        headers=_auth(ADMIN_ID, UserRole.ADMIN),
    )
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_health_endpoint(api_client):
    response = await api_client.get("/api/health")
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_times_with_utc_offset_are_rejected(api_client, catalog, staff_headers, customer_headers):
    booking = await api_client.post(
        "/api/schedule",
        json={
            "client_id": catalog.client.client_id,
            "vehicle_id": catalog.vehicle.vehicle_id,
            "service_id": catalog.service.service_id,
            "scheduled_date": TOMORROW.isoformat(),
            "scheduled_time": "10:00:00Z",
        },
        headers=staff_headers,
    )
    assert booking.status_code == 422

    settings_resp = await api_client.put(
        "/api/settings/business",
        json={"business_hours_start": "07:00:00Z"},
        headers=_auth(ADMIN_ID, UserRole.ADMIN),
    )
    assert settings_resp.status_code == 422

    moved = await api_client.post(
        "/api/portal/reschedule/any-id",
        json={"new_date": TOMORROW.isoformat(), "new_time": "10:00:00-03:00"},
        headers=customer_headers,
    )
    assert moved.status_code == 422

    current = await api_client.get("/api/settings/business", headers=staff_headers)
    assert current.json()["business_hours_start"] == "08:00"


def test_customer_token_carries_role_and_client_id():
    token = create_access_token("customer-login", UserRole.CUSTOMER.value, client_id="01CLIENT")
    payload = decode_access_token(token)

    assert payload["sub"] == "customer-login"
    assert payload["role"] == "customer"
    assert payload["client_id"] == "01CLIENT"
    assert "client_id" not in decode_access_token(create_access_token(STAFF_ID, UserRole.EMPLOYEE.value))
