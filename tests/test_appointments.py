"""Tests for appointment endpoints."""

from datetime import datetime, time, timedelta
from uuid import uuid4

import pytest
from conftest import bearer
from httpx import AsyncClient


def payload(provider: dict, day, at: time = time(10, 0), **overrides) -> dict:
    data = {
        "provider_id": str(provider["id"]),
        "start_time": datetime.combine(day, at).isoformat(),
        "duration": 30,
        "reason": "Persistent headache",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_detailed_health_check(client: AsyncClient) -> None:
    """Redis is reported disabled and the database reachable."""
    response = await client.get("/api/v1/health/detailed")
    assert response.status_code == 200
    data = response.json()
    assert data["database"] == "healthy"
    assert data["redis"] == "disabled"
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_create_appointment(
    client: AsyncClient,
    patient_headers: dict,
    test_provider: dict,
    next_monday,
) -> None:
    """Test creating an appointment."""
    response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday),
        headers=patient_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "scheduled"
    assert data["provider_id"] == str(test_provider["id"])
    assert data["patient_snapshot"]["last_name"] == "Doe"
    assert "id" in data


@pytest.mark.asyncio
async def test_create_appointment_requires_auth(
    client: AsyncClient, test_provider: dict, next_monday
) -> None:
    """Anonymous callers are rejected."""
    response = await client.post(
        "/api/v1/appointments/", json=payload(test_provider, next_monday)
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Not authenticated"


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient) -> None:
    """Garbage tokens are rejected."""
    response = await client.get(
        "/api/v1/appointments/", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_providers_cannot_book(
    client: AsyncClient, provider_headers: dict, test_provider: dict, next_monday
) -> None:
    """Only patients may book."""
    response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday),
        headers=provider_headers,
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_booking_needs_two_hours_notice(
    client: AsyncClient, patient_headers: dict, test_provider: dict
) -> None:
    """Start times less than two hours away fail request validation."""
    soon = datetime.now() + timedelta(hours=1)
    response = await client.post(
        "/api/v1/appointments/",
        json={**payload(test_provider, soon.date()), "start_time": soon.isoformat()},
        headers=patient_headers,
    )
    assert response.status_code == 422
    assert "at least 2 hours in advance" in response.json()["message"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"duration": 10}, {"duration": 150}, {"reason": "Hi"}],
)
async def test_booking_payload_bounds(
    client: AsyncClient, patient_headers: dict, test_provider: dict, next_monday, overrides
) -> None:
    """Duration and reason length are bounded."""
    response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday, **overrides),
        headers=patient_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_double_booking_conflict(
    client: AsyncClient, patient_headers: dict, test_provider: dict, next_monday
) -> None:
    """A taken slot answers 409 with the reason."""
    first = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday),
        headers=patient_headers,
    )
    assert first.status_code == 201

    second = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday, time(10, 15)),
        headers=patient_headers,
    )
    assert second.status_code == 409
    body = second.json()
    assert body["error"] == "ConflictException"
    assert body["message"] == "Time slot is not available"


@pytest.mark.asyncio
async def test_outside_availability_is_bad_request(
    client: AsyncClient, patient_headers: dict, test_provider: dict, next_wednesday
) -> None:
    """Business-rule violations answer 400."""
    response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_wednesday),
        headers=patient_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationException"


@pytest.mark.asyncio
async def test_list_appointments(
    client: AsyncClient, patient_headers: dict, test_provider: dict, next_monday
) -> None:
    """Test listing appointments."""
    for at in (time(9, 0), time(11, 0)):
        await client.post(
            "/api/v1/appointments/",
            json=payload(test_provider, next_monday, at),
            headers=patient_headers,
        )

    response = await client.get(
        "/api/v1/appointments/", params={"limit": 1}, headers=patient_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["limit"] == 1
    assert len(data["appointments"]) == 1
    assert data["appointments"][0]["start_time"].endswith("11:00:00")


@pytest.mark.asyncio
async def test_provider_agenda(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    test_provider: dict,
    next_monday,
) -> None:
    """Providers list their own upcoming appointments, oldest first."""
    for at in (time(14, 0), time(9, 0)):
        await client.post(
            "/api/v1/appointments/",
            json=payload(test_provider, next_monday, at),
            headers=patient_headers,
        )

    response = await client.get(
        "/api/v1/appointments/",
        params={
            "start_date": datetime.combine(next_monday, time.min).isoformat(),
            "end_date": datetime.combine(next_monday, time.max).isoformat(),
        },
        headers=provider_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [a["start_time"][11:16] for a in data["appointments"]] == ["09:00", "14:00"]


@pytest.mark.asyncio
async def test_provider_agenda_rejects_inverted_range(
    client: AsyncClient, provider_headers: dict, next_monday
) -> None:
    """The agenda range must not end before it starts."""
    response = await client.get(
        "/api/v1/appointments/",
        params={
            "start_date": datetime.combine(next_monday, time(12, 0)).isoformat(),
            "end_date": datetime.combine(next_monday, time(8, 0)).isoformat(),
        },
        headers=provider_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "BadRequestException"


@pytest.mark.asyncio
async def test_admin_cannot_list(client: AsyncClient) -> None:
    """Admins have no appointment list."""
    response = await client.get("/api/v1/appointments/", headers=bearer(uuid4(), "admin"))
    assert response.status_code == 403
    assert response.json()["message"] == "Invalid user role"


@pytest.mark.asyncio
async def test_get_appointment(
    client: AsyncClient,
    patient_headers: dict,
    other_patient: dict,
    test_provider: dict,
    next_monday,
) -> None:
    """Test getting a specific appointment."""
    create_response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday),
        headers=patient_headers,
    )
    appointment_id = create_response.json()["id"]

    response = await client.get(
        f"/api/v1/appointments/{appointment_id}",
        headers=patient_headers,
    )
    assert response.status_code == 200
    assert response.json()["id"] == appointment_id

    forbidden = await client.get(
        f"/api/v1/appointments/{appointment_id}",
        headers=bearer(other_patient["id"], "patient"),
    )
    assert forbidden.status_code == 403

    missing = await client.get(f"/api/v1/appointments/{uuid4()}", headers=patient_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Appointment not found"


@pytest.mark.asyncio
async def test_update_appointment(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    test_provider: dict,
    next_monday,
) -> None:
    """Providers confirm; patients cannot touch the status."""
    create_response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday),
        headers=patient_headers,
    )
    appointment_id = create_response.json()["id"]

    denied = await client.patch(
        f"/api/v1/appointments/{appointment_id}",
        json={"status": "confirmed"},
        headers=patient_headers,
    )
    assert denied.status_code == 403

    confirmed = await client.patch(
        f"/api/v1/appointments/{appointment_id}",
        json={"status": "confirmed", "notes": "Bring previous lab results"},
        headers=provider_headers,
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"
    assert confirmed.json()["notes"] == "Bring previous lab results"

    rewound = await client.patch(
        f"/api/v1/appointments/{appointment_id}",
        json={"status": "scheduled"},
        headers=provider_headers,
    )
    assert rewound.status_code == 400
    assert rewound.json()["message"] == (
        "Cannot change appointment status from confirmed to scheduled"
    )


@pytest.mark.asyncio
async def test_cancel_appointment(
    client: AsyncClient, patient_headers: dict, test_provider: dict, next_monday
) -> None:
    """Cancelling answers 204, keeps the record and is repeatable."""
    create_response = await client.post(
        "/api/v1/appointments/",
        json=payload(test_provider, next_monday),
        headers=patient_headers,
    )
    appointment_id = create_response.json()["id"]

    response = await client.delete(
        f"/api/v1/appointments/{appointment_id}", headers=patient_headers
    )
    assert response.status_code == 204

    again = await client.delete(f"/api/v1/appointments/{appointment_id}", headers=patient_headers)
    assert again.status_code == 204

    stored = await client.get(f"/api/v1/appointments/{appointment_id}", headers=patient_headers)
    assert stored.json()["status"] == "cancelled"
    assert stored.json()["cancelled_at"] is not None
