"""
Tests for the HTTP surface: status codes, error bodies and response shapes.
"""

import pytest
from httpx import AsyncClient

from trekadmin.services.batch_lifecycle import BATCH_COMPLETED, BOOKING_COMPLETED

from helpers import batch_payload, days_from_today, set_batch_dates, trek_payload


# ---------- treks ----------

@pytest.mark.asyncio
async def test_create_trek(client: AsyncClient):
    response = await client.post("/api/v1/treks/", json=trek_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["trek_id"] > 0


@pytest.mark.asyncio
async def test_create_duplicate_trek(client: AsyncClient):
    await client.post("/api/v1/treks/", json=trek_payload())
    response = await client.post("/api/v1/treks/", json=trek_payload())

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": "DUPLICATE_ENTITY",
        "message": "Trek 'Valley Trail' at 'North Ridge' already exists",
    }


@pytest.mark.asyncio
async def test_create_trek_without_cover(client: AsyncClient):
    response = await client.post("/api/v1/treks/", json=trek_payload(cover_image=None))

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_create_trek_malformed_batch(client: AsyncClient):
    """Schema violations get the same error body as service validation failures."""
    payload = trek_payload(batches=[batch_payload(30, available_slots=-1)])
    response = await client.post("/api/v1/treks/", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "VALIDATION_ERROR"
    assert body["detail"]


@pytest.mark.asyncio
async def test_create_trek_missing_name(client: AsyncClient):
    payload = trek_payload()
    del payload["name"]
    response = await client.post("/api/v1/treks/", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["detail"][0]["type"] == "missing"
    assert body["detail"][0]["loc"] == ["body", "name"]


@pytest.mark.asyncio
async def test_create_trek_batch_ending_before_start(client: AsyncClient):
    payload = trek_payload(batches=[batch_payload(30, length=-2, duration=3)])
    response = await client.post("/api/v1/treks/", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert (await client.get("/api/v1/treks/")).json()["count"] == 0


@pytest.mark.asyncio
async def test_get_and_update_trek(client: AsyncClient):
    created = await client.post("/api/v1/treks/", json=trek_payload(batches=[batch_payload(30), batch_payload(60)]))
    trek_id = created.json()["trek_id"]

    detail = (await client.get(f"/api/v1/treks/{trek_id}")).json()
    assert detail["name"] == "Valley Trail"
    assert len(detail["batches"]) == 2
    first_batch_id = detail["batches"][0]["id"]

    payload = trek_payload(batches=[batch_payload(30, slots=25)], description="Updated")
    response = await client.put(f"/api/v1/treks/{trek_id}", json=payload)
    assert response.status_code == 200
    assert response.json()["trek_id"] == trek_id

    detail = (await client.get(f"/api/v1/treks/{trek_id}")).json()
    assert detail["description"] == "Updated"
    assert [b["id"] for b in detail["batches"]] == [first_batch_id]
    assert detail["batches"][0]["available_slots"] == 25


@pytest.mark.asyncio
async def test_update_unknown_trek(client: AsyncClient):
    response = await client.put("/api/v1/treks/424242", json=trek_payload())

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_get_unknown_trek(client: AsyncClient):
    response = await client.get("/api/v1/treks/424242")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_treks_without_cache(client: AsyncClient):
    await client.post("/api/v1/treks/", json=trek_payload())

    response = await client.get("/api/v1/treks/")

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["cached"] is False
    assert data["treks"][0]["upcoming_date"] == days_from_today(30).isoformat()


@pytest.mark.asyncio
async def test_list_trek_batches(client: AsyncClient):
    trek_id = (await client.post("/api/v1/treks/", json=trek_payload())).json()["trek_id"]

    response = await client.get(f"/api/v1/treks/{trek_id}/batches")

    assert response.status_code == 200
    assert len(response.json()) == 1


# ---------- batches ----------

@pytest.mark.asyncio
async def test_stop_and_resume_booking(client: AsyncClient, make_trek):
    _, batch_ids = await make_trek()

    response = await client.patch(f"/api/v1/batches/{batch_ids[0]}/stop-booking")
    assert response.status_code == 200
    assert response.json()["batch"]["status"] == "inactive"
    assert response.json()["batch"]["trek_name"] == "Valley Trail"

    response = await client.patch(f"/api/v1/batches/{batch_ids[0]}/resume-booking")
    assert response.status_code == 200
    assert response.json()["batch"]["status"] == "active"


@pytest.mark.asyncio
async def test_stop_booking_unknown_batch(client: AsyncClient):
    response = await client.patch("/api/v1/batches/999999/stop-booking")

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_complete_batch(client: AsyncClient, db_session, make_trek, make_booking, sink):
    _, batch_ids = await make_trek()
    await set_batch_dates(db_session, batch_ids[0], days_from_today(-5), days_from_today(-1))
    await make_booking(batch_ids[0], status="confirmed", participants=2)

    response = await client.put(f"/api/v1/batches/{batch_ids[0]}/complete")

    assert response.status_code == 200
    data = response.json()
    assert data["batch"]["status"] == "completed"
    assert data["bookings_completed"] == 1
    assert data["stats"]["completed_participants"] == 2
    assert sink.names() == [BATCH_COMPLETED]

    again = await client.put(f"/api/v1/batches/{batch_ids[0]}/complete")
    assert again.status_code == 409
    assert again.json()["error"] == "STATE_CONFLICT"


@pytest.mark.asyncio
async def test_complete_batch_not_ended(client: AsyncClient, make_trek):
    _, batch_ids = await make_trek()

    response = await client.put(f"/api/v1/batches/{batch_ids[0]}/complete")

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_batch_bookings(client: AsyncClient, make_trek, make_booking):
    _, batch_ids = await make_trek()
    await make_booking(batch_ids[0])

    response = await client.get(f"/api/v1/batches/{batch_ids[0]}/bookings")

    assert response.status_code == 200
    assert response.json()[0]["addons"] == []


# ---------- bookings ----------

@pytest.mark.asyncio
async def test_sweep_endpoint(client: AsyncClient, db_session, make_trek, make_booking, sink):
    _, batch_ids = await make_trek()
    await set_batch_dates(db_session, batch_ids[0], days_from_today(-5), days_from_today(-1))
    booking = await make_booking(batch_ids[0], status="confirmed")

    response = await client.post("/api/v1/bookings/sweep-completed")
    assert response.json() == {"success": True, "completed_count": 1, "booking_ids": [booking.id]}
    assert sink.names() == [BOOKING_COMPLETED]

    response = await client.post("/api/v1/bookings/sweep-completed")
    assert response.json()["completed_count"] == 0
    assert len(sink.events) == 1


@pytest.mark.asyncio
async def test_list_bookings(client: AsyncClient, make_trek, make_booking):
    _, batch_ids = await make_trek()
    await make_booking(batch_ids[0])

    response = await client.get("/api/v1/bookings/")

    assert response.status_code == 200
    assert response.json()[0]["trek_name"] == "Valley Trail"


# ---------- users / analytics / health ----------

@pytest.mark.asyncio
async def test_users(client: AsyncClient, test_user):
    response = await client.get("/api/v1/users/")
    assert response.status_code == 200
    assert response.json()[0]["email"] == test_user.email

    response = await client.get(f"/api/v1/users/{test_user.id}")
    assert response.status_code == 200
    assert response.json()["bookings"] == []

    response = await client.get("/api/v1/users/424242")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_analytics(client: AsyncClient):
    revenue = await client.get("/api/v1/analytics/revenue")
    dashboard = await client.get("/api/v1/analytics/dashboard")

    assert revenue.status_code == 200
    assert revenue.json()["total_bookings"] == 0
    assert dashboard.status_code == 200
    assert dashboard.json()["recent_bookings"] == []


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
