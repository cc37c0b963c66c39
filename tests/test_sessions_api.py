"""
Tests for session endpoints: creation, RSVP and settlement.
"""

import pytest
from httpx import AsyncClient
from prometheus_client import REGISTRY

from kakibadminton.api.routes import sessions as sessions_routes
from kakibadminton.core.config import get_settings
from tests.conftest import GROUP_ID, identity_headers


@pytest.mark.asyncio
async def test_create_session(client: AsyncClient, host_headers):
    """Caller becomes host and first player."""
    response = await client.post(
        "/api/v1/sessions/",
        json={"group_id": GROUP_ID, "location": "Court 3", "scheduled_for": "Fri 8pm", "message_id": 77},
        headers=host_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["session"]["status"] == "open"
    assert data["session"]["title"] == "Badminton Session"
    assert data["session"]["message_id"] == 77
    assert data["roster"]["count"] == 1
    assert data["roster"]["participants"][0]["display_name"] == "@hana_host"


@pytest.mark.asyncio
async def test_create_session_unauthenticated(client: AsyncClient):
    """Missing identity headers returns 401."""
    response = await client.post("/api/v1/sessions/", json={"group_id": GROUP_ID})
    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"


@pytest.mark.asyncio
async def test_non_ascii_names(client: AsyncClient):
    """Names arrive percent-encoded in headers."""
    response = await client.get("/api/v1/users/me", headers=identity_headers(77, "Añdrés 🏸"))
    assert response.status_code == 200
    assert response.json()["first_name"] == "Añdrés 🏸"


@pytest.mark.asyncio
async def test_join_and_leave(client: AsyncClient, open_session, alice_headers):
    response = await client.post(f"/api/v1/sessions/{open_session.id}/leave", headers=alice_headers)
    assert response.status_code == 200
    assert response.json()["count"] == 2

    response = await client.post(f"/api/v1/sessions/{open_session.id}/join", headers=alice_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert data["participants"][-1]["username"] == "alice"


@pytest.mark.asyncio
async def test_join_twice_is_idempotent(client: AsyncClient, open_session, alice_headers):
    await client.post(f"/api/v1/sessions/{open_session.id}/join", headers=alice_headers)
    response = await client.post(f"/api/v1/sessions/{open_session.id}/join", headers=alice_headers)
    assert response.json()["count"] == 3


@pytest.mark.asyncio
async def test_host_cannot_leave(client: AsyncClient, open_session, host_headers):
    response = await client.post(f"/api/v1/sessions/{open_session.id}/leave", headers=host_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_join_unknown_session(client: AsyncClient, alice_headers):
    response = await client.post("/api/v1/sessions/99999/join", headers=alice_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "session_not_found"


@pytest.mark.asyncio
async def test_get_session(client: AsyncClient, open_session):
    response = await client.get(f"/api/v1/sessions/{open_session.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["session"]["location"] == "Court 3"
    assert [p["first_name"] for p in data["roster"]["participants"]] == ["Hana", "Alice", "Bob"]


@pytest.mark.asyncio
async def test_settle(client: AsyncClient, open_session, host_headers):
    """Court 40, tube 96, 3 shuttles over the 3 players on the roster."""
    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/settle",
        json={"court_fee": 40, "tube_price": 96, "shuttles_used": 3},
        headers=host_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["bill"]["shuttle_cost"] == "24.00"
    assert data["bill"]["total"] == "64.00"
    assert data["bill"]["per_person"] == "21.33"
    assert data["session"]["status"] == "settled"
    assert data["session"]["payment_deadline"] is not None
    assert data["created_count"] == 3
    statuses = sorted(p["status"] for p in data["payments"])
    assert statuses == ["paid", "pending", "pending"]


@pytest.mark.asyncio
async def test_settle_uses_session_tube_price(client: AsyncClient, open_session, host_headers):
    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/settle",
        json={"court_fee": 0, "shuttles_used": 12, "player_count": 5},
        headers=host_headers,
    )
    assert response.status_code == 200
    assert response.json()["bill"]["per_person"] == "19.00"


@pytest.mark.asyncio
async def test_settle_not_host(client: AsyncClient, open_session, alice_headers):
    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/settle",
        json={"court_fee": 40, "shuttles_used": 3},
        headers=alice_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_settle_invalid_costs(client: AsyncClient, open_session, host_headers):
    """Negative fees or more than two tubes of shuttles return 422."""
    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/settle",
        json={"court_fee": -1, "shuttles_used": 3},
        headers=host_headers,
    )
    assert response.status_code == 422

    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/settle",
        json={"court_fee": 10, "shuttles_used": 25},
        headers=host_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_resettle_with_different_amount(client: AsyncClient, settled_session, host_headers):
    response = await client.post(
        f"/api/v1/sessions/{settled_session.id}/settle",
        json={"court_fee": 99, "shuttles_used": 0},
        headers=host_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "session_already_settled"


@pytest.mark.asyncio
async def test_update_session(client: AsyncClient, open_session, host_headers):
    response = await client.patch(
        f"/api/v1/sessions/{open_session.id}",
        json={"location": "Court 5"},
        headers=host_headers,
    )
    assert response.status_code == 200
    data = response.json()["session"]
    assert data["location"] == "Court 5"
    assert data["scheduled_for"] == "Fri 8pm"


@pytest.mark.asyncio
async def test_update_settled_session(client: AsyncClient, settled_session, host_headers):
    """After settlement only the bill message reference may change."""
    response = await client.patch(
        f"/api/v1/sessions/{settled_session.id}",
        json={"bill_message_id": 901},
        headers=host_headers,
    )
    assert response.status_code == 200
    assert response.json()["session"]["bill_message_id"] == 901

    response = await client.patch(
        f"/api/v1/sessions/{settled_session.id}",
        json={"location": "Elsewhere"},
        headers=host_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_session_not_host(client: AsyncClient, open_session, bob_headers):
    response = await client.patch(
        f"/api/v1/sessions/{open_session.id}",
        json={"title": "Bob's game"},
        headers=bob_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_api_key_enforced_when_configured(client: AsyncClient, monkeypatch, host_headers):
    monkeypatch.setattr(get_settings(), "API_KEY", "s3cret")

    response = await client.get("/api/v1/users/me", headers=host_headers)
    assert response.status_code == 401

    response = await client.get("/api/v1/users/me", headers={**host_headers, "X-Api-Key": "s3cret"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_resettle_same_costs_bills_late_joiner(client: AsyncClient, open_session, host_headers):
    """Re-submitting the same costs keeps the 20.00 share and bills only the newcomer."""
    settle_url = f"/api/v1/sessions/{open_session.id}/settle"
    costs = {"court_fee": "60.00", "shuttles_used": 0}

    first = await client.post(settle_url, json=costs, headers=host_headers)
    assert first.status_code == 200
    assert first.json()["bill"]["per_person"] == "20.00"

    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/join", headers=identity_headers(3001, "Chen")
    )
    assert response.json()["count"] == 4

    again = await client.post(settle_url, json=costs, headers=host_headers)
    assert again.status_code == 200
    data = again.json()
    assert data["reapplied"] is True
    assert data["created_count"] == 1
    assert data["bill"]["per_person"] == "20.00"
    assert data["session"]["settled_at"] == first.json()["session"]["settled_at"]
    assert len(data["payments"]) == 4
    assert {p["amount"] for p in data["payments"]} == {"20.00"}
    late = next(p for p in data["payments"] if p["user_id"] == 3001)
    assert late["status"] == "pending"


@pytest.mark.asyncio
async def test_settle_returns_host_payout_qr(client: AsyncClient, open_session, host_headers):
    """The bill card tells players whom to pay and shows the host's QR."""
    await client.put("/api/v1/users/me/payout-qr", json={"file_id": "qr-hana"}, headers=host_headers)

    response = await client.post(
        f"/api/v1/sessions/{open_session.id}/settle",
        json={"court_fee": 40, "shuttles_used": 3},
        headers=host_headers,
    )
    assert response.status_code == 200
    host = response.json()["host"]
    assert host["id"] == open_session.host_id
    assert host["display_name"] == "@hana_host"
    assert host["payment_qr_file_id"] == "qr-hana"


@pytest.mark.asyncio
async def test_cache_invalidated_after_commit(client: AsyncClient, db_session, open_session, monkeypatch, alice_headers):
    """No open transaction remains when the cached views are dropped."""
    seen = []

    async def record_invalidation(session_id):
        seen.append((session_id, db_session.in_transaction()))

    monkeypatch.setattr(sessions_routes, "invalidate_session_cache", record_invalidation)

    response = await client.post(f"/api/v1/sessions/{open_session.id}/leave", headers=alice_headers)
    assert response.status_code == 200
    assert seen == [(open_session.id, False)]


@pytest.mark.asyncio
async def test_session_creation_is_counted(client: AsyncClient, host_headers):
    before = REGISTRY.get_sample_value("sessions_created_total") or 0

    response = await client.post("/api/v1/sessions/", json={"group_id": GROUP_ID}, headers=host_headers)
    assert response.status_code == 201

    assert REGISTRY.get_sample_value("sessions_created_total") == before + 1
