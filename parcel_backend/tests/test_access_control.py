"""
Access Control Tests.

Bearer verification, identity-scoped payment history and the public
routes.
"""

import pytest
from datetime import timedelta

from parcel_backend.app.core.jwt import create_access_token
from conftest import SENDER_EMAIL, auth_headers


@pytest.mark.asyncio
async def test_missing_token_returns_unauthorized_body(client):
    response = await client.get("/payments")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": True,
        "code": "ERR_UNAUTHORIZED",
        "message": "unauthorized access",
        "details": {},
    }


@pytest.mark.asyncio
async def test_malformed_token_rejected(client):
    response = await client.get("/parcels", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_non_bearer_scheme_rejected(client):
    token = create_access_token({"email": SENDER_EMAIL})
    response = await client.get("/parcels", headers={"Authorization": f"Basic {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_rejected(client):
    token = create_access_token({"email": SENDER_EMAIL}, expires_delta=timedelta(minutes=-5))
    response = await client.get("/parcels", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_without_email_rejected(client):
    token = create_access_token({"sub": "someone"})
    response = await client.get("/parcels", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_payment_history_of_other_identity_forbidden(client, paid_parcel):
    response = await client.get(
        "/payments",
        params={"email": SENDER_EMAIL},
        headers=auth_headers("snoop@parcels.io")
    )

    assert response.status_code == 403
    assert response.json()["message"] == "forbidden access"


@pytest.mark.asyncio
async def test_own_payment_history(client, sender_headers, paid_parcel):
    response = await client.get("/payments", params={"email": SENDER_EMAIL}, headers=sender_headers)

    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["payments"][0]["parcelId"] == paid_parcel["id"]


@pytest.mark.asyncio
async def test_unsigned_in_caller_is_not_admin(client, paid_parcel):
    response = await client.post("/trackings/retry-failed", headers=auth_headers("nobody@parcels.io"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_tracking_history_is_public(client, paid_parcel):
    response = await client.get(f"/trackings/{paid_parcel['trackingId']}/logs")

    assert response.status_code == 200
    assert response.json()["trackingId"] == paid_parcel["trackingId"]


@pytest.mark.asyncio
async def test_unknown_tracking_id_has_empty_history(client):
    response = await client.get("/trackings/PKG-20240101-DEADBEEF/logs")

    assert response.status_code == 200
    assert response.json()["logs"] == []


@pytest.mark.asyncio
async def test_health_and_root(client):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["redis"] == "connected"
    assert "X-Correlation-ID" in health.headers

    root = await client.get("/")
    assert root.json()["message"] == "Parcel delivery server is running"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_body(client):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "ERR_NOT_FOUND"
    assert response.json()["success"] is False
