"""
Account Tests.

Sign-in upsert, user search, role management, rider applications and the
admin seeding script.
"""

import pytest
from sqlalchemy import select

from parcel_backend.app.models.audit_log import AuditLog
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.seed_users import seed_admin
from parcel_backend.app.services.audit import AuditAction
from conftest import ADMIN_EMAIL, RIDER_EMAIL, auth_headers


@pytest.mark.asyncio
async def test_sign_in_creates_user_with_forced_role(client):
    response = await client.post("/users", json={
        "email": "newcomer@parcels.io",
        "name": "New Comer",
        "photoURL": "https://img.parcels.io/n.png",
        "role": "admin",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["inserted"] is True
    assert body["user"]["role"] == "user"
    assert body["user"]["photoUrl"] == "https://img.parcels.io/n.png"


@pytest.mark.asyncio
async def test_sign_in_existing_user_is_not_duplicated(client, count_rows):
    payload = {"email": "repeat@parcels.io", "name": "Repeat"}
    await client.post("/users", json=payload)

    response = await client.post("/users", json={**payload, "name": "Changed"})

    assert response.status_code == 200
    body = response.json()
    assert body["inserted"] is False
    assert body["message"] == "User already exists"
    assert body["user"]["name"] == "Repeat"
    assert await count_rows(User, User.email == "repeat@parcels.io") == 1


@pytest.mark.asyncio
async def test_sign_in_rejects_malformed_email(client):
    response = await client.post("/users", json={"email": "not-an-email"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_search_users(client, sender_headers):
    for name in ("Alice Smith", "Bob Stone", "Carol Smithers"):
        await client.post("/users", json={"email": f"{name.split()[0].lower()}@parcels.io", "name": name})

    response = await client.get("/users", params={"search": "smith"}, headers=sender_headers)

    assert response.status_code == 200
    names = {u["name"] for u in response.json()["users"]}
    assert names == {"Alice Smith", "Carol Smithers"}
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_list_users_respects_limit(client, sender_headers):
    for i in range(4):
        await client.post("/users", json={"email": f"user{i}@parcels.io"})

    response = await client.get("/users", params={"limit": 2}, headers=sender_headers)

    assert len(response.json()["users"]) == 2
    assert response.json()["total"] == 5


@pytest.mark.asyncio
async def test_get_role(client, sender_headers):
    response = await client.get("/users/sender@parcels.io/role", headers=sender_headers)

    assert response.status_code == 200
    assert response.json()["role"] == "user"


@pytest.mark.asyncio
async def test_get_role_of_unknown_user_404(client, sender_headers):
    response = await client.get("/users/ghost@parcels.io/role", headers=sender_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_sets_role(client, admin_headers, rider_headers, count_rows):
    user_id = (await client.post("/users", json={"email": RIDER_EMAIL})).json()["user"]["id"]

    response = await client.patch(f"/users/{user_id}/role", json={"role": "admin"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert await count_rows(AuditLog, AuditLog.action == AuditAction.ROLE_CHANGED) == 1


@pytest.mark.asyncio
async def test_set_unknown_role_rejected(client, admin_headers, rider_headers):
    user_id = (await client.post("/users", json={"email": RIDER_EMAIL})).json()["user"]["id"]

    response = await client.patch(f"/users/{user_id}/role", json={"role": "superuser"}, headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_non_admin_cannot_set_role(client, sender_headers):
    user_id = (await client.post("/users", json={"email": "sender@parcels.io"})).json()["user"]["id"]

    response = await client.patch(f"/users/{user_id}/role", json={"role": "admin"}, headers=sender_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "forbidden access"


@pytest.mark.asyncio
async def test_set_role_of_unknown_user_404(client, admin_headers):
    response = await client.patch("/users/nope/role", json={"role": "rider"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rider_approval_promotes_user(client, admin_headers, rider_headers):
    application = await client.post(
        "/riders",
        json={"name": "Riya Rider", "district": "Dhaka", "bikeModel": "Hero 125"},
        headers=rider_headers
    )
    assert application.status_code == 201
    assert application.json()["status"] == "pending"
    assert application.json()["email"] == RIDER_EMAIL

    response = await client.patch(
        f"/riders/{application.json()['id']}",
        json={"status": "approved", "email": RIDER_EMAIL},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["workStatus"] == "available"

    role = await client.get(f"/users/{RIDER_EMAIL}/role", headers=rider_headers)
    assert role.json()["role"] == "rider"


@pytest.mark.asyncio
async def test_rider_rejection_keeps_user_role(client, admin_headers, rider_headers):
    application = await client.post("/riders", json={"name": "Riya", "district": "Dhaka"}, headers=rider_headers)

    response = await client.patch(
        f"/riders/{application.json()['id']}",
        json={"status": "rejected"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    role = await client.get(f"/users/{RIDER_EMAIL}/role", headers=rider_headers)
    assert role.json()["role"] == "user"


@pytest.mark.asyncio
async def test_approval_for_unknown_user_404(client, admin_headers):
    # Applicant never signed in, so there is no user to promote
    application = await client.post(
        "/riders",
        json={"name": "Stranger", "district": "Sylhet"},
        headers=auth_headers("stranger@parcels.io")
    )

    response = await client.patch(
        f"/riders/{application.json()['id']}",
        json={"status": "approved"},
        headers=admin_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_rider_application_rejected(client, rider_headers):
    payload = {"name": "Riya", "district": "Dhaka"}
    await client.post("/riders", json=payload, headers=rider_headers)

    response = await client.post("/riders", json=payload, headers=rider_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_non_admin_cannot_review_rider(client, rider_headers):
    application = await client.post("/riders", json={"name": "Riya", "district": "Dhaka"}, headers=rider_headers)

    response = await client.patch(
        f"/riders/{application.json()['id']}",
        json={"status": "approved"},
        headers=rider_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_riders_filters(client, admin_headers, approve_rider):
    await approve_rider(email="north@parcels.io", district="Rajshahi")
    await approve_rider(email="south@parcels.io", district="Khulna")

    response = await client.get(
        "/riders",
        params={"status": "approved", "district": "Khulna", "workStatus": "available"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert [r["email"] for r in response.json()["riders"]] == ["south@parcels.io"]


@pytest.mark.asyncio
async def test_delete_rider(client, admin_headers, approved_rider):
    response = await client.delete(f"/riders/{approved_rider['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.delete(f"/riders/{approved_rider['id']}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_rider_in_delivery_rejected(client, admin_headers, paid_parcel, approved_rider):
    await client.patch(f"/parcels/{paid_parcel['id']}", json={"riderId": approved_rider["id"]}, headers=admin_headers)

    response = await client.delete(f"/riders/{approved_rider['id']}", headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_seed_admin_creates_and_promotes(session_factory, client):
    await client.post("/users", json={"email": "ops@parcels.io"})

    user = await seed_admin(session_factory, "ops@parcels.io")
    assert user.role == UserRole.ADMIN

    created = await seed_admin(session_factory, "fresh@parcels.io", "Fresh Admin")
    assert created.role == UserRole.ADMIN
    assert created.name == "Fresh Admin"

    async with session_factory() as session:
        result = await session.execute(select(User).where(User.role == UserRole.ADMIN))
        assert {u.email for u in result.scalars()} == {"ops@parcels.io", "fresh@parcels.io"}


@pytest.mark.asyncio
async def test_seeded_admin_can_use_admin_routes(client, session_factory, rider_headers):
    await seed_admin(session_factory, ADMIN_EMAIL)
    application = await client.post("/riders", json={"name": "Riya", "district": "Dhaka"}, headers=rider_headers)

    response = await client.patch(
        f"/riders/{application.json()['id']}",
        json={"status": "approved"},
        headers=auth_headers(ADMIN_EMAIL)
    )

    assert response.status_code == 200
