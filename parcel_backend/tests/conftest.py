"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from parcel_backend.app.main import app
from parcel_backend.app.db.session import get_db, Base
from parcel_backend.app.core.dependencies import get_payment_gateway
from parcel_backend.app.core.exceptions import UpstreamServiceError
from parcel_backend.app.core.jwt import create_access_token
from parcel_backend.app.core.redis_client import get_redis
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.payment import CheckoutSession

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@parcels.io"
SENDER_EMAIL = "sender@parcels.io"
RIDER_EMAIL = "rider@parcels.io"


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


class FakePaymentGateway:
    """In-memory stand-in for the Stripe checkout client."""

    def __init__(self):
        self.sessions = {}
        self.fail = False

    async def create_checkout_session(self, parcel_id, parcel_name, amount_cents, customer_email, sender_name=None):
        if self.fail:
            raise UpstreamServiceError("payment-gateway", "Payment provider request failed")
        session_id = f"cs_test_{len(self.sessions) + 1}"
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.stripe.test/pay/{session_id}",
            payment_status="unpaid",
            amount_total=amount_cents,
            currency="usd",
            customer_email=customer_email,
            metadata={"parcelId": parcel_id, "parcelName": parcel_name, "senderName": sender_name or ""},
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_checkout_session(self, session_id):
        if self.fail or session_id not in self.sessions:
            raise UpstreamServiceError("payment-gateway", "Payment provider request failed")
        return self.sessions[session_id]

    def mark_paid(self, session_id, transaction_id):
        session = self.sessions[session_id]
        self.sessions[session_id] = session.model_copy(
            update={"payment_status": "paid", "transaction_id": transaction_id}
        )

    @property
    def last_session_id(self):
        return list(self.sessions)[-1]


def auth_headers(email: str) -> dict:
    token = create_access_token({"email": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, redis_client, payment_gateway):
    """Point the app at the test database, Redis and payment gateway."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    yield

    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def count_rows(session_factory):
    """Count rows of a model in a fresh session (no stale identity map)."""
    async def count(model, *criteria):
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar()
    return count


@pytest.fixture
def fetch(session_factory):
    """Load a row by primary key in a fresh session."""
    async def load(model, pk):
        async with session_factory() as session:
            return await session.get(model, pk)
    return load


@pytest.fixture
async def admin_headers(db_session):
    db_session.add(User(email=ADMIN_EMAIL, name="Ops Admin", role=UserRole.ADMIN))
    await db_session.commit()
    return auth_headers(ADMIN_EMAIL)


@pytest.fixture
async def sender_headers(client):
    await client.post("/users", json={"email": SENDER_EMAIL, "name": "Sam Sender"})
    return auth_headers(SENDER_EMAIL)


@pytest.fixture
async def rider_headers(client):
    await client.post("/users", json={"email": RIDER_EMAIL, "name": "Riya Rider"})
    return auth_headers(RIDER_EMAIL)


@pytest.fixture
def parcel_payload():
    def build(**overrides):
        payload = {
            "parcelName": "Birthday gift",
            "parcelType": "non-document",
            "parcelWeight": 2.5,
            "senderName": "Sam Sender",
            "senderEmail": SENDER_EMAIL,
            "senderRegion": "Dhaka",
            "senderDistrict": "Dhaka",
            "senderAddress": "12 Lake Road",
            "senderPhone": "01700000000",
            "receiverName": "Rita Receiver",
            "receiverRegion": "Chattogram",
            "receiverDistrict": "Cumilla",
            "receiverAddress": "7 Hill Street",
            "receiverPhone": "01800000000",
            "cost": 100,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
async def unpaid_parcel(client, sender_headers, parcel_payload):
    response = await client.post("/parcels", json=parcel_payload(), headers=sender_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def pay_parcel(client, sender_headers, payment_gateway):
    """Run checkout + provider payment + confirmation for a parcel."""
    async def pay(parcel_id, transaction_id="tx_1"):
        checkout = await client.post(
            "/create-checkout-session",
            json={"parcelId": parcel_id},
            headers=sender_headers
        )
        assert checkout.status_code == 200
        session_id = payment_gateway.last_session_id
        payment_gateway.mark_paid(session_id, transaction_id)
        confirmation = await client.patch(
            "/payment-success",
            params={"session_id": session_id},
            headers=sender_headers
        )
        assert confirmation.status_code == 200
        return session_id, confirmation.json()
    return pay


@pytest.fixture
async def paid_parcel(client, sender_headers, unpaid_parcel, pay_parcel):
    await pay_parcel(unpaid_parcel["id"])
    response = await client.get(f"/parcels/{unpaid_parcel['id']}", headers=sender_headers)
    return response.json()


@pytest.fixture
def approve_rider(client, admin_headers):
    """Apply as a rider with the given identity and approve the application."""
    async def approve(email=RIDER_EMAIL, district="Dhaka"):
        await client.post("/users", json={"email": email, "name": email.split("@")[0]})
        application = await client.post(
            "/riders",
            json={"name": email.split("@")[0], "district": district, "phone": "01900000000"},
            headers=auth_headers(email)
        )
        assert application.status_code == 201
        review = await client.patch(
            f"/riders/{application.json()['id']}",
            json={"status": "approved"},
            headers=admin_headers
        )
        assert review.status_code == 200
        return review.json()
    return approve


@pytest.fixture
async def approved_rider(approve_rider):
    return await approve_rider()
