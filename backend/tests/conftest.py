"""
Parcel Server - Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each API test gets a fresh application wired to an in-memory SQLite
       database. Firebase and Stripe are replaced through
       app.dependency_overrides; no test talks to the network.

Fixture Hierarchy:
    Function-scoped:
    ├── database: in-memory SQLite Database with all tables created
    ├── identity_service: FakeIdentityService ("valid:<email>" tokens)
    ├── payment_gateway: MagicMock standing in for StripePaymentGateway
    ├── app: create_app() with the fixtures above plugged in
    ├── test_client: HTTPX AsyncClient over ASGITransport
    ├── auth_headers: builds an Authorization header for an email
    └── mock_db_session: AsyncMock session for service failure paths
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PAYMENT_GATEWAY_KEY"] = "sk_test_not_real"
os.environ["FIREBASE_CREDENTIALS_PATH"] = "./missing-firebase-key.json"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "3"
os.environ["CB_FAILURE_THRESHOLD"] = "3"

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.database import Database
from app.dependencies import get_identity_service, get_payment_gateway
from app.exceptions import ForbiddenError
from app.main import create_app
from app.services.payment_gateway import CircuitBreaker, StripePaymentGateway


class FakeIdentityService:
    """
    Stands in for FirebaseIdentityService.

    "valid:<email>" verifies to a user with that email, "valid:" to a user
    without one; anything else is rejected like a bad Firebase token.
    """

    async def verify_token(self, token: str) -> Dict[str, Any]:
        if not token.startswith("valid:"):
            raise ForbiddenError(context={"error_type": "InvalidIdTokenError"})
        email = token.split(":", 1)[1]
        claims: Dict[str, Any] = {"uid": f"uid-{email or 'anonymous'}"}
        if email:
            claims["email"] = email
        return claims


@pytest_asyncio.fixture
async def database():
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def identity_service():
    return FakeIdentityService()


@pytest.fixture
def payment_gateway():
    gateway = MagicMock(spec=StripePaymentGateway)
    gateway.create_payment_intent = AsyncMock(return_value="pi_123_secret_456")
    return gateway


@pytest.fixture
def app(database, identity_service, payment_gateway):
    application = create_app()
    application.state.database = database
    # /health reads the gateway from state; routes go through the override
    application.state.payment_gateway = StripePaymentGateway(
        api_key="sk_test_not_real",
        circuit_breaker=CircuitBreaker(failure_threshold=3, recovery_timeout=60),
    )
    application.dependency_overrides[get_identity_service] = lambda: identity_service
    application.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    def build(email: str = "alice@example.com") -> Dict[str, str]:
        return {"Authorization": f"Bearer valid:{email}"}
    return build


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for exercising service error paths.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
        with pytest.raises(DatabaseError):
            await parcel_service.list_parcels(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def parcel_body():
    return {
        "createdByEmail": "alice@example.com",
        "senderName": "Alice",
        "receiverName": "Bob",
        "weight": 2.5,
        "parcelType": "document",
        "cost": 120,
    }
