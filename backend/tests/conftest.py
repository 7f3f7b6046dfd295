"""
Pytest configuration and shared fixtures for the Laundry Orders tests.

Provides an in-memory SQLite DB, an httpx client bound to the FastAPI app,
seeded catalog, users with tokens, and an order factory.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"

ADMIN_EMAIL = "admin@laundry.test"
settings.admin_emails = ADMIN_EMAIL

# Identity provider stand-in: ID tokens signed with a shared HS256 secret
IDP_KEY = "test-idp-signing-key-for-pytest-only"
IDP_ISSUER = "https://idp.laundry.test"
settings.idp_jwt_key = IDP_KEY
settings.idp_jwt_algorithm = "HS256"
settings.idp_issuer = IDP_ISSUER
settings.idp_audience = "laundry-web"


@pytest.fixture(autouse=True)
def _default_lifecycle_settings(monkeypatch):
    """Every test starts on the extended flow with strict pricing."""
    monkeypatch.setattr(settings, "status_flow", "extended")
    monkeypatch.setattr(settings, "lenient_pricing", False)


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    import db_models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client bound to the app with the in-memory database.

    Overrides get_db, resets the rate limiter and the subscription registry.
    """
    from middleware.rate_limit import limiter
    from services.order_events import OrderEventBus

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.order_events = OrderEventBus()
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
async def catalog(db_session: AsyncSession):
    """Seed the default services."""
    from services import catalog_service

    await catalog_service.seed_default_services(db_session)
    await db_session.commit()
    return {s.id: s for s in await catalog_service.list_services(db_session)}


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    from db_models import User

    user = User(name="Admin", email=ADMIN_EMAIL, role="admin")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def client_user(db_session: AsyncSession):
    from db_models import User

    user = User(name="Asha", email="asha@example.com", role="client", phone="9876543210")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def other_client(db_session: AsyncSession):
    from db_models import User

    user = User(name="Ravi", email="ravi@example.com", role="client")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _auth_headers(user) -> dict:
    from middleware.auth import issue_access_token

    return {"Authorization": f"Bearer {issue_access_token(user_id=user.id, role=user.role)}"}


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return _auth_headers(admin_user)


@pytest.fixture
def client_headers(client_user) -> dict:
    return _auth_headers(client_user)


@pytest.fixture
def other_client_headers(other_client) -> dict:
    return _auth_headers(other_client)


@pytest.fixture
def make_order(db_session: AsyncSession, catalog, client_user):
    """Factory: place an order through the service layer and commit it."""
    from domain.enums import PaymentMethod
    from services import order_service

    async def _make(
        *,
        clothes=None,
        payment_method=PaymentMethod.CASH,
        service_id="normal_wash",
        client=None,
    ):
        order = await order_service.create_order(
            db_session,
            client=client or client_user,
            service_id=service_id,
            clothes=clothes or {"shirt": 2, "pant": 1},
            phone="9876543210",
            address="12 Lake Road",
            payment_method=payment_method,
        )
        await db_session.commit()
        await db_session.refresh(order)
        return order

    return _make


@pytest.fixture
def identity_token():
    """Factory: an ID token as the identity provider would issue it."""
    import jwt
    from datetime import datetime, timedelta, timezone

    def _make(email, *, key=IDP_KEY, verified=True, audience="laundry-web", ttl_minutes=10):
        now = datetime.now(timezone.utc)
        claims = {
            "iss": IDP_ISSUER,
            "aud": audience,
            "sub": f"idp|{email}",
            "email": email,
            "email_verified": verified,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
        }
        return jwt.encode(claims, key, algorithm="HS256")

    return _make
