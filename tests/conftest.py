"""
Shared test fixtures for the Storefront test suite.

Async throughout (aiosqlite + AsyncSession). The payment gateway is an
httpx MockTransport so no request ever leaves the process.
"""

import hashlib
import hmac
import json
import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["COOKIE_SECURE"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ACCESS_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["REFRESH_SECRET"] = "test-refresh-secret-fedcba9876543210"
os.environ["PAYMENT_KEY_ID"] = "rzp_test_key"
os.environ["PAYMENT_KEY_SECRET"] = "rzp_test_secret"
os.environ["STATS_TIMEZONE_OFFSET"] = "+00:00"

import httpx
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.api.v1.deps import get_db, get_payment_gateway
from storefront.core.policy import Role
from storefront.core.security import get_password_hash, token_issuer
from storefront.db.base import Base
from storefront.main import app
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.credentials import claims_for
from storefront.services.payments import PaymentGateway
from storefront.services.session import ACCESS_COOKIE, REFRESH_COOKIE

PAYMENT_KEY_ID = os.environ["PAYMENT_KEY_ID"]
PAYMENT_KEY_SECRET = os.environ["PAYMENT_KEY_SECRET"]

test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


# ── Payment gateway double ──────────────────────────────────────────
class FakeGateway:
    """Records outbound gateway calls and answers like the real API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self.raise_timeout = False
        self._counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_timeout:
            raise httpx.ReadTimeout("gateway too slow", request=request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": {"description": "nope"}})
        body = json.loads(request.content)
        self._counter += 1
        return httpx.Response(
            200,
            json={
                "id": f"order_test{self._counter:04d}",
                "entity": "order",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
                "created_at": 1700000000,
            },
        )


def sign_payment(order_id: str, payment_id: str, secret: str = PAYMENT_KEY_SECRET) -> str:
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def payment_gateway(fake_gateway: FakeGateway):
    gateway = PaymentGateway(
        key_id=PAYMENT_KEY_ID,
        key_secret=PAYMENT_KEY_SECRET,
        base_url="https://gateway.test/v1",
        timeout=2.0,
        transport=httpx.MockTransport(fake_gateway.handler),
    )
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_payment_gateway, None)


# ── Clients & sessions ──────────────────────────────────────────────
@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Data helpers ────────────────────────────────────────────────────
async def create_user(
    db: AsyncSession,
    role: Role = Role.USER,
    email: str | None = None,
    name: str | None = None,
    password: str = "password123",
) -> User:
    user = User(
        email=email or f"{role.value}-{os.urandom(3).hex()}@example.com",
        hashed_password=get_password_hash(password),
        name=name or f"Test {role.value.title()}",
        role=role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_product(
    db: AsyncSession,
    seller: User,
    title: str = "Blue Cotton Shirt",
    price: float = 499.0,
    category: str = "clothing",
    description: str = "A comfortable shirt",
) -> Product:
    product = Product(
        title=title,
        price=price,
        description=description,
        category=category,
        image="data:image/png;base64,iVBORw0KGgo=",
        seller_id=seller.id,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return product


def auth_headers(user: User) -> dict[str, str]:
    """Cookie header carrying a fresh access + refresh token pair for *user*."""
    claims = claims_for(user)
    access = token_issuer.issue_access(claims)
    refresh = token_issuer.issue_refresh(claims)
    return {"Cookie": f"{ACCESS_COOKIE}={access}; {REFRESH_COOKIE}={refresh}"}


def bearer_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_issuer.issue_access(claims_for(user))}"}


@pytest.fixture
async def customer(db_session: AsyncSession) -> User:
    return await create_user(db_session, Role.USER, email="customer@example.com", name="Casey")


@pytest.fixture
async def seller(db_session: AsyncSession) -> User:
    return await create_user(db_session, Role.SELLER, email="seller@example.com", name="Sam")


@pytest.fixture
async def other_seller(db_session: AsyncSession) -> User:
    return await create_user(db_session, Role.SELLER, email="rival@example.com", name="Riley")


@pytest.fixture
async def admin(db_session: AsyncSession) -> User:
    return await create_user(db_session, Role.ADMIN, email="boss@example.com", name="Alex")


@pytest.fixture
async def product(db_session: AsyncSession, seller: User) -> Product:
    return await create_product(db_session, seller)
