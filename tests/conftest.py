"""Test configuration and fixtures"""

import copy

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config import settings
from app.database import Base, get_db
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.api.auth import create_access_token, get_password_hash
from app.services.subscriptions import build_subscription
from app.utils import now_ms


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"

BASE_ORDER_PAYLOAD = {
    "orderId": "GS-1001",
    "customer": {"name": "Asha Rao", "phone": "+91 98765 43210", "email": "asha@example.com"},
    "address": {"line1": "Plot 21, Jubilee Hills", "city": "Hyderabad", "notes": "Leave at gate"},
    "items": [
        {
            "id": "sprouts-power-bowl",
            "name": "Power Sprouts Bowl",
            "type": "Sprouts",
            "image": "assets/images/food/sprouts-bowl.jpg",
            "price": 229,
            "calories": "320 kcal",
            "quantity": 1,
        }
    ],
    "totals": {"subtotal": 229, "deliveryFee": 39, "tax": 11, "grandTotal": 279, "payableNow": 279},
    "paymentMethod": "razorpay",
    "paymentReference": "pay_1001",
}


@pytest.fixture
async def test_db():
    """Create test database"""
    # One shared connection so every session sees the same in-memory database
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _add_tenant(db, tenant_id, name, status="active"):
    now = now_ms()
    tenant = Tenant(tenant_id=tenant_id, name=name, created_at=now, updated_at=now)
    tenant.subscription = build_subscription(tenant_id, plan="monthly", status=status)
    db.add(tenant)
    return tenant


@pytest.fixture
async def tenants(test_db):
    """Two operational tenants plus the default storefront tenant"""
    created = {
        TENANT_A: await _add_tenant(test_db, TENANT_A, "Green Spoon Banjara Hills"),
        TENANT_B: await _add_tenant(test_db, TENANT_B, "Green Spoon Indiranagar"),
        settings.default_tenant_id: await _add_tenant(test_db, settings.default_tenant_id, "Green Spoon Demo"),
    }
    await test_db.commit()
    return created


@pytest.fixture
async def users(test_db, tenants):
    """One active user per staff role in tenant A, an owner in tenant B and a platform admin"""
    accounts = [
        ("admin", "admin@example.com", UserRole.PLATFORM_ADMIN, None),
        ("owner", "owner@example.com", UserRole.RESTAURANT_OWNER, TENANT_A),
        ("manager", "manager@example.com", UserRole.MANAGER, TENANT_A),
        ("dispatch", "dispatch@example.com", UserRole.DISPATCH, TENANT_A),
        ("kitchen", "kitchen@example.com", UserRole.KITCHEN, TENANT_A),
        ("rider", "rider@example.com", UserRole.RIDER, TENANT_A),
        ("customer", "customer@example.com", UserRole.CUSTOMER, TENANT_A),
        ("other_owner", "owner-b@example.com", UserRole.RESTAURANT_OWNER, TENANT_B),
    ]
    created = {}
    for key, email, role, tenant_id in accounts:
        user = User(
            tenant_id=tenant_id,
            email=email,
            hashed_password=get_password_hash("testpass123"),
            name=key.replace("_", " ").title(),
            role=role,
            is_active=True,
            created_at=now_ms(),
        )
        test_db.add(user)
        created[key] = user

    await test_db.commit()
    return created


@pytest.fixture
def auth_headers(users):
    """Bearer header for one of the fixture users, by key"""
    def _headers(key):
        return {"Authorization": f"Bearer {create_access_token(users[key])}"}
    return _headers


@pytest.fixture
def order_payload():
    """Factory for valid order placement payloads"""
    def _payload(order_id="GS-1001", **overrides):
        payload = copy.deepcopy(BASE_ORDER_PAYLOAD)
        payload["orderId"] = order_id
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def place_order(client, auth_headers, order_payload):
    """Place an order in tenant A as its owner and return the response body"""
    async def _place(order_id="GS-1001", **overrides):
        response = await client.post(
            "/orders",
            json=order_payload(order_id, **overrides),
            headers=auth_headers("owner"),
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _place
