#!/usr/bin/env python3
"""
Seed script to create demo tenants, subscriptions, staff users and an order
"""

import asyncio

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DAY_MS = 24 * 60 * 60 * 1000

DEMO_USERS = [
    # (email, password, name, role, tenant)
    ("admin@ordertrack.dev", "admin123", "Platform Admin", "platform_admin", "platform"),
    ("owner@greenspoon.dev", "owner123", "Green Spoon Owner", "restaurant_owner", "demo"),
    ("manager@greenspoon.dev", "manager123", "Green Spoon Manager", "manager", "demo"),
    ("dispatch@greenspoon.dev", "dispatch123", "Dispatch Team", "dispatch", "demo"),
    ("kitchen@greenspoon.dev", "kitchen123", "Kitchen Lead", "kitchen", "demo"),
    ("rider@greenspoon.dev", "rider123", "Ravi Kumar", "rider", "demo"),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from app.config import settings
    from app.database import SessionLocal, engine, Base
    from app.models.tenant import Tenant
    from app.models.user import User, UserRole
    from app.schemas.order import OrderCreate
    from app.services.orders import create_order
    from app.services.subscriptions import build_subscription
    from app.utils import now_ms

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    demo_tenant_id = settings.default_tenant_id
    platform_tenant_id = "platform"

    async with SessionLocal() as db:
        # Check if demo tenant already exists
        existing = await db.get(Tenant, demo_tenant_id)
        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo tenants...")
        now = now_ms()

        for tenant_id, name, plan, started_days_ago in [
            (platform_tenant_id, "Platform Admin Tenant", "yearly", 15),
            (demo_tenant_id, "Green Spoon Demo Tenant", "monthly", 7),
        ]:
            tenant = Tenant(tenant_id=tenant_id, name=name, created_at=now, updated_at=now)
            tenant.subscription = build_subscription(
                tenant_id,
                plan=plan,
                status="active",
                start_at=now - started_days_ago * DAY_MS,
            )
            db.add(tenant)
            print(f"Created tenant: {name} (ID: {tenant_id}, plan: {plan})")

        await db.flush()

        print("Creating demo users...")
        tenants = {"platform": platform_tenant_id, "demo": demo_tenant_id}
        users = {}
        for email, password, name, role, tenant_key in DEMO_USERS:
            user = User(
                tenant_id=tenants[tenant_key],
                email=email,
                hashed_password=pwd_context.hash(password),
                name=name,
                role=UserRole(role),
                is_active=True,
                created_at=now,
            )
            db.add(user)
            users[role] = user

        await db.commit()

        print("Creating demo order...")
        payload = OrderCreate.model_validate({
            "orderId": "GS-DEMO-1001",
            "tenantId": demo_tenant_id,
            "customer": {"name": "Green Spoon Customer", "phone": "+91 98765 43210"},
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
            "paymentMethod": "whatsapp",
            "paymentReference": "WA-DEMO-1001",
            "deliveryConfirmation": {"expectedOtp": "4321"},
        })
        order = await create_order(db, payload, users["platform_admin"])

    await engine.dispose()

    print(f"""
Demo data created successfully!

Tenant: Green Spoon Demo Tenant
  ID: {demo_tenant_id}

Users:""")
    for email, password, _, role, _ in DEMO_USERS:
        print(f"  {role}: {email} / {password}")
    print(f"""
Order: {order.order_id} (status: {order.status}, delivery OTP: 4321)
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
