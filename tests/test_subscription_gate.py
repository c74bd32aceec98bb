"""Subscription gate and tenant subscription management"""

import pytest
from httpx import AsyncClient

from app.models.tenant import DAY_MS, PLAN_CATALOG
from app.services.subscriptions import build_subscription, is_operational
from app.stores import TenantStore
from app.utils import now_ms


async def _set_status(client, auth_headers, tenant_id, status):
    response = await client.patch(
        f"/tenants/{tenant_id}/subscription/status",
        json={"status": status},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.asyncio
async def test_suspended_tenant_cannot_place_orders(client: AsyncClient, auth_headers, order_payload):
    subscription = await _set_status(client, auth_headers, "tenant-a", "suspended")
    assert subscription["operational"] is False

    response = await client.post("/orders", json=order_payload(), headers=auth_headers("owner"))

    assert response.status_code == 402
    body = response.json()
    assert body["code"] == "SUBSCRIPTION_INACTIVE"
    assert body["details"] == {
        "tenantId": "tenant-a",
        "subscriptionStatus": "suspended",
        "currentPeriodEnd": subscription["currentPeriodEnd"],
    }


@pytest.mark.asyncio
async def test_gate_blocks_every_mutation_but_not_reads(client: AsyncClient, auth_headers, place_order):
    await place_order("GS-1001")
    await _set_status(client, auth_headers, "tenant-a", "past_due")

    response = await client.patch(
        "/orders/GS-1001/status", json={"status": "preparing"}, headers=auth_headers("kitchen")
    )
    assert response.status_code == 402

    response = await client.post(
        "/orders/GS-1001/delivery-confirmation",
        json={"otpCode": "1234", "confirmedBy": "Ravi"},
        headers=auth_headers("rider"),
    )
    assert response.status_code == 402

    response = await client.post(
        "/tracking/GS-1001/location",
        json={"lat": 17.4, "lng": 78.4, "status": "on_the_way", "etaMinutes": 10},
        headers=auth_headers("rider"),
    )
    assert response.status_code == 402

    assert (await client.get("/orders/GS-1001")).status_code == 200
    assert (await client.get("/tracking/GS-1001")).status_code == 200


@pytest.mark.asyncio
async def test_gate_runs_before_payload_checks(client: AsyncClient, auth_headers, place_order):
    await place_order("GS-1001")
    await _set_status(client, auth_headers, "tenant-a", "cancelled")

    response = await client.patch(
        "/orders/GS-1001/status", json={"status": "teleported"}, headers=auth_headers("kitchen")
    )

    assert response.status_code == 402


@pytest.mark.asyncio
async def test_lapsed_period_is_not_operational(client: AsyncClient, test_db, auth_headers, order_payload):
    subscription = await TenantStore(test_db).get_subscription("tenant-a")
    subscription.current_period_end = now_ms() - 1
    await test_db.commit()

    response = await client.post("/orders", json=order_payload(), headers=auth_headers("owner"))

    assert response.status_code == 402
    assert response.json()["details"]["subscriptionStatus"] == "active"


@pytest.mark.asyncio
async def test_missing_subscription_reported(client: AsyncClient, test_db, auth_headers, order_payload):
    subscription = await TenantStore(test_db).get_subscription("tenant-b")
    await test_db.delete(subscription)
    await test_db.commit()

    response = await client.post("/orders", json=order_payload(), headers=auth_headers("other_owner"))

    assert response.status_code == 402
    assert response.json()["details"] == {
        "tenantId": "tenant-b",
        "subscriptionStatus": "missing",
        "currentPeriodEnd": None,
    }


@pytest.mark.asyncio
async def test_renewal_reopens_tenant(client: AsyncClient, auth_headers, order_payload):
    await _set_status(client, auth_headers, "tenant-a", "suspended")

    response = await client.put(
        "/tenants/tenant-a/subscription",
        json={"plan": "quarterly", "status": "active"},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 200
    subscription = response.json()
    assert subscription["plan"] == "quarterly"
    assert subscription["amount"] == 13999
    assert subscription["currentPeriodEnd"] - subscription["currentPeriodStart"] == 90 * DAY_MS
    assert subscription["operational"] is True

    response = await client.post("/orders", json=order_payload(), headers=auth_headers("owner"))
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_subscription_read_access(client: AsyncClient, auth_headers):
    response = await client.get("/tenants/tenant-a/subscription", headers=auth_headers("manager"))
    assert response.status_code == 200
    assert response.json()["tenantId"] == "tenant-a"
    assert response.json()["operational"] is True

    response = await client.get("/tenants/tenant-a/subscription", headers=auth_headers("other_owner"))
    assert response.status_code == 403

    response = await client.get("/tenants/nowhere/subscription", headers=auth_headers("admin"))
    assert response.status_code == 404

    response = await client.get("/tenants/tenant-a/subscription")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_subscription_changes_are_admin_only(client: AsyncClient, auth_headers):
    response = await client.patch(
        "/tenants/tenant-a/subscription/status",
        json={"status": "active"},
        headers=auth_headers("owner"),
    )
    assert response.status_code == 403

    response = await client.patch(
        "/tenants/tenant-a/subscription/status",
        json={"status": "dormant"},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"


@pytest.mark.asyncio
async def test_tenant_management(client: AsyncClient, auth_headers):
    response = await client.post(
        "/tenants",
        json={"tenantId": "green-spoon-chennai", "name": "Green Spoon Chennai", "plan": "yearly"},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 201
    tenant = response.json()
    assert tenant["subscription"]["status"] == "trial"
    assert tenant["subscription"]["plan"] == "yearly"
    assert tenant["subscription"]["operational"] is True

    response = await client.post(
        "/tenants",
        json={"tenantId": "green-spoon-chennai", "name": "Again"},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 409

    response = await client.post(
        "/tenants",
        json={"tenantId": "rogue", "name": "Rogue"},
        headers=auth_headers("owner"),
    )
    assert response.status_code == 403

    response = await client.get("/tenants", headers=auth_headers("admin"))
    assert response.status_code == 200
    assert "green-spoon-chennai" in {tenant["tenantId"] for tenant in response.json()}


@pytest.mark.asyncio
async def test_plan_catalog(client: AsyncClient):
    response = await client.get("/subscriptions/plans")

    assert response.status_code == 200
    plans = {plan["plan"]: plan for plan in response.json()}
    assert plans["monthly"] == {"plan": "monthly", "durationDays": 30, "amount": 4999, "currency": "INR"}
    assert set(plans) == set(PLAN_CATALOG)


@pytest.mark.asyncio
async def test_is_operational_edges(test_db, tenants):
    subscription = await TenantStore(test_db).get_subscription("tenant-a")
    period_end = subscription.current_period_end

    assert await is_operational(test_db, "tenant-a", now=period_end) is True
    assert await is_operational(test_db, "tenant-a", now=period_end + 1) is False
    assert await is_operational(test_db, "no-such-tenant") is False


def test_build_subscription_rejects_unknown_plan():
    from app.errors import InvalidPayloadError

    with pytest.raises(InvalidPayloadError):
        build_subscription("tenant-a", plan="weekly")

    subscription = build_subscription("tenant-a", plan="monthly", status="trial", start_at=0)
    assert subscription.current_period_end == 30 * DAY_MS
