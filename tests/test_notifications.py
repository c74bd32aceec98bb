"""WhatsApp order confirmations"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.config import settings
from app.models.audit import AuditLog
from app.services import notifications
from app.stores import NotificationStore, TenantStore

CONFIRMATION = {
    "orderId": "GS-1001",
    "customerName": "Asha Rao",
    "customerPhone": "+91 98765 43210",
    "message": "Your GreenSpoon order GS-1001 is confirmed.",
}


async def _queue(client, auth_headers, role="owner", **fields):
    body = {**CONFIRMATION, **fields}
    return await client.post("/notifications/whatsapp/confirmation", json=body, headers=auth_headers(role))


@pytest.fixture
def whatsapp_outbox(monkeypatch):
    """Enable WhatsApp and capture what would go to Twilio"""
    sent = []

    def fake_send(to, body):
        sent.append((to, body))
        return "SM0123456789abcdef"

    monkeypatch.setattr(settings, "twilio_account_sid", "ACtest")
    monkeypatch.setattr(settings, "twilio_auth_token", "secret")
    monkeypatch.setattr(settings, "twilio_whatsapp_number", "+14155238886")
    monkeypatch.setattr(notifications, "_send_whatsapp", fake_send)
    return sent


@pytest.mark.asyncio
async def test_confirmation_queued_without_provider(client: AsyncClient, test_db, auth_headers, place_order, users):
    await place_order("GS-1001", paymentMethod="whatsapp")

    response = await _queue(client, auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["queued"] is True
    assert body["channel"] == "whatsapp"
    assert body["providerMessageId"].startswith("wamid.")

    stored = await NotificationStore(test_db).list_for_order("GS-1001")
    assert len(stored) == 1
    assert stored[0].tenant_id == "tenant-a"
    assert stored[0].message == CONFIRMATION["message"]
    assert stored[0].delivered_to_provider is False

    result = await test_db.execute(
        select(AuditLog).where(AuditLog.action == "notification.whatsapp_confirmation")
    )
    audit = result.scalar_one()
    assert audit.entity_type == "notification"
    assert audit.entity_id == body["providerMessageId"]
    assert audit.actor_user_id == users["owner"].user_id
    assert audit.details_json == {"orderId": "GS-1001", "channel": "whatsapp"}


@pytest.mark.asyncio
async def test_confirmation_sent_through_twilio(client: AsyncClient, test_db, auth_headers, place_order, whatsapp_outbox):
    await place_order("GS-1001", paymentMethod="whatsapp")

    response = await _queue(client, auth_headers, role="dispatch")

    assert response.status_code == 200
    assert response.json()["providerMessageId"] == "SM0123456789abcdef"
    assert whatsapp_outbox == [("+919876543210", CONFIRMATION["message"])]
    stored = await NotificationStore(test_db).list_for_order("GS-1001")
    assert stored[0].delivered_to_provider is True


@pytest.mark.asyncio
async def test_provider_failure_still_queues(client: AsyncClient, auth_headers, place_order, whatsapp_outbox, monkeypatch):
    def failing_send(to, body):
        raise RuntimeError("twilio unavailable")

    monkeypatch.setattr(notifications, "_send_whatsapp", failing_send)
    await place_order("GS-1001")

    response = await _queue(client, auth_headers)

    assert response.status_code == 200
    assert response.json()["providerMessageId"].startswith("wamid.")


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["orderId", "customerName", "customerPhone", "message"])
async def test_confirmation_requires_every_field(client: AsyncClient, auth_headers, place_order, field):
    await place_order("GS-1001")

    response = await _queue(client, auth_headers, **{field: "  "})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"


@pytest.mark.asyncio
async def test_confirmation_scoped_to_tenant(client: AsyncClient, auth_headers, place_order):
    await place_order("GS-1001")

    response = await _queue(client, auth_headers, role="other_owner")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"

    response = await _queue(client, auth_headers, orderId="GS-404")
    assert response.status_code == 404

    response = await _queue(client, auth_headers, role="kitchen")
    assert response.status_code == 403

    response = await client.post("/notifications/whatsapp/confirmation", json=CONFIRMATION)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_confirmation_blocked_for_inactive_tenant(client: AsyncClient, test_db, auth_headers, place_order):
    await place_order("GS-1001")
    subscription = await TenantStore(test_db).get_subscription("tenant-a")
    subscription.status = "suspended"
    await test_db.commit()

    response = await _queue(client, auth_headers)

    assert response.status_code == 402
    assert response.json()["code"] == "SUBSCRIPTION_INACTIVE"
    assert await NotificationStore(test_db).list_for_order("GS-1001") == []
