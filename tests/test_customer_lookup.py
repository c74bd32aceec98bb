"""Customer order lookup behind a phone OTP"""

import pytest
from httpx import AsyncClient

from app.config import settings
from app.models.otp import CustomerLookupOtp
from app.services import lookup_otp
from app.stores import LookupOtpStore, OrderStore
from app.utils import now_ms

PHONE = "+91 98765 43210"


@pytest.fixture
def debug_otp(monkeypatch):
    """Return the code in the request-otp response"""
    monkeypatch.setattr(settings, "enable_debug_otp", True)


async def _request_otp(client, phone=PHONE, tenant_id="tenant-a", headers=None):
    body = {"phone": phone}
    if tenant_id is not None:
        body["tenantId"] = tenant_id
    return await client.post("/orders/customer/request-otp", json=body, headers=headers)


async def _lookup(client, request_id, otp_code, phone=PHONE, headers=None):
    return await client.post(
        "/orders/customer/lookup",
        json={"phone": phone, "requestId": request_id, "otpCode": otp_code},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_lookup_returns_orders_newest_first(client: AsyncClient, test_db, place_order, debug_otp):
    await place_order("GS-1001")
    await place_order("GS-1002", customer={"name": "Asha Rao", "phone": "9876543210"})
    await place_order("GS-1003", customer={"name": "Someone Else", "phone": "+91 91234 56789"})

    # Spread creation times so ordering is deterministic
    store = OrderStore(test_db)
    for offset, order_id in enumerate(["GS-1001", "GS-1002", "GS-1003"]):
        order = await store.get(order_id)
        order.created_at = 1_700_000_000_000 + offset * 60_000
    await test_db.commit()

    response = await _request_otp(client, phone="9876543210")
    assert response.status_code == 200
    challenge = response.json()
    assert challenge["requestId"].startswith("otp_")
    assert 1000 <= int(challenge["debugOtp"]) <= 9999
    assert challenge["expiresAt"] > now_ms()

    # Country-code prefix on one side only still matches
    response = await _lookup(client, challenge["requestId"], challenge["debugOtp"])
    assert response.status_code == 200
    assert [order["orderId"] for order in response.json()] == ["GS-1002", "GS-1001"]

    # Single use
    response = await _lookup(client, challenge["requestId"], challenge["debugOtp"])
    assert response.status_code == 400
    assert response.json()["code"] == "OTP_REQUEST_INVALID"


@pytest.mark.asyncio
async def test_debug_otp_hidden_by_default(client: AsyncClient, tenants):
    response = await _request_otp(client)

    assert response.status_code == 200
    assert "debugOtp" not in response.json()
    assert set(response.json()) == {"requestId", "expiresAt"}


@pytest.mark.asyncio
async def test_request_otp_validation(client: AsyncClient, tenants):
    response = await _request_otp(client, phone="98765-4321")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"

    response = await _request_otp(client, phone=None)
    assert response.status_code == 400

    response = await _request_otp(client, tenant_id="no-such-tenant")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_overlong_phone_rejected(client: AsyncClient, tenants, debug_otp):
    response = await _request_otp(client, phone="9" * 40)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"

    challenge = (await _request_otp(client)).json()
    response = await _lookup(client, challenge["requestId"], challenge["debugOtp"], phone="9" * 40)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"


@pytest.mark.asyncio
async def test_anonymous_request_defaults_to_storefront_tenant(client: AsyncClient, test_db, tenants):
    response = await _request_otp(client, tenant_id=None)
    assert response.status_code == 200

    record = await LookupOtpStore(test_db).get(response.json()["requestId"])
    assert record.tenant_id == settings.default_tenant_id
    assert record.phone == "919876543210"
    assert record.attempts == 0


@pytest.mark.asyncio
async def test_staff_request_pinned_to_own_tenant(client: AsyncClient, test_db, auth_headers):
    response = await _request_otp(client, tenant_id="tenant-b", headers=auth_headers("owner"))
    assert response.status_code == 200

    record = await LookupOtpStore(test_db).get(response.json()["requestId"])
    assert record.tenant_id == "tenant-a"


@pytest.mark.asyncio
async def test_attempt_cap_deletes_challenge(client: AsyncClient, tenants, debug_otp):
    challenge = (await _request_otp(client, phone="9000010021")).json()

    for remaining in (4, 3, 2, 1):
        response = await _lookup(client, challenge["requestId"], "0000", phone="9000010021")
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_OTP"
        assert body["details"] == {"attemptsRemaining": remaining}

    response = await _lookup(client, challenge["requestId"], "0000", phone="9000010021")
    assert response.status_code == 400
    assert response.json()["code"] == "OTP_ATTEMPTS_EXCEEDED"

    # Even the right code is useless now
    response = await _lookup(client, challenge["requestId"], challenge["debugOtp"])
    assert response.status_code == 400
    assert response.json()["code"] == "OTP_REQUEST_INVALID"


@pytest.mark.asyncio
async def test_phone_mismatch(client: AsyncClient, tenants, debug_otp):
    challenge = (await _request_otp(client)).json()

    response = await _lookup(client, challenge["requestId"], challenge["debugOtp"], phone="9123456789")

    assert response.status_code == 400
    assert response.json()["code"] == "PHONE_MISMATCH"


@pytest.mark.asyncio
async def test_expired_challenge(client: AsyncClient, test_db, tenants, debug_otp):
    challenge = (await _request_otp(client)).json()

    record = await LookupOtpStore(test_db).get(challenge["requestId"])
    record.expires_at = now_ms() - 1
    await test_db.commit()

    response = await _lookup(client, challenge["requestId"], challenge["debugOtp"])

    assert response.status_code == 400
    assert response.json()["code"] == "OTP_REQUEST_INVALID"


@pytest.mark.asyncio
async def test_staff_of_other_tenant_cannot_consume(client: AsyncClient, auth_headers, debug_otp):
    challenge = (await _request_otp(client)).json()

    response = await _lookup(
        client,
        challenge["requestId"],
        challenge["debugOtp"],
        headers=auth_headers("other_owner"),
    )

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_lookup_payload_validation(client: AsyncClient, tenants):
    response = await _lookup(client, "", "1234")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"

    response = await _lookup(client, "otp_missing", "1234", phone="123")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"

    response = await _lookup(client, "otp_missing", "1234")
    assert response.status_code == 400
    assert response.json()["code"] == "OTP_REQUEST_INVALID"


@pytest.mark.asyncio
async def test_prune_removes_only_expired(test_db, tenants):
    now = now_ms()
    for request_id, expires_at in (("otp_old", now - 1), ("otp_live", now + 60_000)):
        test_db.add(
            CustomerLookupOtp(
                request_id=request_id,
                phone="9876543210",
                tenant_id="tenant-a",
                otp_code="1234",
                attempts=0,
                created_at=now - 300_000,
                expires_at=expires_at,
            )
        )
    await test_db.commit()

    removed = await lookup_otp.prune_expired(test_db, now=now)

    assert removed == 1
    assert await LookupOtpStore(test_db).get("otp_live") is not None
    assert await LookupOtpStore(test_db).get("otp_old") is None


@pytest.mark.asyncio
async def test_sms_sent_when_configured(client: AsyncClient, tenants, monkeypatch):
    sent = []

    async def fake_send(phone_digits, otp_code, ttl_seconds):
        sent.append((phone_digits, otp_code, ttl_seconds))
        return True

    monkeypatch.setattr(lookup_otp, "send_lookup_otp_sms", fake_send)

    response = await _request_otp(client)

    assert response.status_code == 200
    assert len(sent) == 1
    assert sent[0][0] == "919876543210"
    assert sent[0][2] == settings.customer_lookup_otp_ttl_seconds
