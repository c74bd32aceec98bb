"""Authentication, error envelope and health endpoints"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_login_and_me(client: AsyncClient, users):
    response = await client.post(
        "/auth/login",
        json={"email": "owner@example.com", "password": "testpass123"},
    )
    assert response.status_code == 200
    token = response.json()
    assert token["token_type"] == "bearer"
    assert token["expires_in"] == 15 * 60

    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {token['access_token']}"}
    )
    assert response.status_code == 200
    me = response.json()
    assert me["email"] == "owner@example.com"
    assert me["role"] == "restaurant_owner"
    assert me["tenantId"] == "tenant-a"
    assert users["owner"].last_login is not None


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(client: AsyncClient, users):
    response = await client.post(
        "/auth/login",
        json={"email": "owner@example.com", "password": "wrong"},
    )
    assert response.status_code == 401
    assert response.json() == {
        "code": "UNAUTHORIZED",
        "message": "Incorrect email or password.",
        "details": {},
    }


@pytest.mark.asyncio
async def test_inactive_user_token_rejected(client: AsyncClient, test_db, users, auth_headers):
    headers = auth_headers("manager")
    users["manager"].is_active = False
    await test_db.commit()

    response = await client.get("/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json()["status"] == "healthy"

    response = await client.get("/health")
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient):
    response = await client.get("/nowhere")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_malformed_json_is_invalid_payload(client: AsyncClient, tenants):
    response = await client.post(
        "/orders",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"
