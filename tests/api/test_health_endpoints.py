"""Tests for health endpoints and middleware."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_ready_checks_database(client: AsyncClient):
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok"}}


@pytest.mark.asyncio
async def test_version(client: AsyncClient):
    body = (await client.get("/version")).json()
    assert "version" in body
    assert "environment" in body


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient):
    response = await client.get("/health")
    assert response.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_request_id_propagated(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_with_unsafe_characters_is_replaced(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-Id": "abc def\tinjected"})
    request_id = response.headers["X-Request-Id"]
    assert request_id != "abc def\tinjected"
    assert len(request_id) == 32


@pytest.mark.asyncio
async def test_cors_preflight_for_web_client(client: AsyncClient):
    response = await client.options(
        "/api/v1/me/profile",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "PATCH",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert "PATCH" in response.headers["access-control-allow-methods"]


@pytest.mark.asyncio
async def test_cors_exposes_request_id(client: AsyncClient):
    response = await client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert "X-Request-Id" in response.headers["access-control-expose-headers"]
