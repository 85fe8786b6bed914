"""Tests for the health endpoint and request logging middleware."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["env"] == "test"
    assert "version" in data


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_is_generated(client: AsyncClient):
    response = await client.get("/health")
    assert response.headers.get("X-Request-ID")


def test_default_rate_limits_are_enforced_by_middleware():
    from slowapi.middleware import SlowAPIMiddleware

    from soloflow.main import app

    assert any(m.cls is SlowAPIMiddleware for m in app.user_middleware)
