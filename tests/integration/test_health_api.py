"""Integration tests for health, readiness and version endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestProbes:
    """Test /health, /ready and /version."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_ready_checks_database(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready", "checks": {"database": "ok"}}

    @pytest.mark.asyncio
    async def test_version(self, client: AsyncClient):
        response = await client.get("/version")
        assert response.json() == {"version": "0.1.0", "environment": "development"}

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "req-1"})
        assert response.headers["X-Request-ID"] == "req-1"
