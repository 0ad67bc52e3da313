"""Integration tests for the analytics endpoint."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestAnalyticsEndpoint:
    """Test GET /api/analytics."""

    @pytest.mark.asyncio
    async def test_requires_moderator(self, client: AsyncClient, make_user, auth_headers):
        anonymous = await client.get("/api/analytics")
        assert anonymous.status_code == 401

        regular = await client.get("/api/analytics", headers=auth_headers(await make_user()))
        assert regular.status_code == 403

    @pytest.mark.asyncio
    async def test_platform_summary(self, client: AsyncClient, make_user, make_group, auth_headers):
        headers = auth_headers(await make_user(role="admin"))
        await make_group()
        await make_group(status="pending")

        response = await client.get("/api/analytics?period=7", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert (data["type"], data["period"]) == ("platform", 7)
        metrics = {row["metric"]: row["value"] for row in data["rows"]}
        assert metrics["users"] == 1
        assert metrics["groups"] == 1
        assert metrics["pending_groups"] == 1

    @pytest.mark.asyncio
    async def test_daily_series_length(self, client: AsyncClient, make_user, auth_headers):
        headers = auth_headers(await make_user(role="admin"))

        response = await client.get("/api/analytics?type=growth&period=14", headers=headers)

        rows = response.json()["data"]["rows"]
        assert len(rows) == 15
        assert sum(r["new_users"] for r in rows) == 1

    @pytest.mark.asyncio
    async def test_trending_after_vote(self, client: AsyncClient, make_user, make_group, auth_headers):
        headers = auth_headers(await make_user(role="admin"))
        group = await make_group(name="Busy")
        await client.post(f"/api/groups/{group.id}/vote", json={"vote_type": "upvote"}, headers=headers)

        response = await client.get("/api/analytics?type=trending", headers=headers)

        rows = response.json()["data"]["rows"]
        assert [(r["group_id"], r["trend_score"]) for r in rows] == [(str(group.id), 1)]

    @pytest.mark.asyncio
    async def test_invalid_type(self, client: AsyncClient, make_user, auth_headers):
        response = await client.get("/api/analytics?type=revenue", headers=auth_headers(await make_user(role="admin")))
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid analytics type"}

    @pytest.mark.asyncio
    async def test_period_bounds(self, client: AsyncClient, make_user, auth_headers):
        response = await client.get("/api/analytics?period=0", headers=auth_headers(await make_user(role="admin")))
        assert response.status_code == 400
