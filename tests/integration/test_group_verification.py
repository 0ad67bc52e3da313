"""Integration tests for group verification."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from fgd.db.models import VerificationLog


class TestSetVerification:
    """Test PUT /api/groups/{id}/verification."""

    @pytest.mark.asyncio
    async def test_requires_moderator(self, client: AsyncClient, db_session, make_user, make_group, auth_headers):
        group = await make_group()
        body = {"verification_status": "verified"}

        anonymous = await client.put(f"/api/groups/{group.id}/verification", json=body)
        assert anonymous.status_code == 401

        regular = await client.put(
            f"/api/groups/{group.id}/verification", json=body, headers=auth_headers(await make_user())
        )
        assert regular.status_code == 403

        await db_session.refresh(group)
        assert group.is_verified is False
        assert group.verification_status is None
        assert group.verified_by is None
        logs = await db_session.scalar(select(func.count()).select_from(VerificationLog))
        assert logs == 0

    @pytest.mark.asyncio
    async def test_invalid_status(self, client: AsyncClient, db_session, make_user, make_group, auth_headers):
        group = await make_group()

        response = await client.put(
            f"/api/groups/{group.id}/verification",
            json={"verification_status": "approved"},
            headers=auth_headers(await make_user(role="admin")),
        )

        assert response.status_code == 400
        await db_session.refresh(group)
        assert group.verification_status is None

    @pytest.mark.asyncio
    async def test_is_verified_follows_status(
        self, client: AsyncClient, db_session, make_user, make_group, auth_headers
    ):
        moderator = await make_user(role="admin", display_name="Mod")
        headers = auth_headers(moderator)
        group = await make_group()

        verified = await client.put(
            f"/api/groups/{group.id}/verification",
            json={"verification_status": "verified", "notes": "  Admins confirmed  "},
            headers=headers,
        )
        assert verified.status_code == 200
        assert verified.json()["message"] == "Group verification status updated to verified"
        data = verified.json()["data"]
        assert data["is_verified"] is True
        assert data["verification_status"] == "verified"
        assert data["verification_notes"] == "Admins confirmed"
        assert data["verified_by"] == str(moderator.id)
        assert data["verification_date"] is not None

        flagged = await client.put(
            f"/api/groups/{group.id}/verification", json={"verification_status": "flagged"}, headers=headers
        )
        assert flagged.json()["data"]["is_verified"] is False
        assert flagged.json()["data"]["verification_notes"] is None

        await db_session.refresh(group)
        assert (group.is_verified, group.verification_status) == (False, "flagged")

        listed = await client.get(f"/api/groups/{group.id}")
        assert listed.json()["data"]["is_verified"] is False
        assert listed.json()["data"]["verification_status"] == "flagged"

    @pytest.mark.asyncio
    async def test_unknown_group(self, client: AsyncClient, make_user, auth_headers):
        response = await client.put(
            "/api/groups/00000000-0000-0000-0000-000000000000/verification",
            json={"verification_status": "verified"},
            headers=auth_headers(await make_user(role="admin")),
        )
        assert response.status_code == 404


class TestReadVerification:
    """Test GET /api/groups/{id}/verification."""

    @pytest.mark.asyncio
    async def test_returns_history(self, client: AsyncClient, make_user, make_group, auth_headers):
        moderator = await make_user(role="admin", display_name="Mod")
        group = await make_group()
        for status in ("needs_review", "verified"):
            await client.put(
                f"/api/groups/{group.id}/verification",
                json={"verification_status": status},
                headers=auth_headers(moderator),
            )

        response = await client.get(f"/api/groups/{group.id}/verification", headers=auth_headers(await make_user()))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["is_verified"] is True
        assert sorted(log["status"] for log in data["logs"]) == ["needs_review", "verified"]
        assert {log["moderator"]["display_name"] for log in data["logs"]} == {"Mod"}

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient, make_group):
        group = await make_group()
        response = await client.get(f"/api/groups/{group.id}/verification")
        assert response.status_code == 401
