"""Integration tests for vote endpoints."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient


class TestVoteOnGroup:
    """Test POST /api/groups/{id}/vote."""

    @pytest.mark.asyncio
    async def test_anonymous_is_sent_to_login(self, client: AsyncClient, make_group):
        group = await make_group()
        response = await client.post(f"/api/groups/{group.id}/vote", json={"vote_type": "upvote"})

        assert response.status_code == 401
        assert response.headers["Location"] == f"/auth/login?redirect=/group/{group.id}"
        assert response.json() == {"success": False, "error": "Sign in to vote"}

    @pytest.mark.asyncio
    async def test_toggle_sequence(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        headers = auth_headers(await make_user())
        url = f"/api/groups/{group.id}/vote"

        first = await client.post(url, json={"vote_type": "upvote"}, headers=headers)
        assert first.status_code == 201
        assert first.json()["message"] == "Vote recorded"
        assert first.json()["data"] == {"action": "created", "vote_type": "upvote", "upvotes": 1, "downvotes": 0}

        second = await client.post(url, json={"vote_type": "upvote"}, headers=headers)
        assert second.status_code == 200
        assert second.json()["message"] == "Vote removed"
        assert second.json()["data"] == {"action": "removed", "vote_type": None, "upvotes": 0, "downvotes": 0}

        third = await client.post(url, json={"vote_type": "downvote"}, headers=headers)
        assert third.status_code == 201
        assert third.json()["data"] == {"action": "created", "vote_type": "downvote", "upvotes": 0, "downvotes": 1}

        fourth = await client.post(url, json={"vote_type": "upvote"}, headers=headers)
        assert fourth.status_code == 200
        assert fourth.json()["message"] == "Vote changed"
        assert fourth.json()["data"] == {"action": "changed", "vote_type": "upvote", "upvotes": 1, "downvotes": 0}

    @pytest.mark.asyncio
    async def test_invalid_vote_type(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        response = await client.post(
            f"/api/groups/{group.id}/vote",
            json={"vote_type": "sideways"},
            headers=auth_headers(await make_user()),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request data"
        assert "details" in response.json()

    @pytest.mark.asyncio
    async def test_unknown_group(self, client: AsyncClient, make_user, auth_headers):
        response = await client.post(
            f"/api/groups/{uuid.uuid4()}/vote",
            json={"vote_type": "upvote"},
            headers=auth_headers(await make_user()),
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Group not found"


class TestVotesEndpoint:
    """Test /api/votes."""

    @pytest.mark.asyncio
    async def test_cast_via_body(self, client: AsyncClient, db_session, make_user, make_group, auth_headers):
        submitter = await make_user()
        group = await make_group(submitter=submitter)
        voter = await make_user()

        response = await client.post(
            "/api/votes",
            json={"group_id": str(group.id), "vote_type": "upvote"},
            headers=auth_headers(voter),
        )

        assert response.status_code == 201
        assert response.json()["data"]["upvotes"] == 1
        await db_session.refresh(submitter)
        assert submitter.reputation_points == 2

    @pytest.mark.asyncio
    async def test_anonymous_cast_via_body(self, client: AsyncClient, make_group):
        group = await make_group()
        response = await client.post("/api/votes", json={"group_id": str(group.id), "vote_type": "upvote"})
        assert response.status_code == 401
        assert response.headers["Location"].endswith(f"redirect=/group/{group.id}")

    @pytest.mark.asyncio
    async def test_current_vote_lookup(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        voter = await make_user()

        before = await client.get(f"/api/votes/{group.id}/{voter.id}")
        assert before.json()["data"] == {"vote_type": None}

        await client.post(f"/api/groups/{group.id}/vote", json={"vote_type": "downvote"}, headers=auth_headers(voter))

        after = await client.get(f"/api/votes/{group.id}/{voter.id}")
        assert after.json()["data"] == {"vote_type": "downvote"}

    @pytest.mark.asyncio
    async def test_list_votes(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        for vote_type in ("upvote", "upvote", "downvote"):
            await client.post(
                f"/api/groups/{group.id}/vote", json={"vote_type": vote_type}, headers=auth_headers(await make_user())
            )

        response = await client.get(f"/api/votes?group_id={group.id}&vote_type=upvote")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert {v["vote_type"] for v in data["votes"]} == {"upvote"}
