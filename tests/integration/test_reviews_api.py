"""Integration tests for review endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestCreateReview:
    """Test POST /api/reviews."""

    @pytest.mark.asyncio
    async def test_create_and_aggregate(self, client: AsyncClient, db_session, make_user, make_group, auth_headers):
        group = await make_group()

        first = await client.post(
            "/api/reviews",
            json={"group_id": str(group.id), "rating": 4, "comment": "Friendly people"},
            headers=auth_headers(await make_user(display_name="Ana")),
        )
        assert first.status_code == 201
        assert first.json()["data"]["author"]["display_name"] == "Ana"

        second = await client.post(
            "/api/reviews",
            json={"group_id": str(group.id), "rating": 2},
            headers=auth_headers(await make_user()),
        )
        assert second.status_code == 201

        await db_session.refresh(group)
        assert (group.average_rating, group.review_count) == (3.0, 2)

    @pytest.mark.asyncio
    async def test_second_review_conflicts(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        headers = auth_headers(await make_user())
        await client.post("/api/reviews", json={"group_id": str(group.id), "rating": 4}, headers=headers)

        response = await client.post("/api/reviews", json={"group_id": str(group.id), "rating": 1}, headers=headers)
        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "You have already reviewed this group"}

    @pytest.mark.asyncio
    async def test_rating_out_of_range(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        response = await client.post(
            "/api/reviews",
            json={"group_id": str(group.id), "rating": 6},
            headers=auth_headers(await make_user()),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient, make_group):
        group = await make_group()
        response = await client.post("/api/reviews", json={"group_id": str(group.id), "rating": 4})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_submitter_is_emailed(
        self, client: AsyncClient, make_user, make_group, auth_headers, mock_email_service
    ):
        submitter = await make_user()
        group = await make_group(submitter=submitter)

        await client.post(
            "/api/reviews",
            json={"group_id": str(group.id), "rating": 5, "comment": "Love it"},
            headers=auth_headers(await make_user(display_name="Ana")),
        )

        to, template_name, context = mock_email_service.send_template.await_args.args
        assert (to, template_name) == (submitter.email, "new_review")
        assert context["reviewer_name"] == "Ana"
        assert context["rating"] == 5


class TestGroupReviews:
    """Test the nested upsert endpoint and listing."""

    @pytest.mark.asyncio
    async def test_upsert(self, client: AsyncClient, db_session, make_user, make_group, auth_headers):
        group = await make_group()
        headers = auth_headers(await make_user())
        url = f"/api/groups/{group.id}/reviews"

        created = await client.post(url, json={"rating": 2}, headers=headers)
        assert created.status_code == 201
        assert created.json()["message"] == "Review submitted successfully"

        updated = await client.post(url, json={"rating": 5, "comment": "Changed my mind"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["message"] == "Review updated successfully"
        assert updated.json()["data"]["id"] == created.json()["data"]["id"]

        await db_session.refresh(group)
        assert (group.average_rating, group.review_count) == (5.0, 1)

    @pytest.mark.asyncio
    async def test_list(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        for rating in (3, 4):
            await client.post(
                f"/api/groups/{group.id}/reviews", json={"rating": rating}, headers=auth_headers(await make_user())
            )

        response = await client.get(f"/api/groups/{group.id}/reviews")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert sorted(r["rating"] for r in data["reviews"]) == [3, 4]

        second_page = await client.get(f"/api/groups/{group.id}/reviews?limit=1&page=2")
        assert second_page.json()["data"]["offset"] == 1
        assert len(second_page.json()["data"]["reviews"]) == 1


class TestEditAndDelete:
    """Test author-only edits."""

    @pytest.mark.asyncio
    async def test_only_author_may_edit(self, client: AsyncClient, make_user, make_group, auth_headers):
        group = await make_group()
        author = await make_user()
        created = await client.post(
            "/api/reviews", json={"group_id": str(group.id), "rating": 4}, headers=auth_headers(author)
        )
        review_id = created.json()["data"]["id"]

        forbidden = await client.put(
            f"/api/reviews/{review_id}", json={"rating": 1}, headers=auth_headers(await make_user())
        )
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "You can only edit your own reviews"

        response = await client.put(f"/api/reviews/{review_id}", json={"rating": 2}, headers=auth_headers(author))
        assert response.status_code == 200
        assert response.json()["data"]["rating"] == 2

    @pytest.mark.asyncio
    async def test_delete_recomputes(self, client: AsyncClient, db_session, make_user, make_group, auth_headers):
        group = await make_group()
        author = await make_user()
        created = await client.post(
            "/api/reviews", json={"group_id": str(group.id), "rating": 4}, headers=auth_headers(author)
        )
        review_id = created.json()["data"]["id"]

        forbidden = await client.delete(f"/api/reviews/{review_id}", headers=auth_headers(await make_user()))
        assert forbidden.status_code == 403

        response = await client.delete(f"/api/reviews/{review_id}", headers=auth_headers(author))
        assert response.status_code == 200

        await db_session.refresh(group)
        assert (group.average_rating, group.review_count) == (0.0, 0)

        missing = await client.get(f"/api/reviews/{review_id}")
        assert missing.status_code == 404
