"""Analytics aggregate unit tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from fgd.analytics.service import (
    change_percentage,
    get_analytics,
    get_category_stats,
    get_growth_stats,
    get_platform_stats,
    get_review_stats,
    get_trending_groups,
    get_user_engagement,
)
from fgd.db.models import Category, Review, Vote


class TestChangePercentage:
    """Test period-over-period change."""

    def test_values(self):
        assert change_percentage(15, 10) == 50.0
        assert change_percentage(5, 10) == -50.0
        assert change_percentage(3, 0) is None


class TestPlatformStats:
    """Test the platform summary."""

    @pytest.mark.asyncio
    async def test_totals_and_change(self, db_session, make_user, make_group):
        old = await make_user()
        old.created_at = datetime.now(timezone.utc) - timedelta(days=10)
        await make_user()
        await make_user()
        await make_group()
        await make_group(status="pending")
        await db_session.commit()

        metrics = {m["metric"]: m for m in await get_platform_stats(db_session, days=7)}

        assert metrics["users"] == {"metric": "users", "value": 3, "new_in_period": 2, "change_percentage": 100.0}
        assert metrics["groups"]["value"] == 1
        assert metrics["groups"]["change_percentage"] is None
        assert metrics["pending_groups"]["value"] == 1
        assert metrics["verified_groups"]["value"] == 0
        assert metrics["open_reports"]["value"] == 0


class TestDailySeries:
    """Test per-day series."""

    @pytest.mark.asyncio
    async def test_growth_is_zero_filled(self, db_session, make_user, make_group):
        await make_user()
        await make_group()

        rows = await get_growth_stats(db_session, days=7)

        assert len(rows) == 8
        assert rows[-1]["date"] == datetime.now(timezone.utc).date().isoformat()
        assert sum(r["new_users"] for r in rows) == 1
        assert sum(r["new_groups"] for r in rows) == 1
        assert all(r["new_users"] == 0 for r in rows[:-1])

    @pytest.mark.asyncio
    async def test_user_engagement(self, db_session, make_user, make_group):
        group = await make_group()
        voters = [await make_user(), await make_user()]
        for voter in voters:
            db_session.add(Vote(group_id=group.id, user_id=voter.id, vote_type="upvote"))
        db_session.add(Review(group_id=group.id, user_id=voters[0].id, rating=5))
        await db_session.commit()

        today = (await get_user_engagement(db_session, days=3))[-1]

        assert today["new_users"] == 2
        assert today["votes_cast"] == 2
        assert today["reviews_submitted"] == 1
        assert today["votes_per_user"] == 1.0
        assert today["reviews_per_user"] == 0.5

    @pytest.mark.asyncio
    async def test_review_sentiment(self, db_session, make_user, make_group):
        group = await make_group()
        for rating in (5, 4, 3, 1):
            db_session.add(Review(group_id=group.id, user_id=(await make_user()).id, rating=rating))
        await db_session.commit()

        today = (await get_review_stats(db_session, days=1))[-1]

        assert today["review_count"] == 4
        assert today["avg_rating"] == 3.25
        assert (today["positive_reviews"], today["neutral_reviews"], today["negative_reviews"]) == (2, 1, 1)
        assert today["positive_percentage"] == 50.0


class TestBreakdowns:
    """Test category and trending rankings."""

    @pytest.mark.asyncio
    async def test_categories(self, db_session, make_user, make_group):
        hobbies = Category(name="Hobbies")
        empty = Category(name="Empty")
        db_session.add_all([hobbies, empty])
        await db_session.flush()
        submitter = await make_user()
        for name in ("Knitting", "Birding"):
            group = await make_group(submitter=submitter, name=name)
            group.category_id = hobbies.id
            group.view_count = 10
        hidden = await make_group(status="removed")
        hidden.category_id = hobbies.id
        await db_session.commit()

        rows = await get_category_stats(db_session)

        assert [r["category_name"] for r in rows] == ["Hobbies", "Empty"]
        assert rows[0]["group_count"] == 2
        assert rows[0]["total_views"] == 20
        assert rows[0]["unique_contributors"] == 1
        assert rows[1]["group_count"] == 0
        assert rows[1]["avg_rating"] == 0.0

    @pytest.mark.asyncio
    async def test_trending(self, db_session, make_user, make_group):
        quiet = await make_group(name="Quiet")
        busy = await make_group(name="Busy")
        mixed = await make_group(name="Mixed")
        for _ in range(2):
            db_session.add(Vote(group_id=busy.id, user_id=(await make_user()).id, vote_type="upvote"))
        db_session.add(Vote(group_id=mixed.id, user_id=(await make_user()).id, vote_type="downvote"))
        db_session.add(Review(group_id=mixed.id, user_id=(await make_user()).id, rating=4))
        await db_session.commit()

        rows = await get_trending_groups(db_session, days=7)

        assert [r["group_name"] for r in rows] == ["Busy", "Mixed"]
        assert rows[0]["trend_score"] == 2
        assert (rows[1]["recent_downvotes"], rows[1]["recent_reviews"], rows[1]["trend_score"]) == (1, 1, 1)
        assert quiet.id not in {r["group_id"] for r in rows}


class TestDispatch:
    """Test get_analytics."""

    @pytest.mark.asyncio
    async def test_unknown_type(self, db_session):
        with pytest.raises(ValueError, match="Invalid analytics type"):
            await get_analytics(db_session, "revenue")

    @pytest.mark.asyncio
    async def test_routes_to_report(self, db_session):
        rows = await get_analytics(db_session, "reviews", days=2)
        assert len(rows) == 3
