"""Reputation ledger unit tests: appends, running total, levels, badge cascade."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import ReputationHistory, UserBadge
from fgd.email.notifications import pending_emails
from fgd.exceptions import NotFoundError
from fgd.reputation.ledger import (
    award_reputation_points,
    get_ledger_total,
    get_reputation_history,
    get_reputation_leaderboard,
)


async def _user_badges(db: AsyncSession, user_id: uuid.UUID) -> list[UserBadge]:
    result = await db.execute(
        select(UserBadge).where(UserBadge.user_id == user_id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _history_rows(db: AsyncSession, user_id: uuid.UUID, source_type: str | None = None) -> int:
    stmt = select(func.count()).select_from(ReputationHistory).where(ReputationHistory.user_id == user_id)
    if source_type is not None:
        stmt = stmt.where(ReputationHistory.source_type == source_type)
    return await db.scalar(stmt)


class TestAwardReputationPoints:
    """Test single ledger appends."""

    @pytest.mark.asyncio
    async def test_appends_entry_and_updates_total(self, db_session, make_user):
        user = await make_user()
        entry = await award_reputation_points(db_session, user.id, 10, "Reviewed a group", "review", "abc")

        assert entry.points == 10
        assert entry.source_type == "review"
        assert entry.source_id == "abc"
        assert user.reputation_points == 10
        assert await get_ledger_total(db_session, user.id) == 10

    @pytest.mark.asyncio
    async def test_total_equals_ledger_sum_after_every_append(self, db_session, make_user):
        user = await make_user()
        for points, source in [(15, "group_submission"), (-1, "vote"), (2, "vote"), (-5, "report"), (10, "review")]:
            await award_reputation_points(db_session, user.id, points, "activity", source)
            assert user.reputation_points == await get_ledger_total(db_session, user.id)
        assert user.reputation_points == 21

    @pytest.mark.asyncio
    async def test_negative_total_allowed(self, db_session, make_user):
        user = await make_user()
        await award_reputation_points(db_session, user.id, -5, "Report dismissed", "report")
        assert user.reputation_points == -5
        assert user.reputation_level == 0

    @pytest.mark.asyncio
    async def test_uuid_source_id_stored_as_string(self, db_session, make_user):
        user = await make_user()
        source = uuid.uuid4()
        entry = await award_reputation_points(db_session, user.id, 1, "activity", "review", source)
        assert entry.source_id == str(source)

    @pytest.mark.asyncio
    async def test_unknown_source_type_rejected(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValueError, match="Unknown reputation source type"):
            await award_reputation_points(db_session, user.id, 5, "activity", "bribe")
        assert await _history_rows(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            await award_reputation_points(db_session, uuid.uuid4(), 5, "activity", "review")


class TestLevelChanges:
    """Test level recomputation and milestone emails."""

    @pytest.mark.asyncio
    async def test_level_up_queues_milestone_email(self, db_session, make_user):
        user = await make_user()
        await award_reputation_points(db_session, user.id, 99, "activity", "review")
        assert user.reputation_level == 0
        assert pending_emails(db_session) == []

        await award_reputation_points(db_session, user.id, 1, "activity", "review")
        assert user.reputation_level == 1
        queued = pending_emails(db_session)
        assert [m.template_name for m in queued] == ["reputation_milestone"]
        assert queued[0].to == user.email
        assert queued[0].context["level_name"] == "Contributor"

    @pytest.mark.asyncio
    async def test_level_down_sends_nothing(self, db_session, make_user):
        user = await make_user()
        await award_reputation_points(db_session, user.id, 100, "activity", "review")
        db_session.info.clear()

        await award_reputation_points(db_session, user.id, -5, "Report dismissed", "report")
        assert user.reputation_level == 0
        assert pending_emails(db_session) == []


class TestBadgeCascade:
    """Test the reputation badge check that follows every append."""

    @pytest.mark.asyncio
    async def test_crossing_threshold_awards_one_badge(self, seeded_db, make_user):
        db = seeded_db
        user = await make_user()
        await award_reputation_points(db, user.id, 85, "activity", "review")
        await award_reputation_points(db, user.id, 15, "Submitted group", "group_submission")

        badges = await _user_badges(db, user.id)
        assert [b.badge.name for b in badges] == ["Rising Star"]
        assert await _history_rows(db, user.id, "badge_awarded") == 1

        # 85 + 15 + 10 for Rising Star
        assert user.reputation_points == 110
        assert user.badges_count == 1
        assert await get_ledger_total(db, user.id) == 110

        templates = [m.template_name for m in pending_emails(db)]
        assert templates == ["reputation_milestone", "new_badge"]

    @pytest.mark.asyncio
    async def test_chained_badges_are_each_inserted_once(self, seeded_db, make_user):
        db = seeded_db
        user = await make_user()
        await award_reputation_points(db, user.id, 600, "Imported reputation", "review")

        names = {b.badge.name for b in await _user_badges(db, user.id)}
        assert names == {"Rising Star", "Trusted Member"}
        # 600 + 10 (Rising Star) + 25 (Trusted Member)
        assert user.reputation_points == 635
        assert user.badges_count == 2
        assert await _history_rows(db, user.id, "badge_awarded") == 2
        assert await get_ledger_total(db, user.id) == 635

    @pytest.mark.asyncio
    async def test_further_appends_do_not_regrant(self, seeded_db, make_user):
        db = seeded_db
        user = await make_user()
        await award_reputation_points(db, user.id, 100, "activity", "review")
        await award_reputation_points(db, user.id, 5, "activity", "review")

        rows = await _user_badges(db, user.id)
        assert len(rows) == 1
        assert rows[0].times_awarded == 1


class TestHistoryAndLeaderboard:
    """Test ledger reads."""

    @pytest.mark.asyncio
    async def test_history_page_and_total(self, db_session, make_user):
        user = await make_user()
        for i in range(4):
            await award_reputation_points(db_session, user.id, i + 1, f"activity {i}", "review")

        page, total = await get_reputation_history(db_session, user.id, limit=2, offset=0)
        assert total == 4
        assert len(page) == 2

    @pytest.mark.asyncio
    async def test_leaderboard_ranks_and_skips_banned(self, db_session, make_user):
        top = await make_user(display_name="Top")
        second = await make_user(display_name="Second")
        banned = await make_user(display_name="Banned", is_banned=True)
        await award_reputation_points(db_session, top.id, 50, "activity", "review")
        await award_reputation_points(db_session, second.id, 20, "activity", "review")
        await award_reputation_points(db_session, banned.id, 90, "activity", "review")

        board = await get_reputation_leaderboard(db_session, limit=10)
        assert [e["display_name"] for e in board] == ["Top", "Second"]
        assert [e["rank"] for e in board] == [1, 2]
        assert board[0]["level_name"] == "Newcomer"
        assert board[0]["reviews_count"] == 0
