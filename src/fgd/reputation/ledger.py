"""Reputation ledger: append-only point history with a denormalized running total.

Every award:
1. Appends a reputation_history row
2. Adds the points to users.reputation_points in SQL
3. Recomputes users.reputation_level, queueing a milestone email on level-up
4. Runs the reputation badge check for the user
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.config import get_settings
from fgd.db.models import Group, ReputationHistory, Review, User
from fgd.email.notifications import queue_email
from fgd.exceptions import DataLayerError, NotFoundError
from fgd.reputation.levels import level_for_points, level_name

logger = structlog.get_logger()

REPUTATION_POINTS: dict[str, int] = {
    "GROUP_SUBMISSION": 15,
    "REVIEW": 10,
    "UPVOTE_RECEIVED": 2,
    "DOWNVOTE_RECEIVED": -1,
    "REPORT_SUBMISSION": 5,
    "REPORT_ACCEPTED": 10,
    "REPORT_REJECTED": -5,
    "PROFILE_COMPLETED": 5,
}

SOURCE_TYPES = frozenset({
    "group_submission",
    "review",
    "vote",
    "report",
    "profile_update",
    "badge_awarded",
})


async def award_reputation_points(
    db: AsyncSession,
    user_id: uuid.UUID,
    points: int,
    reason: str,
    source_type: str,
    source_id: str | uuid.UUID | None = None,
) -> ReputationHistory:
    """Append a ledger entry and apply it to the user's total.

    Raises:
        ValueError: Unknown source type.
        NotFoundError: No such user.
        DataLayerError: The entry or the total could not be written.
    """
    from fgd.reputation.badges import check_reputation_badges

    if source_type not in SOURCE_TYPES:
        msg = f"Unknown reputation source type: {source_type}"
        raise ValueError(msg)

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    old_level = user.reputation_level

    entry = ReputationHistory(
        user_id=user_id,
        points=points,
        reason=reason,
        source_type=source_type,
        source_id=str(source_id) if source_id is not None else None,
    )
    db.add(entry)
    try:
        await db.flush()
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(reputation_points=User.reputation_points + points)
            .execution_options(synchronize_session=False)
        )
        user = await db.get(User, user_id, populate_existing=True)
    except SQLAlchemyError as e:
        logger.error("reputation_award_failed", user_id=str(user_id), points=points, source_type=source_type)
        raise DataLayerError("Failed to award reputation points") from e

    new_level = level_for_points(user.reputation_points)
    if new_level != old_level:
        user.reputation_level = new_level
        await db.flush()
    if new_level > old_level:
        settings = get_settings()
        await queue_email(db, user, "reputation_milestone", {
            "display_name": user.display_name,
            "level": new_level,
            "level_name": level_name(new_level),
            "points": user.reputation_points,
            "profile_url": f"{settings.site_url}/profile",
        })

    logger.info(
        "reputation_awarded",
        user_id=str(user_id),
        points=points,
        total=user.reputation_points,
        level=new_level,
        source_type=source_type,
    )

    await check_reputation_badges(db, user_id)
    return entry


async def get_reputation_history(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[ReputationHistory], int]:
    """Newest-first page of a user's ledger plus the total entry count."""
    result = await db.execute(
        select(ReputationHistory)
        .where(ReputationHistory.user_id == user_id)
        .order_by(ReputationHistory.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    total = await db.scalar(
        select(func.count()).select_from(ReputationHistory).where(ReputationHistory.user_id == user_id)
    )
    return list(result.scalars().all()), total or 0


async def get_ledger_total(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Sum of all ledger points for a user; equals users.reputation_points."""
    total = await db.scalar(
        select(func.coalesce(func.sum(ReputationHistory.points), 0)).where(ReputationHistory.user_id == user_id)
    )
    return int(total or 0)


async def get_reputation_leaderboard(db: AsyncSession, limit: int = 10, offset: int = 0) -> list[dict]:
    """Users ranked by reputation, with contribution counts."""
    reviews_count = (
        select(func.count(Review.id)).where(Review.user_id == User.id).correlate(User).scalar_subquery()
    )
    groups_count = (
        select(func.count(Group.id)).where(Group.submitted_by == User.id).correlate(User).scalar_subquery()
    )
    result = await db.execute(
        select(User, reviews_count.label("reviews_count"), groups_count.label("groups_submitted_count"))
        .where(User.is_banned.is_(False))
        .order_by(User.reputation_points.desc(), User.created_at.asc())
        .limit(limit)
        .offset(offset)
    )

    entries = []
    for rank, (user, n_reviews, n_groups) in enumerate(result.all(), start=offset + 1):
        entries.append({
            "rank": rank,
            "user_id": user.id,
            "display_name": user.display_name,
            "avatar_url": user.avatar_url,
            "reputation_points": user.reputation_points,
            "reputation_level": user.reputation_level,
            "level_name": level_name(user.reputation_level),
            "badges_count": user.badges_count,
            "reviews_count": n_reviews or 0,
            "groups_submitted_count": n_groups or 0,
        })
    return entries
