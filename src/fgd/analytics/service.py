"""Moderator analytics over the directory.

Every report covers the last ``days`` days. Totals and breakdowns are SQL
aggregates; per-day series are bucketed in Python so missing days come back
as zeros.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import Category, Group, Report, Review, User, Vote

logger = structlog.get_logger()

ANALYTICS_TYPES = ("platform", "growth", "categories", "user-engagement", "reviews", "trending")


def _window(days: int) -> tuple[datetime, datetime]:
    now = datetime.now(timezone.utc)
    return now - timedelta(days=days), now - timedelta(days=2 * days)


def _dates(start: date, days: int) -> list[str]:
    return [(start + timedelta(days=offset)).isoformat() for offset in range(days + 1)]


async def _per_day(db: AsyncSession, column, since: datetime, *criteria) -> Counter:
    result = await db.execute(select(column).where(column >= since, *criteria))
    return Counter(ts.date().isoformat() for (ts,) in result.all())


def change_percentage(current: int, previous: int) -> float | None:
    """Period-over-period change; None when the previous period was empty."""
    if previous == 0:
        return None
    return round((current - previous) / previous * 100, 1)


async def get_platform_stats(db: AsyncSession, days: int = 30) -> list[dict[str, Any]]:
    since, previous_since = _window(days)
    sources = (
        ("users", User, User.created_at, ()),
        ("groups", Group, Group.submitted_at, (Group.status == "active",)),
        ("reviews", Review, Review.created_at, ()),
        ("votes", Vote, Vote.created_at, ()),
        ("reports", Report, Report.created_at, ()),
    )
    metrics = []
    for metric, model, column, criteria in sources:
        row = (await db.execute(
            select(
                func.count(),
                func.coalesce(func.sum(case((column >= since, 1), else_=0)), 0),
                func.coalesce(func.sum(case((and_(column >= previous_since, column < since), 1), else_=0)), 0),
            )
            .select_from(model)
            .where(*criteria)
        )).one()
        total, current, previous = (int(v) for v in row)
        metrics.append({
            "metric": metric,
            "value": total,
            "new_in_period": current,
            "change_percentage": change_percentage(current, previous),
        })

    verified = await db.scalar(select(func.count()).select_from(Group).where(Group.is_verified.is_(True)))
    pending = await db.scalar(select(func.count()).select_from(Group).where(Group.status == "pending"))
    open_reports = await db.scalar(
        select(func.count()).select_from(Report).where(Report.status.in_(("pending", "in_review")))
    )
    for metric, value in (("verified_groups", verified), ("pending_groups", pending), ("open_reports", open_reports)):
        metrics.append({"metric": metric, "value": value, "new_in_period": None, "change_percentage": None})
    return metrics


async def get_growth_stats(db: AsyncSession, days: int = 30) -> list[dict[str, Any]]:
    """New users and new listings per day."""
    since, _ = _window(days)
    users = await _per_day(db, User.created_at, since)
    groups = await _per_day(db, Group.submitted_at, since)
    verified = await _per_day(db, Group.verification_date, since, Group.is_verified.is_(True))
    return [
        {"date": day, "new_users": users[day], "new_groups": groups[day], "verified_groups": verified[day]}
        for day in _dates(since.date(), days)
    ]


async def get_user_engagement(db: AsyncSession, days: int = 30) -> list[dict[str, Any]]:
    """Contributions per day, with per-new-user ratios."""
    since, _ = _window(days)
    users = await _per_day(db, User.created_at, since)
    groups = await _per_day(db, Group.submitted_at, since)
    reviews = await _per_day(db, Review.created_at, since)
    votes = await _per_day(db, Vote.created_at, since)
    rows = []
    for day in _dates(since.date(), days):
        new_users = users[day]
        rows.append({
            "date": day,
            "new_users": new_users,
            "groups_submitted": groups[day],
            "reviews_submitted": reviews[day],
            "votes_cast": votes[day],
            "reviews_per_user": round(reviews[day] / new_users, 2) if new_users else 0.0,
            "votes_per_user": round(votes[day] / new_users, 2) if new_users else 0.0,
        })
    return rows


async def get_review_stats(db: AsyncSession, days: int = 30) -> list[dict[str, Any]]:
    """Reviews per day split by sentiment: 4-5 positive, 3 neutral, 1-2 negative."""
    since, _ = _window(days)
    result = await db.execute(select(Review.created_at, Review.rating).where(Review.created_at >= since))
    ratings: dict[str, list[int]] = {}
    for created_at, rating in result.all():
        ratings.setdefault(created_at.date().isoformat(), []).append(rating)

    rows = []
    for day in _dates(since.date(), days):
        values = ratings.get(day, [])
        positive = sum(1 for r in values if r >= 4)
        negative = sum(1 for r in values if r <= 2)
        rows.append({
            "date": day,
            "review_count": len(values),
            "avg_rating": round(sum(values) / len(values), 2) if values else 0.0,
            "positive_reviews": positive,
            "negative_reviews": negative,
            "neutral_reviews": len(values) - positive - negative,
            "positive_percentage": round(positive / len(values) * 100, 1) if values else 0.0,
        })
    return rows


async def get_category_stats(db: AsyncSession, limit: int = 10) -> list[dict[str, Any]]:
    """Active listings per category, biggest first."""
    group_count = func.count(Group.id)
    result = await db.execute(
        select(
            Category.id,
            Category.name,
            group_count,
            func.coalesce(func.sum(Group.view_count), 0),
            func.avg(Group.average_rating),
            func.coalesce(func.sum(Group.upvotes), 0),
            func.coalesce(func.sum(Group.downvotes), 0),
            func.count(func.distinct(Group.submitted_by)),
            func.coalesce(func.sum(case((Group.is_verified.is_(True), 1), else_=0)), 0),
        )
        .select_from(Category)
        .outerjoin(Group, and_(Group.category_id == Category.id, Group.status == "active"))
        .group_by(Category.id, Category.name)
        .order_by(group_count.desc(), Category.name)
        .limit(limit)
    )
    return [
        {
            "category_id": category_id,
            "category_name": name,
            "group_count": count,
            "total_views": int(views),
            "avg_rating": round(float(avg or 0), 2),
            "total_upvotes": int(upvotes),
            "total_downvotes": int(downvotes),
            "unique_contributors": contributors,
            "verified_groups": int(verified),
        }
        for category_id, name, count, views, avg, upvotes, downvotes, contributors, verified in result.all()
    ]


async def get_trending_groups(db: AsyncSession, days: int = 30, limit: int = 10) -> list[dict[str, Any]]:
    """Active listings ranked by recent activity: net recent votes plus two per recent review."""
    since, _ = _window(days)
    recent_votes = (
        select(
            Vote.group_id,
            func.sum(case((Vote.vote_type == "upvote", 1), else_=0)).label("up"),
            func.sum(case((Vote.vote_type == "downvote", 1), else_=0)).label("down"),
        )
        .where(Vote.created_at >= since)
        .group_by(Vote.group_id)
        .subquery()
    )
    recent_reviews = (
        select(Review.group_id, func.count().label("reviews"))
        .where(Review.created_at >= since)
        .group_by(Review.group_id)
        .subquery()
    )
    up = func.coalesce(recent_votes.c.up, 0)
    down = func.coalesce(recent_votes.c.down, 0)
    reviews = func.coalesce(recent_reviews.c.reviews, 0)
    score = up - down + 2 * reviews

    result = await db.execute(
        select(
            Group.id,
            Group.name,
            Group.view_count,
            Group.upvotes,
            Group.downvotes,
            Group.review_count,
            up,
            down,
            reviews,
            score,
        )
        .select_from(Group)
        .outerjoin(recent_votes, recent_votes.c.group_id == Group.id)
        .outerjoin(recent_reviews, recent_reviews.c.group_id == Group.id)
        .where(Group.status == "active", up + down + reviews > 0)
        .order_by(score.desc(), Group.view_count.desc(), Group.name)
        .limit(limit)
    )
    return [
        {
            "group_id": group_id,
            "group_name": name,
            "view_count": views,
            "upvotes": upvotes,
            "downvotes": downvotes,
            "review_count": review_count,
            "recent_upvotes": int(recent_up),
            "recent_downvotes": int(recent_down),
            "recent_reviews": int(recent_review_count),
            "trend_score": int(trend),
        }
        for (
            group_id, name, views, upvotes, downvotes, review_count,
            recent_up, recent_down, recent_review_count, trend,
        ) in result.all()
    ]


async def get_analytics(
    db: AsyncSession,
    analytics_type: str = "platform",
    days: int = 30,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Dispatch to one report.

    Raises:
        ValueError: ``analytics_type`` is not one of ANALYTICS_TYPES.
    """
    if analytics_type not in ANALYTICS_TYPES:
        msg = "Invalid analytics type"
        raise ValueError(msg)

    logger.debug("analytics_requested", analytics_type=analytics_type, days=days)
    if analytics_type == "platform":
        return await get_platform_stats(db, days)
    if analytics_type == "growth":
        return await get_growth_stats(db, days)
    if analytics_type == "user-engagement":
        return await get_user_engagement(db, days)
    if analytics_type == "reviews":
        return await get_review_stats(db, days)
    if analytics_type == "categories":
        return await get_category_stats(db, limit)
    return await get_trending_groups(db, days, limit)
