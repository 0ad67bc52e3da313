"""Denormalized group aggregates: rating average, review count, vote counters.

All writes are single SQL statements evaluated by the database, so
concurrent requests never overwrite each other's increments.
"""

from __future__ import annotations

import uuid

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import Group, Review


async def recompute_group_rating(db: AsyncSession, group_id: uuid.UUID) -> tuple[float, int]:
    """Rewrite average_rating and review_count from the group's current reviews.

    Runs inside the caller's transaction, after the review change is flushed.
    A group with no reviews gets 0.0 / 0.
    """
    await db.flush()
    row = (
        await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.group_id == group_id)
        )
    ).one()
    average = float(row[0]) if row[0] is not None else 0.0
    count = int(row[1] or 0)

    await db.execute(
        update(Group)
        .where(Group.id == group_id)
        .values(average_rating=average, review_count=count)
        .execution_options(synchronize_session=False)
    )
    await _reload(db, group_id)
    return average, count


def _shifted(column, delta: int):  # noqa: ANN001, ANN202
    if delta >= 0:
        return column + delta
    return case((column + delta > 0, column + delta), else_=0)


async def adjust_vote_counters(
    db: AsyncSession,
    group_id: uuid.UUID,
    upvotes: int = 0,
    downvotes: int = 0,
) -> tuple[int, int]:
    """Shift the vote counters by the given deltas, never below zero. Returns (upvotes, downvotes)."""
    values = {}
    if upvotes:
        values["upvotes"] = _shifted(Group.upvotes, upvotes)
    if downvotes:
        values["downvotes"] = _shifted(Group.downvotes, downvotes)
    if values:
        await db.execute(
            update(Group)
            .where(Group.id == group_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    group = await _reload(db, group_id)
    return group.upvotes, group.downvotes


async def increment_view_count(db: AsyncSession, group_id: uuid.UUID) -> None:
    await db.execute(
        update(Group)
        .where(Group.id == group_id)
        .values(view_count=Group.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    await _reload(db, group_id)


async def _reload(db: AsyncSession, group_id: uuid.UUID) -> Group:
    """Refresh the session's copy of the group after a SQL-side update."""
    return await db.get(Group, group_id, populate_existing=True)
