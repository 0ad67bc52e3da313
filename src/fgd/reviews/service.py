"""Group reviews. Every create, edit or delete recomputes the group's rating aggregate."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import Review, User
from fgd.email.notifications import queue_email
from fgd.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from fgd.groups.aggregates import recompute_group_rating
from fgd.groups.service import get_group, group_url
from fgd.reputation.badges import check_contribution_badges
from fgd.reputation.ledger import REPUTATION_POINTS, award_reputation_points

logger = structlog.get_logger()


def _check_rating(rating: int) -> None:
    if not isinstance(rating, int) or not 1 <= rating <= 5:
        msg = "Rating must be between 1 and 5"
        raise ValueError(msg)


async def get_review(db: AsyncSession, review_id: uuid.UUID) -> Review:
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


async def find_user_review(db: AsyncSession, user_id: uuid.UUID, group_id: uuid.UUID) -> Review | None:
    result = await db.execute(select(Review).where(Review.user_id == user_id, Review.group_id == group_id))
    return result.scalar_one_or_none()


async def list_reviews(
    db: AsyncSession,
    *,
    group_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Review], int]:
    filters = []
    if group_id is not None:
        filters.append(Review.group_id == group_id)
    if user_id is not None:
        filters.append(Review.user_id == user_id)
    result = await db.execute(
        select(Review).where(*filters).order_by(Review.created_at.desc()).limit(limit).offset(offset)
    )
    total = await db.scalar(select(func.count()).select_from(Review).where(*filters))
    return list(result.scalars().all()), total or 0


async def create_review(
    db: AsyncSession,
    user: User,
    group_id: uuid.UUID,
    rating: int,
    comment: str | None = None,
) -> Review:
    """Add a user's first review of a group.

    Raises:
        NotFoundError: The group does not exist.
        ConflictError: The user already reviewed this group.
    """
    _check_rating(rating)
    group = await get_group(db, group_id)
    if await find_user_review(db, user.id, group_id) is not None:
        raise ConflictError("You have already reviewed this group")

    review = Review(group_id=group_id, user_id=user.id, rating=rating, comment=comment)
    db.add(review)
    await db.flush()
    average, count = await recompute_group_rating(db, group_id)
    logger.info("review_created", review_id=str(review.id), group_id=str(group_id), rating=rating)

    await award_reputation_points(
        db,
        user.id,
        REPUTATION_POINTS["REVIEW"],
        f'Reviewed group "{group.name}"',
        "review",
        review.id,
    )
    await check_contribution_badges(db, user.id, "write_review")

    if group.submitted_by is not None and group.submitted_by != user.id:
        submitter = await db.get(User, group.submitted_by)
        if submitter is not None:
            await queue_email(db, submitter, "new_review", {
                "display_name": submitter.display_name,
                "group_name": group.name,
                "reviewer_name": user.display_name or "Someone",
                "rating": rating,
                "comment": comment,
                "group_url": group_url(group_id),
            })
    return review


async def update_review(
    db: AsyncSession,
    user: User,
    review_id: uuid.UUID,
    rating: int | None = None,
    comment: str | None = None,
) -> Review:
    """Edit a review in place. Only its author may do so."""
    review = await get_review(db, review_id)
    if review.user_id != user.id:
        raise PermissionDeniedError("You can only edit your own reviews")
    if rating is not None:
        _check_rating(rating)
        review.rating = rating
    if comment is not None:
        review.comment = comment
    review.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await recompute_group_rating(db, review.group_id)
    logger.info("review_updated", review_id=str(review.id), group_id=str(review.group_id))
    return review


async def upsert_group_review(
    db: AsyncSession,
    user: User,
    group_id: uuid.UUID,
    rating: int,
    comment: str | None = None,
) -> tuple[Review, bool]:
    """Create the user's review of a group, or overwrite it if one exists. Returns (review, created)."""
    existing = await find_user_review(db, user.id, group_id)
    if existing is None:
        return await create_review(db, user, group_id, rating, comment), True
    return await update_review(db, user, existing.id, rating, comment), False


async def delete_review(db: AsyncSession, user: User, review_id: uuid.UUID) -> None:
    """Remove a review (author only). Reputation earned for it is kept."""
    review = await get_review(db, review_id)
    if review.user_id != user.id:
        raise PermissionDeniedError("You can only delete your own reviews")
    group_id = review.group_id
    await db.delete(review)
    await db.flush()
    await recompute_group_rating(db, group_id)
    logger.info("review_deleted", review_id=str(review_id), group_id=str(group_id))
