"""Group listings: submission, browsing, moderation."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.service import is_moderator
from fgd.config import get_settings
from fgd.db.models import Category, Group, User, VerificationLog
from fgd.email.notifications import queue_email
from fgd.exceptions import ConflictError, NotFoundError
from fgd.groups.aggregates import increment_view_count
from fgd.reputation.badges import check_contribution_badges
from fgd.reputation.ledger import REPUTATION_POINTS, award_reputation_points

logger = structlog.get_logger()

GROUP_STATUSES = ("pending", "active", "removed")
VERIFICATION_STATUSES = ("pending", "verified", "rejected", "needs_review", "flagged")

SORT_ORDERS = {
    "newest": (Group.submitted_at.desc(),),
    "top_rated": (Group.average_rating.desc(), Group.review_count.desc()),
    "most_voted": ((Group.upvotes - Group.downvotes).desc(), Group.submitted_at.desc()),
    "popular": (Group.view_count.desc(),),
    "name": (Group.name.asc(),),
}


def group_url(group_id: uuid.UUID) -> str:
    return f"{get_settings().site_url}/group/{group_id}"


async def get_group(db: AsyncSession, group_id: uuid.UUID) -> Group:
    group = await db.get(Group, group_id)
    if group is None:
        raise NotFoundError("Group not found")
    return group


async def get_visible_group(db: AsyncSession, group_id: uuid.UUID, viewer: User | None) -> Group:
    """Active groups are public; pending/removed ones only show to their submitter and moderators."""
    group = await get_group(db, group_id)
    if group.status != "active" and not is_moderator(viewer):
        if viewer is None or group.submitted_by != viewer.id:
            raise NotFoundError("Group not found")
    return group


async def view_group(db: AsyncSession, group_id: uuid.UUID, viewer: User | None) -> Group:
    group = await get_visible_group(db, group_id, viewer)
    await increment_view_count(db, group.id)
    return group


async def list_groups(
    db: AsyncSession,
    *,
    status: str = "active",
    category_id: uuid.UUID | None = None,
    search: str | None = None,
    sort: str = "newest",
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Group], int]:
    if sort not in SORT_ORDERS:
        msg = f"Invalid sort order: {sort}"
        raise ValueError(msg)

    filters = [Group.status == status]
    if category_id is not None:
        filters.append(Group.category_id == category_id)
    if search:
        pattern = f"%{search.lower()}%"
        filters.append(func.lower(Group.name).like(pattern) | func.lower(Group.description).like(pattern))

    result = await db.execute(
        select(Group).where(*filters).order_by(*SORT_ORDERS[sort]).limit(limit).offset(offset)
    )
    total = await db.scalar(select(func.count()).select_from(Group).where(*filters))
    return list(result.scalars().all()), total or 0


async def submit_group(db: AsyncSession, user: User, data: dict) -> Group:
    """Create a pending listing and credit the submitter."""
    duplicate = await db.scalar(select(Group.id).where(Group.url == data["url"]))
    if duplicate is not None:
        raise ConflictError("This group has already been submitted")

    category_id = data.get("category_id")
    if category_id is not None and await db.get(Category, category_id) is None:
        msg = "Unknown category"
        raise ValueError(msg)

    group = Group(
        name=data["name"],
        url=data["url"],
        description=data.get("description") or "",
        category_id=category_id,
        size=data.get("size"),
        activity_level=data.get("activity_level"),
        screenshot_url=data.get("screenshot_url"),
        is_private=data.get("is_private", False),
        submitted_by=user.id,
        status="pending",
    )
    db.add(group)
    await db.flush()
    logger.info("group_submitted", group_id=str(group.id), user_id=str(user.id))

    await award_reputation_points(
        db,
        user.id,
        REPUTATION_POINTS["GROUP_SUBMISSION"],
        f'Submitted group "{group.name}"',
        "group_submission",
        group.id,
    )
    await check_contribution_badges(db, user.id, "submit_group")
    return await db.get(Group, group.id, populate_existing=True)


async def set_group_status(db: AsyncSession, moderator: User, group_id: uuid.UUID, status: str) -> Group:
    """Approve, remove or restore a listing. Approval emails the submitter."""
    if status not in GROUP_STATUSES:
        msg = f"Invalid group status: {status}"
        raise ValueError(msg)

    group = await get_group(db, group_id)
    previous = group.status
    group.status = status
    group.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info(
        "group_status_changed",
        group_id=str(group.id),
        moderator_id=str(moderator.id),
        old_status=previous,
        new_status=status,
    )

    if status == "active" and previous == "pending" and group.submitted_by is not None:
        submitter = await db.get(User, group.submitted_by)
        if submitter is not None:
            await queue_email(db, submitter, "group_approved", {
                "display_name": submitter.display_name,
                "group_name": group.name,
                "group_url": group_url(group.id),
            })
    return group


async def set_group_verification(
    db: AsyncSession,
    moderator: User,
    group_id: uuid.UUID,
    status: str,
    notes: str | None = None,
) -> Group:
    """Record a verification decision. Only "verified" marks the group as verified."""
    if status not in VERIFICATION_STATUSES:
        msg = f"Invalid verification status: {status}"
        raise ValueError(msg)

    notes = (notes or "").strip() or None
    group = await get_group(db, group_id)
    now = datetime.now(timezone.utc)
    group.verification_status = status
    group.is_verified = status == "verified"
    group.verified_by = moderator.id
    group.verification_date = now
    group.verification_notes = notes
    group.updated_at = now
    db.add(VerificationLog(group_id=group.id, moderator=moderator, status=status, notes=notes, created_at=now))
    await db.flush()
    logger.info(
        "group_verification_changed",
        group_id=str(group.id),
        moderator_id=str(moderator.id),
        verification_status=status,
    )
    return group


async def get_group_verification(db: AsyncSession, group_id: uuid.UUID) -> tuple[Group, list[VerificationLog]]:
    group = await get_group(db, group_id)
    result = await db.execute(
        select(VerificationLog)
        .where(VerificationLog.group_id == group_id)
        .order_by(VerificationLog.created_at.desc(), VerificationLog.id)
    )
    return group, list(result.scalars().unique().all())


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def create_category(db: AsyncSession, name: str, description: str | None, icon: str | None) -> Category:
    if await db.scalar(select(Category.id).where(Category.name == name)) is not None:
        raise ConflictError("A category with this name already exists")
    category = Category(name=name, description=description, icon=icon)
    db.add(category)
    await db.flush()
    return category
