"""Badge evaluation and awarding.

Reputation badges are checked after every ledger append; contribution badges
after the action they count. A badge is inserted at most once per user;
qualifying again only bumps ``times_awarded``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from pydantic import ValidationError
from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.config import get_settings
from fgd.db.models import Badge, Group, Report, Review, User, UserBadge, Vote
from fgd.email.notifications import queue_email
from fgd.exceptions import DataLayerError, NotFoundError
from fgd.reputation.requirements import (
    CONTRIBUTION_ACTIONS,
    ContributionRequirement,
    ReputationRequirement,
    parse_requirement,
    validate_for_category,
)

logger = logging.getLogger(__name__)

BADGE_CATEGORIES = ("reputation", "contribution", "special")

# action -> the column identifying the acting user in the counted table
_CONTRIBUTION_COLUMNS: dict[str, Any] = {
    "submit_group": Group.submitted_by,
    "write_review": Review.user_id,
    "vote": Vote.user_id,
    "report_group": Report.user_id,
}


async def has_badge(db: AsyncSession, user_id: uuid.UUID, badge_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(UserBadge.id).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
    )
    return result.first() is not None


async def _unheld_badges(db: AsyncSession, user_id: uuid.UUID, category: str) -> list[Badge]:
    held = exists().where(UserBadge.user_id == user_id, UserBadge.badge_id == Badge.id)
    result = await db.execute(
        select(Badge).where(Badge.category == category, ~held).order_by(Badge.display_order, Badge.name)
    )
    return list(result.scalars().all())


def _requirement(badge: Badge) -> ReputationRequirement | ContributionRequirement | None:
    try:
        return parse_requirement(badge.requirements)
    except (ValidationError, ValueError):
        logger.warning("Skipping badge %s with invalid requirements: %r", badge.name, badge.requirements)
        return None


async def count_contributions(db: AsyncSession, user_id: uuid.UUID, action: str) -> int:
    column = _CONTRIBUTION_COLUMNS.get(action)
    if column is None:
        msg = f"Unknown contribution action: {action}"
        raise ValueError(msg)
    return await db.scalar(select(func.count()).where(column == user_id)) or 0


async def check_reputation_badges(db: AsyncSession, user_id: uuid.UUID) -> list[UserBadge]:
    """Award every unheld reputation badge whose minimum the user's points meet."""
    points = await db.scalar(select(User.reputation_points).where(User.id == user_id))
    if points is None:
        return []

    awarded: list[UserBadge] = []
    for badge in await _unheld_badges(db, user_id, "reputation"):
        requirement = _requirement(badge)
        if not isinstance(requirement, ReputationRequirement) or points < requirement.minimum:
            continue
        # an award earlier in this loop may have cascaded into this badge already
        if await has_badge(db, user_id, badge.id):
            continue
        awarded.append(await award_badge(db, user_id, badge.id))
    return awarded


async def check_contribution_badges(db: AsyncSession, user_id: uuid.UUID, action: str) -> list[UserBadge]:
    """Award unheld contribution badges for ``action`` whose count the user has reached."""
    if action not in CONTRIBUTION_ACTIONS:
        msg = f"Unknown contribution action: {action}"
        raise ValueError(msg)

    count = await count_contributions(db, user_id, action)
    awarded: list[UserBadge] = []
    for badge in await _unheld_badges(db, user_id, "contribution"):
        requirement = _requirement(badge)
        if not isinstance(requirement, ContributionRequirement):
            continue
        if requirement.action != action or count < requirement.count:
            continue
        if await has_badge(db, user_id, badge.id):
            continue
        awarded.append(await award_badge(db, user_id, badge.id))
    return awarded


async def award_badge(db: AsyncSession, user_id: uuid.UUID, badge_id: uuid.UUID) -> UserBadge:
    """Grant a badge, or count a repeat grant if the user already holds it.

    First grants bump users.badges_count, queue a badge email and, for badges
    worth points, append a ``badge_awarded`` ledger entry.
    """
    from fgd.reputation.ledger import award_reputation_points

    badge = await db.get(Badge, badge_id)
    if badge is None:
        raise NotFoundError("Badge not found")
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    result = await db.execute(
        select(UserBadge).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
    )
    existing = result.scalar_one_or_none()
    try:
        if existing is not None:
            await db.execute(
                update(UserBadge)
                .where(UserBadge.id == existing.id)
                .values(times_awarded=UserBadge.times_awarded + 1)
                .execution_options(synchronize_session=False)
            )
            return await db.get(UserBadge, existing.id, populate_existing=True)

        user_badge = UserBadge(user_id=user_id, badge_id=badge_id, level=1, times_awarded=1)
        db.add(user_badge)
        await db.flush()
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(badges_count=User.badges_count + 1)
            .execution_options(synchronize_session=False)
        )
        await db.refresh(user, ["badges_count"])
    except SQLAlchemyError as e:
        logger.error("Failed to award badge %s to user %s", badge.name, user_id)
        raise DataLayerError("Failed to award badge") from e

    logger.info("Awarded badge %s to user %s", badge.name, user_id)
    settings = get_settings()
    await queue_email(db, user, "new_badge", {
        "display_name": user.display_name,
        "badge_name": badge.name,
        "badge_description": badge.description,
        "points": badge.points,
        "profile_url": f"{settings.site_url}/profile",
    })

    if badge.points > 0:
        await award_reputation_points(
            db,
            user_id,
            badge.points,
            f'Earned the "{badge.name}" badge',
            "badge_awarded",
            badge.id,
        )
    return user_badge


async def revoke_user_badge(db: AsyncSession, user_badge_id: uuid.UUID) -> None:
    """Remove a granted badge. Points it carried stay in the ledger."""
    user_badge = await db.get(UserBadge, user_badge_id)
    if user_badge is None:
        raise NotFoundError("User badge not found")
    user_id = user_badge.user_id
    await db.delete(user_badge)
    await db.flush()
    await db.execute(
        update(User)
        .where(User.id == user_id, User.badges_count > 0)
        .values(badges_count=User.badges_count - 1)
        .execution_options(synchronize_session=False)
    )
    logger.info("Revoked user badge %s from user %s", user_badge_id, user_id)


async def get_user_badges(db: AsyncSession, user_id: uuid.UUID) -> list[UserBadge]:
    result = await db.execute(
        select(UserBadge).where(UserBadge.user_id == user_id).order_by(UserBadge.awarded_at.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Badge definitions
# ---------------------------------------------------------------------------


async def list_badges(db: AsyncSession, category: str | None = None, level: int | None = None) -> list[Badge]:
    stmt = select(Badge).order_by(Badge.display_order, Badge.name)
    if category:
        stmt = stmt.where(Badge.category == category)
    if level is not None:
        stmt = stmt.where(Badge.level == level)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def _checked_requirements(category: str, requirements: dict | None) -> dict | None:
    if category not in BADGE_CATEGORIES:
        msg = f"Invalid badge category: {category}"
        raise ValueError(msg)
    if category == "special":
        if requirements:
            msg = "Special badges are awarded manually and take no requirements"
            raise ValueError(msg)
        return None
    if requirements is None:
        msg = f"A {category} badge needs requirements"
        raise ValueError(msg)
    return validate_for_category(requirements, category)


async def create_badge(db: AsyncSession, data: dict[str, Any]) -> Badge:
    """Create a badge definition after validating its requirement variant."""
    existing = await db.scalar(select(Badge.id).where(Badge.name == data["name"]))
    if existing is not None:
        msg = "A badge with this name already exists"
        raise ValueError(msg)
    badge = Badge(
        name=data["name"],
        description=data.get("description") or "",
        icon=data.get("icon"),
        category=data["category"],
        level=data.get("level", 1),
        points=data.get("points", 0),
        requirements=_checked_requirements(data["category"], data.get("requirements")),
        display_order=data.get("display_order", 999),
    )
    db.add(badge)
    await db.flush()
    return badge


async def update_badge(db: AsyncSession, badge_id: uuid.UUID, changes: dict[str, Any]) -> Badge:
    """Apply a partial update. Category and requirements are validated together."""
    badge = await db.get(Badge, badge_id)
    if badge is None:
        raise NotFoundError("Badge not found")

    if "category" in changes or "requirements" in changes:
        category = changes.get("category", badge.category)
        requirements = changes["requirements"] if "requirements" in changes else badge.requirements
        badge.requirements = _checked_requirements(category, requirements)
        badge.category = category

    for attr in ("name", "description", "icon", "level", "points", "display_order"):
        if attr in changes:
            setattr(badge, attr, changes[attr])
    await db.flush()
    return badge
