"""Profile and email preference management."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import EmailPreferences, User
from fgd.exceptions import NotFoundError
from fgd.reputation.ledger import REPUTATION_POINTS, award_reputation_points

logger = structlog.get_logger()

PREFERENCE_FIELDS = (
    "welcome_email",
    "group_approved",
    "new_review",
    "reputation_milestone",
    "new_badge",
    "new_report",
)


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None or user.is_banned:
        raise NotFoundError("User not found")
    return user


async def update_profile(db: AsyncSession, user: User, changes: dict) -> User:
    """Apply profile edits; the first time the profile is complete, award its bonus once."""
    for attr in ("display_name", "avatar_url", "bio"):
        if attr in changes:
            value = changes[attr]
            setattr(user, attr, value.strip() if isinstance(value, str) and value.strip() else None)
    await db.flush()

    if not user.profile_completed and user.display_name and user.avatar_url:
        user.profile_completed = True
        await db.flush()
        await award_reputation_points(
            db,
            user.id,
            REPUTATION_POINTS["PROFILE_COMPLETED"],
            "Completed profile",
            "profile_update",
            user.id,
        )
        logger.info("profile_completed", user_id=str(user.id))
    return user


async def get_email_preferences(db: AsyncSession, user_id: uuid.UUID) -> EmailPreferences:
    """Stored preferences, or an unsaved all-enabled default."""
    prefs = await db.get(EmailPreferences, user_id)
    if prefs is None:
        prefs = EmailPreferences(user_id=user_id, **{f: True for f in PREFERENCE_FIELDS})
    return prefs


async def set_email_preferences(db: AsyncSession, user_id: uuid.UUID, changes: dict[str, bool]) -> EmailPreferences:
    prefs = await db.get(EmailPreferences, user_id)
    if prefs is None:
        prefs = EmailPreferences(user_id=user_id, **{f: True for f in PREFERENCE_FIELDS})
        db.add(prefs)
    for field, value in changes.items():
        if field in PREFERENCE_FIELDS:
            setattr(prefs, field, bool(value))
    prefs.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return prefs
