"""User lookups and role checks."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.config import get_settings
from fgd.db.models import User


async def get_user_by_auth_id(db: AsyncSession, auth_id: str) -> User | None:
    result = await db.execute(select(User).where(User.auth_id == auth_id))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await db.get(User, user_id)


def is_moderator(user: User | None) -> bool:
    """Admins and staff addresses on the admin email domain may moderate."""
    if user is None:
        return False
    if user.role == "admin":
        return True
    domain = get_settings().admin_email_domain
    return bool(domain) and bool(user.email) and user.email.lower().endswith(domain.lower())


async def list_moderators(db: AsyncSession) -> list[User]:
    """Users who receive moderation notifications (role=admin, not banned)."""
    result = await db.execute(
        select(User).where(User.role == "admin", User.is_banned.is_(False)).order_by(User.created_at)
    )
    return list(result.scalars().all())
