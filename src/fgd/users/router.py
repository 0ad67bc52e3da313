"""Profile and email preference endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.dependencies import get_current_user
from fgd.auth.service import is_moderator
from fgd.database import get_session
from fgd.db.models import User
from fgd.email.notifications import commit_and_notify
from fgd.reputation.badges import get_user_badges
from fgd.reputation.schemas import UserBadgeResponse
from fgd.schemas import ApiResponse
from fgd.users.schemas import (
    EmailPreferencesResponse,
    EmailPreferencesUpdate,
    MyProfileResponse,
    ProfileUpdateRequest,
    PublicProfileResponse,
)
from fgd.users.service import get_email_preferences, get_profile, set_email_preferences, update_profile

router = APIRouter(prefix="/api", tags=["Users"])


def _me(user: User) -> MyProfileResponse:
    profile = MyProfileResponse.model_validate(user)
    profile.is_moderator = is_moderator(user)
    return profile


@router.get("/users/me", response_model=ApiResponse[MyProfileResponse])
async def read_me(user: User = Depends(get_current_user)):
    return ApiResponse(data=_me(user))


@router.patch("/users/me", response_model=ApiResponse[MyProfileResponse])
async def edit_me(
    body: ProfileUpdateRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Update display name, avatar or bio."""
    user = await update_profile(db, user, body.model_dump(exclude_unset=True))
    await commit_and_notify(db, background_tasks)
    return ApiResponse(data=_me(user), message="Profile updated successfully")


@router.get("/users/{user_id}", response_model=ApiResponse[PublicProfileResponse])
async def read_profile(user_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    """Public profile with earned badges."""
    user = await get_profile(db, user_id)
    badges = await get_user_badges(db, user.id)
    profile = PublicProfileResponse.model_validate(user)
    profile.badges = [UserBadgeResponse.model_validate(b) for b in badges]
    return ApiResponse(data=profile)


@router.get("/user/email-preferences", response_model=ApiResponse[EmailPreferencesResponse], tags=["Email"])
async def read_email_preferences(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    prefs = await get_email_preferences(db, user.id)
    return ApiResponse(data=EmailPreferencesResponse.model_validate(prefs))


@router.put("/user/email-preferences", response_model=ApiResponse[EmailPreferencesResponse], tags=["Email"])
async def update_email_preferences(
    body: EmailPreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    prefs = await set_email_preferences(db, user.id, body.model_dump(exclude_none=True))
    await db.commit()
    return ApiResponse(data=EmailPreferencesResponse.model_validate(prefs), message="Email preferences updated")
