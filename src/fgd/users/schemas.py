"""Pydantic models for profile endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from fgd.reputation.schemas import UserBadgeResponse


class PublicProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    display_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    reputation_points: int
    reputation_level: int
    badges_count: int
    created_at: datetime
    badges: list[UserBadgeResponse] = []


class MyProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    role: str
    is_moderator: bool = False
    reputation_points: int
    reputation_level: int
    badges_count: int
    profile_completed: bool
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=64)
    avatar_url: str | None = Field(default=None, max_length=2048)
    bio: str | None = Field(default=None, max_length=280)


class EmailPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    welcome_email: bool
    group_approved: bool
    new_review: bool
    reputation_milestone: bool
    new_badge: bool
    new_report: bool


class EmailPreferencesUpdate(BaseModel):
    welcome_email: bool | None = None
    group_approved: bool | None = None
    new_review: bool | None = None
    reputation_milestone: bool | None = None
    new_badge: bool | None = None
    new_report: bool | None = None
