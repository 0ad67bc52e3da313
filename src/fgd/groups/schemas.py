"""Pydantic models for group and category endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    icon: str | None = None


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    description: str | None = None
    icon: str | None = None


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    url: str
    description: str
    category_id: uuid.UUID | None = None
    category: CategoryResponse | None = None
    size: int | None = None
    activity_level: str | None = None
    screenshot_url: str | None = None
    is_private: bool
    is_verified: bool
    verification_status: str | None = None
    status: str
    submitted_by: uuid.UUID | None = None
    submitted_at: datetime
    upvotes: int
    downvotes: int
    average_rating: float
    review_count: int
    view_count: int


class GroupListResponse(BaseModel):
    groups: list[GroupResponse]
    total: int
    limit: int
    offset: int


class GroupSubmitRequest(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    url: str = Field(max_length=500)
    description: str = Field(default="", max_length=5000)
    category_id: uuid.UUID | None = None
    size: int | None = Field(default=None, ge=0)
    activity_level: Literal["low", "medium", "high"] | None = None
    screenshot_url: str | None = None
    is_private: bool = False
    captcha_token: str | None = None

    @field_validator("url")
    @classmethod
    def must_be_facebook_group(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("https://www.facebook.com/groups/", "https://facebook.com/groups/")):
            msg = "URL must be a Facebook group link (https://www.facebook.com/groups/...)"
            raise ValueError(msg)
        return v.rstrip("/")


class GroupStatusRequest(BaseModel):
    status: Literal["pending", "active", "removed"]


VerificationStatus = Literal["pending", "verified", "rejected", "needs_review", "flagged"]


class GroupVerificationRequest(BaseModel):
    verification_status: VerificationStatus
    notes: str | None = Field(default=None, max_length=2000)


class ModeratorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    display_name: str | None = None
    avatar_url: str | None = None


class VerificationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    status: str
    notes: str | None = None
    created_at: datetime
    moderator: ModeratorSummary


class GroupVerificationResponse(BaseModel):
    group_id: uuid.UUID
    is_verified: bool
    verification_status: str | None = None
    verification_date: datetime | None = None
    verification_notes: str | None = None
    verified_by: uuid.UUID | None = None
    logs: list[VerificationLogResponse]
