"""Pydantic models for reputation and badge endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# --- Reputation ---


class ReputationHistoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    points: int
    reason: str
    source_type: str
    source_id: str | None = None
    created_at: datetime


class ReputationSummary(BaseModel):
    user_id: uuid.UUID
    reputation_points: int
    reputation_level: int
    level_name: str
    badges_count: int
    next_level_points: int | None = None
    points_to_next_level: int
    progress: int


class ReputationHistoryResponse(BaseModel):
    summary: ReputationSummary
    history: list[ReputationHistoryEntry]
    total: int
    limit: int
    offset: int


class ManualAwardRequest(BaseModel):
    user_id: uuid.UUID = Field(validation_alias=AliasChoices("user_id", "userId"))
    points: int
    reason: str = Field(min_length=1, max_length=256)
    source_type: str = Field(validation_alias=AliasChoices("source_type", "sourceType"))
    source_id: str | None = Field(default=None, validation_alias=AliasChoices("source_id", "sourceId"))


class ManualAwardResponse(BaseModel):
    entry: ReputationHistoryEntry
    summary: ReputationSummary


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: uuid.UUID
    display_name: str | None = None
    avatar_url: str | None = None
    reputation_points: int
    reputation_level: int
    level_name: str
    badges_count: int
    reviews_count: int
    groups_submitted_count: int


# --- Badges ---


class BadgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    icon: str | None = None
    category: str
    level: int
    points: int
    requirements: dict[str, Any] | None = None
    display_order: int


class BadgeCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str = ""
    icon: str | None = None
    category: str
    level: int = Field(default=1, ge=1)
    points: int = Field(default=0, ge=0)
    requirements: dict[str, Any] | None = None
    display_order: int = 999


class BadgeUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = None
    icon: str | None = None
    category: str | None = None
    level: int | None = Field(default=None, ge=1)
    points: int | None = Field(default=None, ge=0)
    requirements: dict[str, Any] | None = None
    display_order: int | None = None


class UserBadgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    badge_id: uuid.UUID
    level: int
    times_awarded: int
    awarded_at: datetime
    badge: BadgeResponse


class AwardBadgeRequest(BaseModel):
    user_id: uuid.UUID = Field(validation_alias=AliasChoices("user_id", "userId"))
    badge_id: uuid.UUID = Field(validation_alias=AliasChoices("badge_id", "badgeId"))
