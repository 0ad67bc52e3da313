"""Pydantic models for report endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ReportStatus = Literal["pending", "in_review", "resolved", "dismissed"]


class ReportGroupSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    url: str
    screenshot_url: str | None = None
    status: str


class ReportUserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    display_name: str | None = None
    avatar_url: str | None = None


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    group_id: uuid.UUID
    user_id: uuid.UUID
    reason: str
    comment: str | None = None
    status: ReportStatus
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    resolved_by: uuid.UUID | None = None
    group: ReportGroupSummary | None = None
    reporter: ReportUserSummary | None = None
    resolver: ReportUserSummary | None = None


class ReportListResponse(BaseModel):
    reports: list[ReportResponse]
    total: int
    limit: int
    offset: int


class ReportCreateRequest(BaseModel):
    group_id: uuid.UUID
    reason: str = Field(min_length=3, max_length=200)
    comment: str | None = Field(default=None, max_length=2000)
    captcha_token: str | None = None


class ReportUpdateRequest(BaseModel):
    status: ReportStatus
    comment: str | None = Field(default=None, max_length=2000)


class ReportCountsResponse(BaseModel):
    pending: int
    in_review: int
    resolved: int
    dismissed: int
    total: int


class ReasonCount(BaseModel):
    reason: str
    count: int


class DailyCount(BaseModel):
    date: str
    count: int


class ReportStatsResponse(BaseModel):
    days: int
    by_reason: list[ReasonCount]
    daily: list[DailyCount]
