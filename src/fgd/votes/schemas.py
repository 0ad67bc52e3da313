"""Pydantic models for vote endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class VoteRequest(BaseModel):
    vote_type: Literal["upvote", "downvote"]


class CastVoteRequest(VoteRequest):
    group_id: uuid.UUID


class VoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    group_id: uuid.UUID
    user_id: uuid.UUID
    vote_type: str
    created_at: datetime


class VoteOutcomeResponse(BaseModel):
    action: Literal["created", "removed", "changed"]
    vote_type: str | None = None
    upvotes: int
    downvotes: int


class VoteListResponse(BaseModel):
    votes: list[VoteResponse]
    total: int
    limit: int
    offset: int


class UserVoteResponse(BaseModel):
    vote_type: str | None = None
