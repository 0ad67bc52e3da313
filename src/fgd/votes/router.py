"""Vote endpoints."""

from __future__ import annotations

import uuid
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.dependencies import get_optional_user
from fgd.config import get_settings
from fgd.database import get_session
from fgd.db.models import User
from fgd.email.notifications import commit_and_notify
from fgd.schemas import ApiResponse
from fgd.votes.schemas import (
    CastVoteRequest,
    UserVoteResponse,
    VoteListResponse,
    VoteOutcomeResponse,
    VoteRequest,
    VoteResponse,
)
from fgd.votes.service import cast_vote, get_user_vote, list_votes

router = APIRouter(prefix="/api", tags=["Votes"])

_MESSAGES = {
    "created": "Vote recorded",
    "removed": "Vote removed",
    "changed": "Vote changed",
}


def _require_voter(user: User | None, group_id: uuid.UUID) -> User:
    """Anonymous voters are sent to the login page and come back to the group."""
    if user is None:
        login = f"{get_settings().login_path}?redirect=/group/{group_id}"
        raise HTTPException(status_code=401, detail="Sign in to vote", headers={"Location": login})
    return user


async def _toggle(
    db: AsyncSession,
    background_tasks: BackgroundTasks,
    response: Response,
    user: User | None,
    group_id: uuid.UUID,
    vote_type: str,
) -> ApiResponse[VoteOutcomeResponse]:
    voter = _require_voter(user, group_id)
    outcome = await cast_vote(db, voter, group_id, vote_type)
    await commit_and_notify(db, background_tasks)
    if outcome.action == "created":
        response.status_code = status.HTTP_201_CREATED
    return ApiResponse(
        data=VoteOutcomeResponse(
            action=outcome.action,
            vote_type=outcome.vote_type,
            upvotes=outcome.upvotes,
            downvotes=outcome.downvotes,
        ),
        message=_MESSAGES[outcome.action],
    )


@router.post("/votes", response_model=ApiResponse[VoteOutcomeResponse])
async def vote(
    body: CastVoteRequest,
    background_tasks: BackgroundTasks,
    response: Response,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Cast, flip or withdraw a vote (same vote twice withdraws it)."""
    return await _toggle(db, background_tasks, response, user, body.group_id, body.vote_type)


@router.post("/groups/{group_id}/vote", response_model=ApiResponse[VoteOutcomeResponse])
async def vote_on_group(
    group_id: uuid.UUID,
    body: VoteRequest,
    background_tasks: BackgroundTasks,
    response: Response,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    return await _toggle(db, background_tasks, response, user, group_id, body.vote_type)


@router.get("/votes", response_model=ApiResponse[VoteListResponse])
async def read_votes(
    group_id: uuid.UUID | None = Query(None),
    user_id: uuid.UUID | None = Query(None),
    vote_type: Literal["upvote", "downvote"] | None = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    votes, total = await list_votes(
        db, group_id=group_id, user_id=user_id, vote_type=vote_type, limit=limit, offset=offset
    )
    return ApiResponse(data=VoteListResponse(
        votes=[VoteResponse.model_validate(v) for v in votes],
        total=total,
        limit=limit,
        offset=offset,
    ))


@router.get("/votes/{group_id}/{user_id}", response_model=ApiResponse[UserVoteResponse])
async def read_user_vote(
    group_id: uuid.UUID,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
):
    """The user's current vote on a group; vote_type is null when they have none."""
    existing = await get_user_vote(db, user_id, group_id)
    return ApiResponse(data=UserVoteResponse(vote_type=existing.vote_type if existing else None))
