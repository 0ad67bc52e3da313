"""Reputation, badge definition and user badge endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.dependencies import get_current_user, require_moderator
from fgd.auth.service import get_user_by_id, is_moderator
from fgd.database import get_session
from fgd.db.models import User, UserBadge
from fgd.email.notifications import commit_and_notify
from fgd.exceptions import NotFoundError
from fgd.reputation.badges import (
    award_badge,
    create_badge,
    get_user_badges,
    list_badges,
    revoke_user_badge,
    update_badge,
)
from fgd.reputation.ledger import award_reputation_points, get_reputation_history, get_reputation_leaderboard
from fgd.reputation.levels import compute_level
from fgd.reputation.schemas import (
    AwardBadgeRequest,
    BadgeCreateRequest,
    BadgeResponse,
    BadgeUpdateRequest,
    LeaderboardEntry,
    ManualAwardRequest,
    ManualAwardResponse,
    ReputationHistoryEntry,
    ReputationHistoryResponse,
    ReputationSummary,
    UserBadgeResponse,
)
from fgd.schemas import ApiResponse

router = APIRouter(prefix="/api", tags=["Reputation"])


def build_summary(user: User) -> ReputationSummary:
    info = compute_level(user.reputation_points)
    return ReputationSummary(
        user_id=user.id,
        reputation_points=user.reputation_points,
        reputation_level=user.reputation_level,
        level_name=info["name"],
        badges_count=user.badges_count,
        next_level_points=info["next_level_points"],
        points_to_next_level=info["points_to_next_level"],
        progress=info["progress"],
    )


async def _target_user(db: AsyncSession, caller: User, user_id: uuid.UUID | None) -> User:
    """Resolve whose data to show: the caller, or anyone when the caller moderates."""
    if user_id is None or user_id == caller.id:
        return caller
    if not is_moderator(caller):
        raise HTTPException(status_code=403, detail="Forbidden")
    target = await get_user_by_id(db, user_id)
    if target is None:
        raise NotFoundError("User not found")
    return target


# ── Reputation ──


@router.get("/reputation", response_model=ApiResponse[ReputationHistoryResponse])
async def read_reputation(
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Reputation summary and ledger page for the caller (moderators may pass userId)."""
    target = await _target_user(db, user, user_id)
    history, total = await get_reputation_history(db, target.id, limit=limit, offset=offset)
    return ApiResponse(data=ReputationHistoryResponse(
        summary=build_summary(target),
        history=[ReputationHistoryEntry.model_validate(h) for h in history],
        total=total,
        limit=limit,
        offset=offset,
    ))


@router.post(
    "/reputation",
    response_model=ApiResponse[ManualAwardResponse],
    status_code=status.HTTP_201_CREATED,
)
async def manual_award(
    body: ManualAwardRequest,
    background_tasks: BackgroundTasks,
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    """Grant or deduct points by hand (moderators)."""
    entry = await award_reputation_points(
        db, body.user_id, body.points, body.reason, body.source_type, body.source_id
    )
    await commit_and_notify(db, background_tasks)
    target = await get_user_by_id(db, body.user_id)
    return ApiResponse(
        data=ManualAwardResponse(entry=ReputationHistoryEntry.model_validate(entry), summary=build_summary(target)),
        message="Reputation points awarded successfully",
    )


@router.get("/reputation/leaderboard", response_model=ApiResponse[list[LeaderboardEntry]])
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    entries = await get_reputation_leaderboard(db, limit=limit, offset=offset)
    return ApiResponse(data=[LeaderboardEntry(**e) for e in entries])


# ── Badge definitions ──


@router.get("/badges", response_model=ApiResponse[list[BadgeResponse]], tags=["Badges"])
async def read_badges(
    category: str | None = Query(None),
    level: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_session),
):
    badges = await list_badges(db, category=category, level=level)
    return ApiResponse(data=[BadgeResponse.model_validate(b) for b in badges])


@router.post(
    "/badges",
    response_model=ApiResponse[BadgeResponse],
    status_code=status.HTTP_201_CREATED,
    tags=["Badges"],
)
async def add_badge(
    body: BadgeCreateRequest,
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    badge = await create_badge(db, body.model_dump())
    await db.commit()
    return ApiResponse(data=BadgeResponse.model_validate(badge), message="Badge created successfully")


@router.patch("/badges/{badge_id}", response_model=ApiResponse[BadgeResponse], tags=["Badges"])
async def edit_badge(
    badge_id: uuid.UUID,
    body: BadgeUpdateRequest,
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    badge = await update_badge(db, badge_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return ApiResponse(data=BadgeResponse.model_validate(badge), message="Badge updated successfully")


# ── User badges ──


@router.get("/user-badges", response_model=ApiResponse[list[UserBadgeResponse]], tags=["Badges"])
async def read_user_badges(
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    target = await _target_user(db, user, user_id)
    badges = await get_user_badges(db, target.id)
    return ApiResponse(data=[UserBadgeResponse.model_validate(b) for b in badges])


@router.post(
    "/user-badges",
    response_model=ApiResponse[UserBadgeResponse],
    status_code=status.HTTP_201_CREATED,
    tags=["Badges"],
)
async def grant_user_badge(
    body: AwardBadgeRequest,
    background_tasks: BackgroundTasks,
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    """Award a badge by hand (moderators). Repeats bump times_awarded."""
    awarded = await award_badge(db, body.user_id, body.badge_id)
    await commit_and_notify(db, background_tasks)
    result = await db.execute(
        select(UserBadge).where(UserBadge.id == awarded.id).execution_options(populate_existing=True)
    )
    return ApiResponse(
        data=UserBadgeResponse.model_validate(result.scalar_one()),
        message="Badge awarded successfully",
    )


@router.delete("/user-badges/{user_badge_id}", response_model=ApiResponse[None], tags=["Badges"])
async def remove_user_badge(
    user_badge_id: uuid.UUID,
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    await revoke_user_badge(db, user_badge_id)
    await db.commit()
    return ApiResponse(message="Badge removed successfully")


@router.delete("/user-badges", response_model=ApiResponse[None], tags=["Badges"])
async def remove_user_badge_by_query(
    user_badge_id: uuid.UUID = Query(..., alias="id"),
    moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    return await remove_user_badge(user_badge_id, moderator, db)
