"""Review endpoints, both nested under a group and top-level."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.dependencies import get_current_user
from fgd.captcha.verifier import CaptchaVerifier, get_captcha_verifier
from fgd.database import get_session
from fgd.db.models import Review, User
from fgd.email.notifications import commit_and_notify
from fgd.groups.service import get_group
from fgd.reviews.schemas import (
    GroupReviewRequest,
    ReviewCreateRequest,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdateRequest,
)
from fgd.reviews.service import (
    create_review,
    delete_review,
    get_review,
    list_reviews,
    update_review,
    upsert_group_review,
)
from fgd.schemas import ApiResponse

router = APIRouter(prefix="/api", tags=["Reviews"])


async def _serialize(db: AsyncSession, review: Review) -> ReviewResponse:
    # reload so the joined author is present on freshly inserted rows
    loaded = await db.get(Review, review.id, populate_existing=True)
    return ReviewResponse.model_validate(loaded)


@router.get("/groups/{group_id}/reviews", response_model=ApiResponse[ReviewListResponse])
async def read_group_reviews(
    group_id: uuid.UUID,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_session),
):
    """Reviews for one group, newest first. ``page`` (1-based) overrides ``offset``."""
    if page is not None:
        offset = (page - 1) * limit
    await get_group(db, group_id)
    reviews, total = await list_reviews(db, group_id=group_id, limit=limit, offset=offset)
    return ApiResponse(data=ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        limit=limit,
        offset=offset,
    ))


@router.post("/groups/{group_id}/reviews", response_model=ApiResponse[ReviewResponse])
async def review_group(
    group_id: uuid.UUID,
    body: GroupReviewRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
    db: AsyncSession = Depends(get_session),
):
    """Post or overwrite the caller's review of a group (201 when new, 200 when updated)."""
    await captcha.require(body.captcha_token, request)
    review, created = await upsert_group_review(db, user, group_id, body.rating, body.comment)
    await commit_and_notify(db, background_tasks)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ApiResponse(
        data=await _serialize(db, review),
        message="Review submitted successfully" if created else "Review updated successfully",
    )


@router.get("/reviews", response_model=ApiResponse[ReviewListResponse])
async def read_reviews(
    group_id: uuid.UUID | None = Query(None),
    user_id: uuid.UUID | None = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    reviews, total = await list_reviews(db, group_id=group_id, user_id=user_id, limit=limit, offset=offset)
    return ApiResponse(data=ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        limit=limit,
        offset=offset,
    ))


@router.post("/reviews", response_model=ApiResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
async def add_review(
    body: ReviewCreateRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
    db: AsyncSession = Depends(get_session),
):
    """Create a review. A second review of the same group is rejected with 409."""
    await captcha.require(body.captcha_token, request)
    review = await create_review(db, user, body.group_id, body.rating, body.comment)
    await commit_and_notify(db, background_tasks)
    return ApiResponse(data=await _serialize(db, review), message="Review submitted successfully")


@router.get("/reviews/{review_id}", response_model=ApiResponse[ReviewResponse])
async def read_review(review_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    review = await get_review(db, review_id)
    return ApiResponse(data=ReviewResponse.model_validate(review))


@router.put("/reviews/{review_id}", response_model=ApiResponse[ReviewResponse])
async def edit_review(
    review_id: uuid.UUID,
    body: ReviewUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    review = await update_review(db, user, review_id, body.rating, body.comment)
    await db.commit()
    return ApiResponse(data=await _serialize(db, review), message="Review updated successfully")


@router.delete("/reviews/{review_id}", response_model=ApiResponse[None])
async def remove_review(
    review_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await delete_review(db, user, review_id)
    await db.commit()
    return ApiResponse(message="Review deleted successfully")
