"""Group directory endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.dependencies import get_current_user, get_optional_user, require_moderator
from fgd.auth.service import is_moderator
from fgd.captcha.verifier import CaptchaVerifier, get_captcha_verifier
from fgd.database import get_session
from fgd.db.models import User
from fgd.email.notifications import commit_and_notify
from fgd.groups.schemas import (
    CategoryCreateRequest,
    CategoryResponse,
    GroupListResponse,
    GroupResponse,
    GroupStatusRequest,
    GroupSubmitRequest,
    GroupVerificationRequest,
    GroupVerificationResponse,
    VerificationLogResponse,
)
from fgd.groups.service import (
    create_category,
    get_group_verification,
    list_categories,
    list_groups,
    set_group_status,
    set_group_verification,
    submit_group,
    view_group,
)
from fgd.schemas import ApiResponse

router = APIRouter(prefix="/api", tags=["Groups"])


@router.get("/groups", response_model=ApiResponse[GroupListResponse])
async def browse_groups(
    category_id: uuid.UUID | None = Query(None),
    group_status: str = Query("active", alias="status"),
    search: str | None = Query(None, max_length=100),
    sort: str = Query("newest"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Browse listings. Only moderators can see pending or removed groups."""
    if group_status != "active" and not is_moderator(viewer):
        raise HTTPException(status_code=403, detail="Forbidden")
    groups, total = await list_groups(
        db,
        status=group_status,
        category_id=category_id,
        search=search,
        sort=sort,
        limit=limit,
        offset=offset,
    )
    return ApiResponse(data=GroupListResponse(
        groups=[GroupResponse.model_validate(g) for g in groups],
        total=total,
        limit=limit,
        offset=offset,
    ))


@router.post("/groups", response_model=ApiResponse[GroupResponse], status_code=status.HTTP_201_CREATED)
async def create_group(
    body: GroupSubmitRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
    db: AsyncSession = Depends(get_session),
):
    """Submit a group for moderation."""
    await captcha.require(body.captcha_token, request)
    group = await submit_group(db, user, body.model_dump(exclude={"captcha_token"}))
    await commit_and_notify(db, background_tasks)
    return ApiResponse(
        data=GroupResponse.model_validate(group),
        message="Group submitted successfully and is awaiting review",
    )


@router.get("/groups/{group_id}", response_model=ApiResponse[GroupResponse])
async def read_group(
    group_id: uuid.UUID,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    group = await view_group(db, group_id, viewer)
    await db.commit()
    return ApiResponse(data=GroupResponse.model_validate(group))


@router.patch("/groups/{group_id}/status", response_model=ApiResponse[GroupResponse])
async def moderate_group(
    group_id: uuid.UUID,
    body: GroupStatusRequest,
    background_tasks: BackgroundTasks,
    moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    """Approve (active), remove or restore a listing."""
    group = await set_group_status(db, moderator, group_id, body.status)
    await commit_and_notify(db, background_tasks)
    return ApiResponse(data=GroupResponse.model_validate(group), message=f"Group status set to {body.status}")


def _verification_response(group, logs) -> GroupVerificationResponse:
    return GroupVerificationResponse(
        group_id=group.id,
        is_verified=group.is_verified,
        verification_status=group.verification_status,
        verification_date=group.verification_date,
        verification_notes=group.verification_notes,
        verified_by=group.verified_by,
        logs=[VerificationLogResponse.model_validate(log) for log in logs],
    )


@router.get("/groups/{group_id}/verification", response_model=ApiResponse[GroupVerificationResponse])
async def read_group_verification(
    group_id: uuid.UUID,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    group, logs = await get_group_verification(db, group_id)
    return ApiResponse(data=_verification_response(group, logs))


@router.put("/groups/{group_id}/verification", response_model=ApiResponse[GroupVerificationResponse])
async def verify_group(
    group_id: uuid.UUID,
    body: GroupVerificationRequest,
    moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    """Set the verification status of a listing (moderators)."""
    await set_group_verification(db, moderator, group_id, body.verification_status, body.notes)
    await db.commit()
    group, logs = await get_group_verification(db, group_id)
    return ApiResponse(
        data=_verification_response(group, logs),
        message=f"Group verification status updated to {body.verification_status}",
    )


@router.get("/categories", response_model=ApiResponse[list[CategoryResponse]], tags=["Categories"])
async def read_categories(db: AsyncSession = Depends(get_session)):
    categories = await list_categories(db)
    return ApiResponse(data=[CategoryResponse.model_validate(c) for c in categories])


@router.post(
    "/categories",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
    tags=["Categories"],
)
async def add_category(
    body: CategoryCreateRequest,
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    category = await create_category(db, body.name, body.description, body.icon)
    await db.commit()
    return ApiResponse(data=CategoryResponse.model_validate(category))
