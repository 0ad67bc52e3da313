"""Report endpoints: submission for members, queue management for moderators."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.dependencies import get_current_user, require_moderator
from fgd.captcha.verifier import CaptchaVerifier, get_captcha_verifier
from fgd.database import get_session
from fgd.db.models import User
from fgd.email.notifications import commit_and_notify
from fgd.reports.schemas import (
    ReportCountsResponse,
    ReportCreateRequest,
    ReportListResponse,
    ReportResponse,
    ReportStatsResponse,
    ReportStatus,
    ReportUpdateRequest,
)
from fgd.reports.service import (
    delete_report,
    get_report_counts,
    get_report_for,
    get_report_stats,
    list_reports,
    submit_report,
    update_report_status,
)
from fgd.schemas import ApiResponse

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.post("", response_model=ApiResponse[ReportResponse], status_code=status.HTTP_201_CREATED)
async def create_report(
    body: ReportCreateRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
    db: AsyncSession = Depends(get_session),
):
    """Report a group. One open report per user and group."""
    await captcha.require(body.captcha_token, request)
    report = await submit_report(db, user, body.group_id, body.reason, body.comment)
    await commit_and_notify(db, background_tasks)
    return ApiResponse(data=ReportResponse.model_validate(report), message="Report submitted successfully")


@router.get("", response_model=ApiResponse[ReportListResponse])
async def read_reports(
    report_status: ReportStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    reports, total = await list_reports(db, status=report_status, limit=limit, offset=offset)
    return ApiResponse(data=ReportListResponse(
        reports=[ReportResponse.model_validate(r) for r in reports],
        total=total,
        limit=limit,
        offset=offset,
    ))


@router.get("/counts", response_model=ApiResponse[ReportCountsResponse])
async def read_report_counts(
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    return ApiResponse(data=ReportCountsResponse(**await get_report_counts(db)))


@router.get("/stats", response_model=ApiResponse[ReportStatsResponse])
async def read_report_stats(
    days: int = Query(30, ge=1, le=365),
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    return ApiResponse(data=ReportStatsResponse(**await get_report_stats(db, days=days)))


@router.get("/{report_id}", response_model=ApiResponse[ReportResponse])
async def read_report(
    report_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    report = await get_report_for(db, user, report_id)
    return ApiResponse(data=ReportResponse.model_validate(report))


@router.patch("/{report_id}", response_model=ApiResponse[ReportResponse])
async def change_report_status(
    report_id: uuid.UUID,
    body: ReportUpdateRequest,
    background_tasks: BackgroundTasks,
    moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    report = await update_report_status(db, moderator, report_id, body.status, body.comment)
    await commit_and_notify(db, background_tasks)
    return ApiResponse(data=ReportResponse.model_validate(report), message="Report updated successfully")


@router.delete("/{report_id}", response_model=ApiResponse[None])
async def remove_report(
    report_id: uuid.UUID,
    moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    await delete_report(db, moderator, report_id)
    await db.commit()
    return ApiResponse(message="Report deleted successfully")
