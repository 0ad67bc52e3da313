"""Moderator analytics endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.analytics.schemas import AnalyticsResponse
from fgd.analytics.service import get_analytics
from fgd.auth.dependencies import require_moderator
from fgd.database import get_session
from fgd.db.models import User
from fgd.schemas import ApiResponse

router = APIRouter(prefix="/api", tags=["Analytics"])


@router.get("/analytics", response_model=ApiResponse[AnalyticsResponse])
async def read_analytics(
    analytics_type: str = Query("platform", alias="type"),
    period: int = Query(30, ge=1, le=365),
    limit: int = Query(10, ge=1, le=100),
    _moderator: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_session),
):
    """One analytics report over the last ``period`` days (moderators)."""
    rows = await get_analytics(db, analytics_type, days=period, limit=limit)
    return ApiResponse(data=AnalyticsResponse(
        type=analytics_type,
        period=period,
        generated_at=datetime.now(timezone.utc),
        rows=rows,
    ))
