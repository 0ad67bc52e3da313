"""Report workflow.

Reports start ``pending``. Moderators may move them between any of the four
statuses or delete them; reporters can only read their own. The reporter's
reputation is adjusted whenever a report moves from an open status to an
outcome: +10 when resolved, -5 when dismissed.
"""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.service import is_moderator, list_moderators
from fgd.config import get_settings
from fgd.db.models import Report, User
from fgd.email.notifications import queue_email
from fgd.exceptions import NotFoundError, PermissionDeniedError
from fgd.groups.service import get_group
from fgd.reputation.badges import check_contribution_badges
from fgd.reputation.ledger import REPUTATION_POINTS, award_reputation_points

logger = structlog.get_logger()

REPORT_STATUSES = ("pending", "in_review", "resolved", "dismissed")
OPEN_STATUSES = frozenset({"pending", "in_review"})
OUTCOME_STATUSES = frozenset({"resolved", "dismissed"})


async def submit_report(
    db: AsyncSession,
    user: User,
    group_id: uuid.UUID,
    reason: str,
    comment: str | None = None,
) -> Report:
    """File a report against a group.

    Raises:
        ValueError: Short reason, or the user already has an open report on the group.
        NotFoundError: The group does not exist.
    """
    reason = reason.strip()
    if len(reason) < 3:
        msg = "Reason must be at least 3 characters"
        raise ValueError(msg)

    group = await get_group(db, group_id)
    open_report = await db.scalar(
        select(Report.id).where(
            Report.user_id == user.id,
            Report.group_id == group_id,
            Report.status.in_(OPEN_STATUSES),
        )
    )
    if open_report is not None:
        msg = "You have already reported this group"
        raise ValueError(msg)

    report = Report(group_id=group_id, user_id=user.id, reason=reason, comment=comment, status="pending")
    db.add(report)
    await db.flush()
    logger.info("report_submitted", report_id=str(report.id), group_id=str(group_id), user_id=str(user.id))

    await award_reputation_points(
        db,
        user.id,
        REPUTATION_POINTS["REPORT_SUBMISSION"],
        f'Reported group "{group.name}"',
        "report",
        report.id,
    )
    await check_contribution_badges(db, user.id, "report_group")

    admin_url = f"{get_settings().site_url}/admin/reports"
    for moderator in await list_moderators(db):
        await queue_email(db, moderator, "new_report", {
            "group_name": group.name,
            "reason": reason,
            "comment": comment,
            "reporter_name": user.display_name or user.email,
            "admin_url": admin_url,
        })
    return await load_report(db, report.id)


async def load_report(db: AsyncSession, report_id: uuid.UUID) -> Report:
    """Fetch a report with its group, reporter and resolver loaded."""
    result = await db.execute(
        select(Report).where(Report.id == report_id).execution_options(populate_existing=True)
    )
    report = result.unique().scalar_one_or_none()
    if report is None:
        raise NotFoundError("Report not found")
    return report


async def get_report_for(db: AsyncSession, viewer: User, report_id: uuid.UUID) -> Report:
    """A report is visible to its reporter and to moderators."""
    report = await load_report(db, report_id)
    if report.user_id != viewer.id and not is_moderator(viewer):
        raise PermissionDeniedError("Forbidden")
    return report


async def list_reports(
    db: AsyncSession,
    status: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Report], int]:
    """Newest-first page of reports, optionally filtered by status, plus the filtered total."""
    filters = []
    if status is not None:
        if status not in REPORT_STATUSES:
            msg = f"Invalid report status: {status}"
            raise ValueError(msg)
        filters.append(Report.status == status)

    result = await db.execute(
        select(Report).where(*filters).order_by(Report.created_at.desc()).limit(limit).offset(offset)
    )
    total = await db.scalar(select(func.count()).select_from(Report).where(*filters))
    return list(result.unique().scalars().all()), total or 0


async def get_report_counts(db: AsyncSession) -> dict[str, int]:
    """Reports per status, zero-filled, plus the overall total."""
    result = await db.execute(select(Report.status, func.count()).group_by(Report.status))
    counts = {status: 0 for status in REPORT_STATUSES}
    for status, count in result.all():
        counts[status] = count
    counts["total"] = sum(counts[s] for s in REPORT_STATUSES)
    return counts


async def get_report_stats(db: AsyncSession, days: int = 30) -> dict:
    """Breakdown by reason and per-day submissions over the last ``days`` days."""
    since = datetime.now(timezone.utc) - timedelta(days=days)

    by_reason = await db.execute(
        select(Report.reason, func.count())
        .where(Report.created_at >= since)
        .group_by(Report.reason)
        .order_by(func.count().desc())
    )
    created = await db.execute(select(Report.created_at).where(Report.created_at >= since))

    per_day = Counter(ts.date().isoformat() for (ts,) in created.all())
    start = since.date()
    daily = []
    for offset in range(days + 1):
        day = (start + timedelta(days=offset)).isoformat()
        daily.append({"date": day, "count": per_day.get(day, 0)})
    return {
        "days": days,
        "by_reason": [{"reason": reason, "count": count} for reason, count in by_reason.all()],
        "daily": daily,
    }


async def update_report_status(
    db: AsyncSession,
    moderator: User,
    report_id: uuid.UUID,
    status: str,
    comment: str | None = None,
) -> Report:
    """Overwrite a report's status (moderators only)."""
    if not is_moderator(moderator):
        raise PermissionDeniedError("Forbidden: Admin access required")
    if status not in REPORT_STATUSES:
        msg = f"Invalid report status: {status}"
        raise ValueError(msg)

    report = await load_report(db, report_id)
    previous = report.status
    now = datetime.now(timezone.utc)

    report.status = status
    report.updated_at = now
    if comment is not None:
        report.comment = comment
    if status in OUTCOME_STATUSES:
        if status != previous:
            report.resolved_at = now
            report.resolved_by = moderator.id
    else:
        report.resolved_at = None
        report.resolved_by = None
    await db.flush()

    logger.info(
        "report_status_changed",
        report_id=str(report.id),
        moderator_id=str(moderator.id),
        old_status=previous,
        new_status=status,
    )

    if previous in OPEN_STATUSES and status in OUTCOME_STATUSES:
        if status == "resolved":
            points, reason = REPUTATION_POINTS["REPORT_ACCEPTED"], "Report accepted by moderators"
        else:
            points, reason = REPUTATION_POINTS["REPORT_REJECTED"], "Report dismissed by moderators"
        await award_reputation_points(db, report.user_id, points, reason, "report", report.id)

    return await load_report(db, report.id)


async def delete_report(db: AsyncSession, moderator: User, report_id: uuid.UUID) -> None:
    """Permanently remove a report (moderators only)."""
    if not is_moderator(moderator):
        raise PermissionDeniedError("Forbidden: Admin access required")
    report = await db.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report not found")
    await db.delete(report)
    await db.flush()
    logger.info("report_deleted", report_id=str(report_id), moderator_id=str(moderator.id))
