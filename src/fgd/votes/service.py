"""Vote toggle: one active vote per (user, group).

    no vote  + cast(x) -> vote x          (x counter +1)            "created"
    vote x   + cast(x) -> no vote         (x counter -1)            "removed"
    vote x   + cast(y) -> vote y          (x counter -1, y +1)      "changed"

The vote row and the group counters change in the caller's transaction.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import Group, User, Vote
from fgd.groups.aggregates import adjust_vote_counters
from fgd.groups.service import get_group
from fgd.reputation.badges import check_contribution_badges
from fgd.reputation.ledger import REPUTATION_POINTS, award_reputation_points

logger = structlog.get_logger()

VOTE_TYPES = ("upvote", "downvote")

_COUNTER = {"upvote": "upvotes", "downvote": "downvotes"}


@dataclass
class VoteOutcome:
    action: str
    vote_type: str | None
    upvotes: int
    downvotes: int
    vote: Vote | None = None


async def get_user_vote(db: AsyncSession, user_id: uuid.UUID, group_id: uuid.UUID) -> Vote | None:
    result = await db.execute(select(Vote).where(Vote.user_id == user_id, Vote.group_id == group_id))
    return result.scalar_one_or_none()


async def list_votes(
    db: AsyncSession,
    *,
    group_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    vote_type: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Vote], int]:
    filters = []
    if group_id is not None:
        filters.append(Vote.group_id == group_id)
    if user_id is not None:
        filters.append(Vote.user_id == user_id)
    if vote_type is not None:
        filters.append(Vote.vote_type == vote_type)
    result = await db.execute(
        select(Vote).where(*filters).order_by(Vote.created_at.desc()).limit(limit).offset(offset)
    )
    total = await db.scalar(select(func.count()).select_from(Vote).where(*filters))
    return list(result.scalars().all()), total or 0


async def _credit_submitter(db: AsyncSession, group: Group, voter: User, vote_type: str) -> None:
    """Submitters earn (or lose) points for votes others cast on their group."""
    if group.submitted_by is None or group.submitted_by == voter.id:
        return
    if vote_type == "upvote":
        points, reason = REPUTATION_POINTS["UPVOTE_RECEIVED"], f'Upvote received on "{group.name}"'
    else:
        points, reason = REPUTATION_POINTS["DOWNVOTE_RECEIVED"], f'Downvote received on "{group.name}"'
    await award_reputation_points(db, group.submitted_by, points, reason, "vote", group.id)


async def cast_vote(db: AsyncSession, user: User, group_id: uuid.UUID, vote_type: str) -> VoteOutcome:
    """Apply one toggle transition for ``user`` on ``group_id``.

    Raises:
        ValueError: vote_type is not upvote/downvote.
        NotFoundError: The group does not exist.
    """
    if vote_type not in VOTE_TYPES:
        msg = "Invalid vote type. Must be 'upvote' or 'downvote'"
        raise ValueError(msg)

    group = await get_group(db, group_id)
    existing = await get_user_vote(db, user.id, group_id)

    if existing is None:
        vote = Vote(user_id=user.id, group_id=group_id, vote_type=vote_type)
        db.add(vote)
        await db.flush()
        upvotes, downvotes = await adjust_vote_counters(db, group_id, **{_COUNTER[vote_type]: 1})
        outcome = VoteOutcome("created", vote_type, upvotes, downvotes, vote)
    elif existing.vote_type == vote_type:
        await db.delete(existing)
        await db.flush()
        upvotes, downvotes = await adjust_vote_counters(db, group_id, **{_COUNTER[vote_type]: -1})
        outcome = VoteOutcome("removed", None, upvotes, downvotes)
    else:
        previous = existing.vote_type
        existing.vote_type = vote_type
        existing.created_at = datetime.now(timezone.utc)
        await db.flush()
        upvotes, downvotes = await adjust_vote_counters(
            db, group_id, **{_COUNTER[previous]: -1, _COUNTER[vote_type]: 1}
        )
        outcome = VoteOutcome("changed", vote_type, upvotes, downvotes, existing)

    logger.info(
        "vote_cast",
        group_id=str(group_id),
        user_id=str(user.id),
        action=outcome.action,
        vote_type=vote_type,
        upvotes=upvotes,
        downvotes=downvotes,
    )

    if outcome.action != "removed":
        await _credit_submitter(db, group, user, vote_type)
        await check_contribution_badges(db, user.id, "vote")
    return outcome
