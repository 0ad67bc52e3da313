"""Default badge definitions, upserted by name at startup."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import Badge
from fgd.reputation.requirements import parse_requirement

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Reputation milestones
    {
        "name": "Rising Star",
        "description": "Reach 100 reputation points",
        "icon": "star",
        "category": "reputation",
        "level": 1,
        "points": 10,
        "requirements": {"kind": "reputation", "minimum": 100},
        "display_order": 1,
    },
    {
        "name": "Trusted Member",
        "description": "Reach 500 reputation points",
        "icon": "shield",
        "category": "reputation",
        "level": 2,
        "points": 25,
        "requirements": {"kind": "reputation", "minimum": 500},
        "display_order": 2,
    },
    {
        "name": "Community Expert",
        "description": "Reach 1,000 reputation points",
        "icon": "award",
        "category": "reputation",
        "level": 3,
        "points": 50,
        "requirements": {"kind": "reputation", "minimum": 1000},
        "display_order": 3,
    },
    {
        "name": "Authority",
        "description": "Reach 5,000 reputation points",
        "icon": "crown",
        "category": "reputation",
        "level": 4,
        "points": 100,
        "requirements": {"kind": "reputation", "minimum": 5000},
        "display_order": 4,
    },
    {
        "name": "Legend",
        "description": "Reach 10,000 reputation points",
        "icon": "trophy",
        "category": "reputation",
        "level": 5,
        "points": 0,
        "requirements": {"kind": "reputation", "minimum": 10000},
        "display_order": 5,
    },
    # Contributions
    {
        "name": "First Submission",
        "description": "Submit your first group to the directory",
        "icon": "plus-circle",
        "category": "contribution",
        "level": 1,
        "points": 5,
        "requirements": {"kind": "contribution", "action": "submit_group", "count": 1},
        "display_order": 10,
    },
    {
        "name": "Curator",
        "description": "Submit 10 groups to the directory",
        "icon": "folder",
        "category": "contribution",
        "level": 2,
        "points": 20,
        "requirements": {"kind": "contribution", "action": "submit_group", "count": 10},
        "display_order": 11,
    },
    {
        "name": "First Review",
        "description": "Write your first group review",
        "icon": "message-square",
        "category": "contribution",
        "level": 1,
        "points": 5,
        "requirements": {"kind": "contribution", "action": "write_review", "count": 1},
        "display_order": 12,
    },
    {
        "name": "Critic",
        "description": "Write 25 group reviews",
        "icon": "edit",
        "category": "contribution",
        "level": 2,
        "points": 25,
        "requirements": {"kind": "contribution", "action": "write_review", "count": 25},
        "display_order": 13,
    },
    {
        "name": "Voter",
        "description": "Vote on 10 groups",
        "icon": "thumbs-up",
        "category": "contribution",
        "level": 1,
        "points": 5,
        "requirements": {"kind": "contribution", "action": "vote", "count": 10},
        "display_order": 14,
    },
    {
        "name": "Watchdog",
        "description": "Report a group that breaks the rules",
        "icon": "flag",
        "category": "contribution",
        "level": 1,
        "points": 5,
        "requirements": {"kind": "contribution", "action": "report_group", "count": 1},
        "display_order": 15,
    },
    {
        "name": "Guardian",
        "description": "Report 10 groups that break the rules",
        "icon": "shield-check",
        "category": "contribution",
        "level": 2,
        "points": 20,
        "requirements": {"kind": "contribution", "action": "report_group", "count": 10},
        "display_order": 16,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert or refresh the default badges. Returns the number of definitions written."""
    result = await db.execute(select(Badge).where(Badge.name.in_([b["name"] for b in BADGE_SEED_DATA])))
    existing = {badge.name: badge for badge in result.scalars()}

    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        parse_requirement(badge_data["requirements"])
        badge = existing.get(badge_data["name"])
        if badge is None:
            db.add(Badge(**badge_data))
        else:
            for attr, value in badge_data.items():
                setattr(badge, attr, value)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
