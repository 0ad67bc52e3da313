"""Post-commit email outbox.

Services call ``queue_email`` while they work; messages wait in
``session.info`` and are handed to background tasks by ``dispatch_queued_emails``
only after the route commits. A rolled-back request therefore sends nothing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.db.models import EmailPreferences, User
from fgd.email.service import get_email_service
from fgd.redis_client import get_redis_or_none

logger = structlog.get_logger()

_OUTBOX_KEY = "email_outbox"

# template name -> EmailPreferences flag that can switch it off
PREFERENCE_FLAGS: dict[str, str] = {
    "group_approved": "group_approved",
    "new_review": "new_review",
    "reputation_milestone": "reputation_milestone",
    "new_badge": "new_badge",
    "new_report": "new_report",
}


@dataclass
class QueuedEmail:
    to: str
    template_name: str
    context: dict[str, Any] = field(default_factory=dict)


async def wants_email(db: AsyncSession, user_id: uuid.UUID, template_name: str) -> bool:
    """Users without a preferences row receive everything."""
    flag = PREFERENCE_FLAGS.get(template_name)
    if flag is None:
        return True
    prefs = await db.get(EmailPreferences, user_id)
    return prefs is None or bool(getattr(prefs, flag))


async def queue_email(db: AsyncSession, user: User, template_name: str, context: dict[str, Any]) -> bool:
    """Queue a template email for ``user`` if their preferences allow it."""
    if not user.email or not await wants_email(db, user.id, template_name):
        return False
    db.info.setdefault(_OUTBOX_KEY, []).append(QueuedEmail(user.email, template_name, context))
    return True


def pending_emails(db: AsyncSession) -> list[QueuedEmail]:
    return list(db.info.get(_OUTBOX_KEY, []))


async def _deliver(message: QueuedEmail) -> None:
    service = get_email_service(get_redis_or_none())
    sent = await service.send_template(message.to, message.template_name, message.context)
    if not sent:
        logger.warning("email_not_delivered", to=message.to, template=message.template_name)


def dispatch_queued_emails(db: AsyncSession, background_tasks: BackgroundTasks) -> int:
    """Hand the session's queued emails to background tasks. Call after commit."""
    queued = db.info.pop(_OUTBOX_KEY, [])
    for message in queued:
        background_tasks.add_task(_deliver, message)
    return len(queued)


async def commit_and_notify(db: AsyncSession, background_tasks: BackgroundTasks) -> None:
    """Commit the request transaction, then release its queued emails."""
    await db.commit()
    dispatch_queued_emails(db, background_tasks)
