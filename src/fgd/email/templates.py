"""
Notification email templates.

Inline CSS only; every template returns (subject, html_body, text_body).
User-supplied values are HTML-escaped before they reach the markup.
"""

from __future__ import annotations

from html import escape

BLUE = "#1877F2"
BG_PAGE = "#F0F2F5"
BG_CARD = "#FFFFFF"
TEXT_PRIMARY = "#1C1E21"
TEXT_MUTED = "#65676B"

APP_NAME = "FB Group Discovery"


def _layout(title: str, content: str) -> str:
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
</head>
<body style="margin: 0; padding: 24px 12px; background-color: {BG_PAGE}; font-family: Helvetica, Arial, sans-serif; color: {TEXT_PRIMARY};">
    <div style="max-width: 560px; margin: 0 auto;">
        <div style="background-color: {BLUE}; color: #FFFFFF; padding: 18px 24px; border-radius: 8px 8px 0 0; font-size: 20px; font-weight: 700;">
            {APP_NAME}
        </div>
        <div style="background-color: {BG_CARD}; padding: 28px 24px; border-radius: 0 0 8px 8px;">
            {content}
        </div>
        <p style="color: {TEXT_MUTED}; font-size: 12px; text-align: center; margin-top: 20px;">
            You can change which emails you receive in your account settings.
        </p>
    </div>
</body>
</html>"""


def _cta(url: str, label: str) -> str:
    return (
        f'<p style="margin: 24px 0; text-align: center;">'
        f'<a href="{escape(url, quote=True)}" style="background-color: {BLUE}; color: #FFFFFF; '
        f'padding: 12px 24px; border-radius: 6px; text-decoration: none; font-weight: 600;">{escape(label)}</a>'
        f"</p>"
    )


def _greeting(display_name: str | None) -> str:
    return f"Hi {display_name}," if display_name else "Hi there,"


def group_approved(display_name: str | None, group_name: str, group_url: str) -> tuple[str, str, str]:
    """Sent to the submitter when a moderator approves their group."""
    subject = f'Your group "{group_name}" has been approved'
    html_body = _layout(
        subject,
        f"<p>{escape(_greeting(display_name))}</p>"
        f"<p>Good news! <strong>{escape(group_name)}</strong> is now listed in the directory "
        f"and visible to everyone.</p>"
        f"{_cta(group_url, 'View your group')}",
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f'Good news! "{group_name}" is now listed in the directory and visible to everyone.\n\n'
        f"View it here: {group_url}\n"
    )
    return subject, html_body, text_body


def new_review(
    display_name: str | None,
    group_name: str,
    reviewer_name: str,
    rating: int,
    comment: str | None,
    group_url: str,
) -> tuple[str, str, str]:
    """Sent to a group's submitter when someone reviews it."""
    stars = "★" * rating + "☆" * (5 - rating)
    subject = f'New {rating}-star review on "{group_name}"'
    quote = f'<blockquote style="color: {TEXT_MUTED}; margin: 16px 0;">{escape(comment)}</blockquote>' if comment else ""
    html_body = _layout(
        subject,
        f"<p>{escape(_greeting(display_name))}</p>"
        f"<p>{escape(reviewer_name)} reviewed <strong>{escape(group_name)}</strong>:</p>"
        f'<p style="font-size: 22px; color: {BLUE};">{stars}</p>'
        f"{quote}"
        f"{_cta(group_url, 'Read the review')}",
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f'{reviewer_name} reviewed "{group_name}": {rating}/5\n'
        + (f"\n{comment}\n" if comment else "")
        + f"\nRead it here: {group_url}\n"
    )
    return subject, html_body, text_body


def reputation_milestone(
    display_name: str | None,
    level: int,
    level_name: str,
    points: int,
    profile_url: str,
) -> tuple[str, str, str]:
    """Sent when a user's reputation crosses into a new level."""
    subject = f"You reached {level_name} (level {level})"
    html_body = _layout(
        subject,
        f"<p>{escape(_greeting(display_name))}</p>"
        f"<p>Your contributions have earned you <strong>{points} reputation points</strong>. "
        f"You are now a <strong>{escape(level_name)}</strong>.</p>"
        f"{_cta(profile_url, 'See your reputation')}",
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f"You now have {points} reputation points and reached {level_name} (level {level}).\n\n"
        f"Your profile: {profile_url}\n"
    )
    return subject, html_body, text_body


def new_badge(
    display_name: str | None,
    badge_name: str,
    badge_description: str,
    points: int,
    profile_url: str,
) -> tuple[str, str, str]:
    """Sent the first time a badge is granted."""
    subject = f'You earned the "{badge_name}" badge'
    bonus = f"<p>It came with <strong>+{points}</strong> reputation points.</p>" if points > 0 else ""
    html_body = _layout(
        subject,
        f"<p>{escape(_greeting(display_name))}</p>"
        f"<p>You just earned <strong>{escape(badge_name)}</strong>. {escape(badge_description)}</p>"
        f"{bonus}"
        f"{_cta(profile_url, 'View your badges')}",
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f'You just earned "{badge_name}". {badge_description}\n'
        + (f"It came with +{points} reputation points.\n" if points > 0 else "")
        + f"\nYour badges: {profile_url}\n"
    )
    return subject, html_body, text_body


def new_report(
    group_name: str,
    reason: str,
    comment: str | None,
    reporter_name: str,
    admin_url: str,
) -> tuple[str, str, str]:
    """Sent to moderators when a group is reported."""
    subject = f'Group reported: "{group_name}"'
    html_body = _layout(
        subject,
        f"<p><strong>{escape(reporter_name)}</strong> reported <strong>{escape(group_name)}</strong>.</p>"
        f"<p>Reason: {escape(reason)}</p>"
        + (f"<p>Details: {escape(comment)}</p>" if comment else "")
        + _cta(admin_url, "Open the report queue"),
    )
    text_body = (
        f'{reporter_name} reported "{group_name}".\n'
        f"Reason: {reason}\n"
        + (f"Details: {comment}\n" if comment else "")
        + f"\nReport queue: {admin_url}\n"
    )
    return subject, html_body, text_body
