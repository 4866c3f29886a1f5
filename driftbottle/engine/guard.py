"""
driftbottle.engine.guard — Submission admission checks
=======================================================

Each check raises a :class:`~driftbottle.errors.SubmissionRejected`
subclass on failure and returns ``None`` otherwise.  The submission
service runs them in order: cooldown, ban, reply resolution, content.
Admins are exempt from everything except reply resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from driftbottle.engine.views import Origin, as_utc
from driftbottle.errors import Banned, RateLimited, TooShort


@dataclass(frozen=True, slots=True)
class Submission:
    """A prospective bottle, normalized from a chat message."""

    author_id: int
    channel_id: int
    message_id: int
    origin: Origin
    content: str
    url: str | None = None
    image: str | None = None


def split_reply_marker(content: str, prefixes: tuple[str, ...]) -> tuple[bool, str]:
    """Strip the first matching reply marker.

    Returns ``(is_reply, remaining_text)``.  Prefixes are tried in order,
    so a longer marker must come before any marker it starts with.
    """
    for prefix in prefixes:
        if content.startswith(prefix):
            return True, content[len(prefix):]
    return False, content


def check_cooldown(
    now: datetime,
    last_push: datetime | None,
    cooldown_minutes: int,
    exempt: bool = False,
) -> None:
    if last_push is None or exempt:
        return
    cooldown = timedelta(minutes=cooldown_minutes)
    elapsed = now - as_utc(last_push)
    if elapsed < cooldown:
        raise RateLimited(int((cooldown - elapsed).total_seconds()))


def check_ban(banned: bool, exempt: bool = False) -> None:
    if banned and not exempt:
        raise Banned()


def check_content(
    text: str,
    url: str | None,
    image: str | None,
    min_chars: int,
    exempt: bool = False,
) -> None:
    """Bottles without a link or media need at least *min_chars* characters."""
    if exempt or url is not None or image is not None:
        return
    if len(text.strip()) < min_chars:
        raise TooShort(min_chars)


def ticket_reply(tickets: int, max_tickets: int, message: str) -> str | None:
    """Text to send after a rejection, or ``None`` once the author is silenced.

    *tickets* is the counter value after the current rejection was counted.
    """
    if tickets > max_tickets:
        return None
    return message
