"""
driftbottle.services.bottle_service — Submission pipeline & bottle store
=========================================================================

:func:`submit_bottle` is the synchronous half of a submission:

1. Load the author (created on first contact).
2. Run the guard — cooldown, ban, reply target, minimum content.
3. On rejection: count a ticket and decide whether to answer at all.
4. On admission: reset tickets, pay the reply bonus, persist the
   bottle, pay the push XP.

Distribution happens afterwards on the background queue; see
:mod:`driftbottle.services.distribution_service`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from driftbottle.database.engine import get_session
from driftbottle.database.models import Bottle, Delivery, Report
from driftbottle.engine.chain import MAX_CHAIN_DEPTH, walk_chain
from driftbottle.engine.guard import (
    Submission,
    check_ban,
    check_content,
    check_cooldown,
    split_reply_marker,
    ticket_reply,
)
from driftbottle.engine.scoring import push_xp, reply_xp
from driftbottle.engine.views import BottleView, origin_guild_id
from driftbottle.errors import NoReplyTarget, NotFound, StoreFailure, SubmissionRejected
from driftbottle.services.delivery_service import last_delivered_in
from driftbottle.services.scoring_service import give_xp
from driftbottle.services.user_service import get_or_default_user, is_banned, last_bottle

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from driftbottle.config import BottleConfig

logger = logging.getLogger(__name__)

ADMITTED_TEXT = "Your message has been ~~discarded~~ pushed into the dark seas of discord!"


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Outcome of :func:`submit_bottle`.

    ``reply`` is the text to send back to the author; ``None`` means stay
    silent.  ``bottle`` is set only when the submission was admitted.
    """

    bottle: BottleView | None
    reply: str | None
    rejection: SubmissionRejected | None = None

    @property
    def admitted(self) -> bool:
        return self.bottle is not None


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------
def submit_bottle(
    engine: Engine,
    cfg: BottleConfig,
    submission: Submission,
    now: datetime | None = None,
) -> SubmissionResult:
    """Admit or reject *submission*.  Raises :class:`StoreFailure` on DB errors."""
    now = now or datetime.now(UTC)
    try:
        with get_session(engine) as session:
            return _submit(session, cfg, submission, now)
    except SQLAlchemyError as exc:
        logger.exception("Store failure while admitting message %d", submission.message_id)
        raise StoreFailure(str(exc)) from exc


def _submit(
    session: Session,
    cfg: BottleConfig,
    submission: Submission,
    now: datetime,
) -> SubmissionResult:
    user = get_or_default_user(session, submission.author_id)
    exempt = user.admin
    previous = last_bottle(session, user.id)

    try:
        check_cooldown(now, previous.time_pushed if previous else None, cfg.cooldown_minutes, exempt)
        check_ban(is_banned(session, user.id), exempt)

        is_reply, text = split_reply_marker(submission.content, cfg.reply_prefixes)
        reply_to: int | None = None
        if is_reply:
            reply_to = last_delivered_in(session, submission.channel_id)
            if reply_to is None:
                raise NoReplyTarget()
        text = text.strip()

        check_content(text, submission.url, submission.image, cfg.min_chars, exempt)
    except SubmissionRejected as exc:
        if not exc.counts_ticket:
            return SubmissionResult(bottle=None, reply=str(exc), rejection=exc)
        user.tickets += 1
        reply = ticket_reply(user.tickets, cfg.max_tickets, str(exc))
        logger.info(
            "Rejected bottle from %d (%s, tickets=%d%s)",
            user.id, type(exc).__name__, user.tickets, ", silent" if reply is None else "",
        )
        return SubmissionResult(bottle=None, reply=reply, rejection=exc)

    user.tickets = 0

    if reply_to is not None:
        parent = session.get(Bottle, reply_to)
        if parent is not None:
            give_xp(session, parent, reply_xp(cfg.xp, replier_id=user.id, original_author_id=parent.user_id))

    bottle = Bottle(
        user_id=user.id,
        message_id=submission.message_id,
        channel_id=submission.channel_id,
        guild_id=origin_guild_id(submission.origin),
        reply_to_id=reply_to,
        contents=text,
        url=submission.url,
        image=submission.image,
        time_pushed=now,
    )
    session.add(bottle)
    session.flush()

    give_xp(
        session,
        bottle,
        push_xp(cfg.xp, has_url=submission.url is not None, has_image=submission.image is not None),
    )
    logger.debug("Admitted bottle %d from user %d (reply_to=%s)", bottle.id, user.id, reply_to)
    return SubmissionResult(bottle=BottleView.of(bottle), reply=ADMITTED_TEXT)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def reply_chain(engine: Engine, bottle_id: int, max_depth: int = MAX_CHAIN_DEPTH) -> list[BottleView]:
    """The bottle followed by up to ``max_depth - 1`` ancestors, newest first."""
    with Session(engine) as session:
        start = session.get(Bottle, bottle_id)
        if start is None:
            raise NotFound(f"Bottle {bottle_id} does not exist")

        def lookup(parent_id: int) -> BottleView | None:
            parent = session.get(Bottle, parent_id)
            return BottleView.of(parent) if parent else None

        return walk_chain(BottleView.of(start), lookup, max_depth)


def count_replies(engine: Engine, bottle_id: int) -> int:
    """Number of bottles replying directly to *bottle_id*."""
    with Session(engine) as session:
        return session.scalar(
            select(func.count()).select_from(Bottle).where(Bottle.reply_to_id == bottle_id)
        ) or 0


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------
def delete_bottle_record(engine: Engine, bottle_id: int) -> bool:
    """Remove a bottle.

    Replies are detached (their chain now starts fresh at the reply).
    Reports and delivery rows are kept with ``bottle_id`` cleared, so
    moderators can still act on the header and on blanked copies.
    """
    with get_session(engine) as session:
        if session.get(Bottle, bottle_id) is None:
            return False
        session.execute(
            update(Bottle).where(Bottle.reply_to_id == bottle_id).values(reply_to_id=None)
        )
        session.execute(
            update(Report)
            .where(Report.bottle_id == bottle_id)
            .values(bottle_id=None)
        )
        session.execute(
            update(Delivery).where(Delivery.bottle_id == bottle_id).values(bottle_id=None)
        )
        session.execute(delete(Bottle).where(Bottle.id == bottle_id))
    logger.info("Bottle %d deleted", bottle_id)
    return True
