"""
driftbottle.services.report_service — Report filing
====================================================

A report copies the bottle into the admin channel with a header line,
pre-seeds the moderation reactions, and rewards the reporter — but only
for the first report of a given bottle.  Banned members (other than
admins) cannot report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from driftbottle.database.engine import get_session, run_db
from driftbottle.database.models import Bottle, Report, User
from driftbottle.engine.scoring import report_xp
from driftbottle.engine.views import BottleView
from driftbottle.errors import NotFound, UpstreamUnavailable
from driftbottle.services.delivery_service import add_delivery
from driftbottle.services.notifier import Notifier, render_bottle
from driftbottle.services.scoring_service import credit_user
from driftbottle.services.user_service import is_banned

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from driftbottle.config import BottleConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReportOutcome:
    filed: bool
    banned: bool
    already_exists: bool


@dataclass(frozen=True, slots=True)
class ReportStatus:
    bottle: BottleView
    reporter_admin: bool
    reporter_banned: bool
    already_exists: bool


def report_header(reporter_name: str, reporter_id: int, bottle_id: int) -> str:
    return f"REPORT FROM {reporter_name}. USER ID {reporter_id}, BOTTLE ID {bottle_id}."


def report_exists(session: Session, bottle_id: int) -> bool:
    return session.scalar(select(Report.id).where(Report.bottle_id == bottle_id).limit(1)) is not None


def get_report_status(engine: Engine, reporter_id: int, bottle_id: int) -> ReportStatus:
    """Raises :class:`NotFound` if the bottle does not exist."""
    with Session(engine) as session:
        bottle = session.get(Bottle, bottle_id)
        if bottle is None:
            raise NotFound(f"Bottle {bottle_id} does not exist")
        reporter = session.get(User, reporter_id)
        return ReportStatus(
            bottle=BottleView.of(bottle),
            reporter_admin=bool(reporter and reporter.admin),
            reporter_banned=is_banned(session, reporter_id),
            already_exists=report_exists(session, bottle_id),
        )


def save_report(
    engine: Engine,
    cfg: BottleConfig,
    *,
    reporter_id: int,
    bottle: BottleView,
    header_message_id: int,
    copy_message_id: int,
) -> bool:
    """Persist the report, its rendered copy and the reporter's reward.

    Returns False if another report for the bottle won the race or the
    bottle was deleted in the meantime.
    """
    try:
        with get_session(engine) as session:
            if report_exists(session, bottle.id):
                return False
            delivery = add_delivery(session, bottle.id, cfg.admin_channel_id, copy_message_id)
            session.add(Report(
                user_id=reporter_id,
                reported_user_id=bottle.user_id,
                bottle_id=bottle.id,
                message_id=header_message_id,
                delivery_id=delivery.id,
            ))
            session.flush()
            credit_user(session, reporter_id, report_xp(cfg.xp, already_reported=False))
    except IntegrityError:
        logger.info("Bottle %d was reported concurrently", bottle.id)
        return False
    except NotFound:
        logger.info("Bottle %d was deleted before its report was saved", bottle.id)
        return False
    return True


async def _react(notifier: Notifier, channel_id: int, message_id: int, emoji: str) -> None:
    try:
        await notifier.add_reaction(channel_id, message_id, emoji)
    except UpstreamUnavailable as exc:
        logger.warning("Could not react %s on message %d: %s", emoji, message_id, exc)


async def file_report(
    engine: Engine,
    cfg: BottleConfig,
    notifier: Notifier,
    *,
    reporter_id: int,
    reporter_name: str,
    bottle_id: int,
) -> ReportOutcome:
    """File a report of *bottle_id* by *reporter_id*.

    Raises :class:`NotFound` for unknown bottles and
    :class:`UpstreamUnavailable` if the admin channel cannot be written to.
    """
    status = await run_db(get_report_status, engine, reporter_id, bottle_id)
    refused = status.reporter_banned and not status.reporter_admin
    if refused or status.already_exists:
        return ReportOutcome(
            filed=False, banned=status.reporter_banned, already_exists=status.already_exists
        )

    admin_channel = cfg.admin_channel_id
    header_id = await notifier.send_text(admin_channel, report_header(reporter_name, reporter_id, bottle_id))
    card = await render_bottle(notifier, cfg, status.bottle, 0)
    copy_id = await notifier.send_card(admin_channel, card)

    await _react(notifier, admin_channel, header_id, cfg.ban_emoji)
    await _react(notifier, admin_channel, copy_id, cfg.ban_emoji)
    await _react(notifier, admin_channel, copy_id, cfg.delete_emoji)

    filed = await run_db(
        save_report,
        engine,
        cfg,
        reporter_id=reporter_id,
        bottle=status.bottle,
        header_message_id=header_id,
        copy_message_id=copy_id,
    )
    if filed:
        logger.info("Bottle %d reported by %d", bottle_id, reporter_id)
    else:
        logger.warning(
            "Report of bottle %d by %d was not saved; header %d and copy %d in the admin "
            "channel are not actionable",
            bottle_id, reporter_id, header_id, copy_id,
        )
    return ReportOutcome(filed=filed, banned=status.reporter_banned, already_exists=not filed)
