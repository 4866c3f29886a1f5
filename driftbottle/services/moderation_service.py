"""
driftbottle.services.moderation_service — Reaction-driven moderation
=====================================================================

Admins moderate by reacting to messages the bot rendered:

==================  ==========  ======================================
Target message      Emoji       Effect
==================  ==========  ======================================
bottle rendering    ban, add    ban the author, delete all their bottles
bottle rendering    ban, remove lift the ban (deleted bottles stay gone)
bottle rendering    delete, add delete that bottle
report header       ban, add    ban the reported author (linked to report)
report header       ban, remove lift that ban
==================  ==========  ======================================

Anything else — custom emoji, non-admin reactors, unknown messages,
delete-emoji removals — is ignored without error.

Deleting a bottle edits every rendered copy outside the admin channel
into a "deleted" placeholder, then removes the bottle row.  A copy that
can no longer be edited is logged and skipped.  A blanked copy still
resolves to its author, so removing the ban emoji from it lifts the ban.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from driftbottle.database.engine import run_db
from driftbottle.database.models import Report
from driftbottle.engine.cards import deleted_card
from driftbottle.errors import UpstreamUnavailable
from driftbottle.services.bottle_service import delete_bottle_record
from driftbottle.services.delivery_service import all_deliveries, message_target
from driftbottle.services.notifier import Notifier
from driftbottle.services.user_service import ban_user, is_admin, list_user_bottles, unban_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from driftbottle.config import BottleConfig

logger = logging.getLogger(__name__)


class ModerationAction(enum.StrEnum):
    IGNORED = "ignored"
    BANNED = "banned"
    UNBANNED = "unbanned"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class ReactionEvent:
    """A reaction added to or removed from a message.

    ``emoji`` is ``None`` for custom (non-unicode) emoji.
    """

    message_id: int
    user_id: int
    emoji: str | None
    added: bool


@dataclass(frozen=True, slots=True)
class ReportTarget:
    report_id: int
    reported_user_id: int


def report_for_message(engine: Engine, message_id: int) -> ReportTarget | None:
    """The report whose header is *message_id*, if any."""
    with Session(engine) as session:
        report = session.scalar(select(Report).where(Report.message_id == message_id).limit(1))
        if report is None:
            return None
        return ReportTarget(report_id=report.id, reported_user_id=report.reported_user_id)


class Moderator:
    """Interprets admin reactions into bans and deletions."""

    def __init__(self, engine: Engine, cfg: BottleConfig, notifier: Notifier) -> None:
        self.engine = engine
        self.cfg = cfg
        self.notifier = notifier

    async def handle(self, event: ReactionEvent) -> ModerationAction:
        if event.emoji is None:
            return ModerationAction.IGNORED
        if event.emoji not in (self.cfg.ban_emoji, self.cfg.delete_emoji):
            return ModerationAction.IGNORED
        if not await run_db(is_admin, self.engine, event.user_id):
            return ModerationAction.IGNORED

        target = await run_db(message_target, self.engine, event.message_id)
        if target is not None:
            logger.info(
                "Admin %d reacted %s (%s) on bottle %s by user %d",
                event.user_id, event.emoji, "add" if event.added else "remove",
                target.bottle_id, target.user_id,
            )
            if event.emoji == self.cfg.ban_emoji:
                return await self.toggle_ban(target.user_id, event.added)
            # already deleted copies stay as they are
            if event.added and target.bottle_id is not None:
                await self.delete_bottle(target.bottle_id)
                return ModerationAction.DELETED
            return ModerationAction.IGNORED

        report = await run_db(report_for_message, self.engine, event.message_id)
        if report is not None and event.emoji == self.cfg.ban_emoji:
            logger.info(
                "Admin %d reacted %s (%s) on report %d",
                event.user_id, event.emoji, "add" if event.added else "remove", report.report_id,
            )
            return await self.toggle_ban(report.reported_user_id, event.added, report.report_id)

        return ModerationAction.IGNORED

    async def toggle_ban(
        self, user_id: int, add: bool, report_id: int | None = None
    ) -> ModerationAction:
        if not add:
            await run_db(unban_user, self.engine, user_id)
            return ModerationAction.UNBANNED

        await run_db(ban_user, self.engine, user_id, report_id)
        for bottle_id in await run_db(list_user_bottles, self.engine, user_id):
            await self.delete_bottle(bottle_id)
        return ModerationAction.BANNED

    async def delete_bottle(self, bottle_id: int) -> None:
        """Blank every rendered copy outside the admin channel, then drop the row."""
        for channel_id, message_id in await run_db(all_deliveries, self.engine, bottle_id):
            if channel_id == self.cfg.admin_channel_id:
                continue
            try:
                await self.notifier.edit_card(channel_id, message_id, deleted_card())
            except UpstreamUnavailable as exc:
                logger.warning(
                    "Could not blank message %d in channel %d: %s", message_id, channel_id, exc
                )
        await run_db(delete_bottle_record, self.engine, bottle_id)
