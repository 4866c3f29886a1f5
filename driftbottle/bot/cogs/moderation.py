"""
driftbottle.bot.cogs.moderation — Reaction moderation
======================================================

Forwards raw reaction add/remove events to the
:class:`~driftbottle.services.moderation_service.Moderator`.  Raw events
are used so reactions on uncached (old) messages still count.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from driftbottle.services.moderation_service import ModerationAction, ReactionEvent

if TYPE_CHECKING:
    from driftbottle.bot.core import BottleBot

logger = logging.getLogger(__name__)


def to_reaction_event(payload: discord.RawReactionActionEvent, added: bool) -> ReactionEvent:
    emoji = payload.emoji.name if payload.emoji.is_unicode_emoji() else None
    return ReactionEvent(
        message_id=payload.message_id,
        user_id=payload.user_id,
        emoji=emoji,
        added=added,
    )


class Moderation(commands.Cog, name="Moderation"):
    """Admin reactions → bans and deletions."""

    def __init__(self, bot: BottleBot) -> None:
        self.bot = bot

    async def _dispatch(self, payload: discord.RawReactionActionEvent, added: bool) -> None:
        if self.bot.user is not None and payload.user_id == self.bot.user.id:
            return
        try:
            action = await self.bot.moderator.handle(to_reaction_event(payload, added))
        except Exception:
            logger.exception(
                "Error moderating reaction on message %s from user %s",
                payload.message_id, payload.user_id,
            )
            return
        if action is not ModerationAction.IGNORED:
            logger.info("Moderation on message %s: %s", payload.message_id, action)

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        await self._dispatch(payload, added=True)

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        await self._dispatch(payload, added=False)


async def setup(bot: BottleBot) -> None:
    await bot.add_cog(Moderation(bot))
