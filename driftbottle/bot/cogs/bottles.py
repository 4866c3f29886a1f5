"""
driftbottle.bot.cogs.bottles — Bottle submission
=================================================

Listens for messages in two places:

* direct messages to the bot → anonymous bottles
* a guild's configured inbound channel → community bottles

Pipeline:
1. on_message fires → gate checks (bot author, source channel)
2. Build a Submission from the message (first embed URL, first attachment)
3. submit_bottle runs on a worker thread via run_db
4. Reply to the author (unless silenced) and enqueue distribution
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from driftbottle.database.engine import run_db
from driftbottle.engine.guard import Submission
from driftbottle.engine.views import Anonymous, Community, Origin
from driftbottle.errors import StoreFailure
from driftbottle.services.bottle_service import submit_bottle
from driftbottle.services.guild_service import get_bottle_channel

if TYPE_CHECKING:
    from driftbottle.bot.core import BottleBot

logger = logging.getLogger(__name__)

STORE_FAILURE_TEXT = "Something went wrong while bottling your message. Please try again later."


def build_submission(message: discord.Message, origin: Origin) -> Submission:
    """Normalize a Discord message into a :class:`Submission`."""
    url = next((e.url for e in message.embeds if e.url), None)
    image = message.attachments[0].url if message.attachments else None
    return Submission(
        author_id=message.author.id,
        channel_id=message.channel.id,
        message_id=message.id,
        origin=origin,
        content=message.content,
        url=url,
        image=image,
    )


class Bottles(commands.Cog, name="Bottles"):
    """Turns DMs and inbound-channel messages into bottles."""

    def __init__(self, bot: BottleBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        try:
            await self._handle_message(message)
        except Exception:
            logger.exception(
                "Error processing message %s from user %s",
                message.id, message.author.id,
            )

    async def _origin_for(self, message: discord.Message) -> Origin | None:
        if message.guild is None:
            return Anonymous()
        channel_id = await run_db(get_bottle_channel, self.bot.engine, message.guild.id)
        if channel_id != message.channel.id:
            return None
        return Community(message.guild.id)

    async def _handle_message(self, message: discord.Message) -> None:
        """Inner message handler (separated for error isolation)."""
        if message.author.bot:
            return

        origin = await self._origin_for(message)
        if origin is None:
            return

        submission = build_submission(message, origin)
        try:
            result = await run_db(submit_bottle, self.bot.engine, self.bot.cfg, submission)
        except StoreFailure:
            await message.channel.send(STORE_FAILURE_TEXT)
            return

        if result.reply is not None:
            await message.channel.send(result.reply)

        if result.admitted:
            self.bot.distributor.enqueue(result.bottle.id)
            logger.info(
                "Bottle %d thrown by %s (reply_to=%s)",
                result.bottle.id, message.author.name, result.bottle.reply_to_id,
            )


async def setup(bot: BottleBot) -> None:
    await bot.add_cog(Bottles(bot))
