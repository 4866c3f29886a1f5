"""
driftbottle.bot.core — Bot Instance & Cog Loader
=================================================

:class:`BottleBot` is a ``commands.Bot`` subclass that carries the
shared state every cog needs:

* ``bot.cfg`` — the parsed :class:`BottleConfig`
* ``bot.engine`` — the SQLAlchemy engine
* ``bot.distributor`` — fan-out engine backed by a keyed task queue
* ``bot.moderator`` — reaction-driven moderation handler

Cogs in ``driftbottle/bot/cogs/`` are loaded in ``setup_hook``; a cog
that fails to load is logged and skipped.
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from driftbottle.bot.notifier import DiscordNotifier
from driftbottle.config import BottleConfig
from driftbottle.services.distribution_service import Distributor
from driftbottle.services.moderation_service import Moderator

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "driftbottle.bot.cogs.bottles",
    "driftbottle.bot.cogs.moderation",
    "driftbottle.bot.cogs.guilds",
]


class BottleBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state."""

    def __init__(self, cfg: BottleConfig, engine: Engine) -> None:
        intents = discord.Intents.default()
        intents.message_content = True    # Privileged: bottle contents
        intents.dm_messages = True        # Anonymous bottles arrive as DMs
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description="Throw a message in a bottle and see where it washes up.",
        )

        self.cfg = cfg
        self.engine = engine
        self.notifier = DiscordNotifier(self)
        self.distributor = Distributor(engine, cfg, self.notifier)
        self.moderator = Moderator(engine, cfg, self.notifier)

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        assert self.user is not None
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        logger.info("Bot shutting down (%d distribution pass(es) in flight)…", len(self.distributor.queue))
        self.distributor.queue.stop()
        await super().close()
