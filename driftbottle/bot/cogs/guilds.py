"""
driftbottle.bot.cogs.guilds — Community setup, reports and unbans
==================================================================

Slash commands:
- /setchannel — choose (or clear) this server's inbound bottle channel
- /setinvite  — store an invite link shown on the community's page
- /report     — send a bottle to the moderators
- /unban      — lift a global ban (bot admins only)

Also deletes the guild row when the bot is removed from a server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from driftbottle.database.engine import run_db
from driftbottle.errors import NotFound, UpstreamUnavailable
from driftbottle.services.guild_service import delete_guild, set_bottle_channel, set_invite
from driftbottle.services.report_service import file_report
from driftbottle.services.user_service import is_admin, unban_user

if TYPE_CHECKING:
    from driftbottle.bot.core import BottleBot

logger = logging.getLogger(__name__)


def is_bottle_admin():
    """Check that the invoking user carries the admin flag in the database."""
    async def predicate(interaction: discord.Interaction) -> bool:
        bot: BottleBot = interaction.client  # type: ignore[assignment]
        return await run_db(is_admin, bot.engine, interaction.user.id)
    return app_commands.check(predicate)


class Guilds(commands.Cog, name="Guilds"):
    """Per-server configuration plus report/unban commands."""

    def __init__(self, bot: BottleBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        try:
            await run_db(delete_guild, self.bot.engine, guild.id)
        except Exception:
            logger.exception("Error removing guild %s", guild.id)

    # -------------------------------------------------------------------
    # /setchannel
    # -------------------------------------------------------------------
    @app_commands.command(name="setchannel", description="Receive bottles in a channel.")
    @app_commands.describe(channel="Channel for incoming bottles (leave empty to stop receiving)")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def setchannel(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | None = None,
    ) -> None:
        assert interaction.guild_id is not None
        await run_db(
            set_bottle_channel, self.bot.engine, interaction.guild_id, channel.id if channel else None
        )
        text = (
            f"✅ Bottles will wash up in {channel.mention}."
            if channel else "✅ This server will no longer receive bottles."
        )
        await interaction.response.send_message(text, ephemeral=True)

    # -------------------------------------------------------------------
    # /setinvite
    # -------------------------------------------------------------------
    @app_commands.command(name="setinvite", description="Set the invite link shown for this server.")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def setinvite(self, interaction: discord.Interaction, invite: str | None = None) -> None:
        assert interaction.guild_id is not None
        await run_db(set_invite, self.bot.engine, interaction.guild_id, invite)
        await interaction.response.send_message("✅ Invite updated.", ephemeral=True)

    # -------------------------------------------------------------------
    # /report
    # -------------------------------------------------------------------
    @app_commands.command(name="report", description="Report a bottle to the moderators.")
    @app_commands.describe(bottle="The bottle number shown in the bottle's footer")
    async def report(self, interaction: discord.Interaction, bottle: int) -> None:
        await interaction.response.defer(ephemeral=True)
        try:
            outcome = await file_report(
                self.bot.engine,
                self.bot.cfg,
                self.bot.notifier,
                reporter_id=interaction.user.id,
                reporter_name=interaction.user.name,
                bottle_id=bottle,
            )
        except NotFound:
            await interaction.followup.send(f"❌ Bottle #{bottle} does not exist.", ephemeral=True)
            return
        except UpstreamUnavailable:
            logger.exception("Could not deliver report of bottle %d", bottle)
            await interaction.followup.send("❌ Could not reach the moderators.", ephemeral=True)
            return

        if outcome.filed:
            text = "✅ Thanks! The moderators will take a look."
        elif outcome.already_exists:
            text = "This bottle has already been reported."
        else:
            text = "❌ You are banned and cannot report bottles."
        await interaction.followup.send(text, ephemeral=True)

    # -------------------------------------------------------------------
    # /unban
    # -------------------------------------------------------------------
    @app_commands.command(name="unban", description="Lift a global bottle ban.")
    @is_bottle_admin()
    async def unban(self, interaction: discord.Interaction, user: discord.User) -> None:
        lifted = await run_db(unban_user, self.bot.engine, user.id)
        text = f"✅ {user.name} was unbanned." if lifted else f"{user.name} is not banned."
        await interaction.response.send_message(text, ephemeral=True)


async def setup(bot: BottleBot) -> None:
    await bot.add_cog(Guilds(bot))
