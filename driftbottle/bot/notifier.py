"""
driftbottle.bot.notifier — discord.py implementation of the Notifier port
==========================================================================

Channel and message operations translate ``discord.HTTPException`` (which
covers ``NotFound`` and ``Forbidden``) into
:class:`~driftbottle.errors.UpstreamUnavailable`.  Identity lookups never
raise: an unresolvable id yields ``None`` and the card falls back to a
placeholder.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from driftbottle.engine.cards import BottleCard
from driftbottle.engine.views import Identity
from driftbottle.errors import UpstreamUnavailable
from driftbottle.services.embeds import build_bottle_embed

if TYPE_CHECKING:
    from discord.abc import Messageable

logger = logging.getLogger(__name__)


class DiscordNotifier:
    """Sends, reacts and edits through a connected :class:`discord.Client`."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def _channel(self, channel_id: int) -> Messageable:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.HTTPException as exc:
                raise UpstreamUnavailable(f"channel {channel_id}: {exc}") from exc
        if not hasattr(channel, "send"):
            raise UpstreamUnavailable(f"channel {channel_id} is not messageable")
        return channel  # type: ignore[return-value]

    async def send_card(self, channel_id: int, card: BottleCard) -> int:
        channel = await self._channel(channel_id)
        try:
            message = await channel.send(embed=build_bottle_embed(card))
        except discord.HTTPException as exc:
            raise UpstreamUnavailable(f"send to {channel_id}: {exc}") from exc
        return message.id

    async def send_text(self, channel_id: int, text: str) -> int:
        channel = await self._channel(channel_id)
        try:
            message = await channel.send(text)
        except discord.HTTPException as exc:
            raise UpstreamUnavailable(f"send to {channel_id}: {exc}") from exc
        return message.id

    async def add_reaction(self, channel_id: int, message_id: int, emoji: str) -> None:
        channel = await self._channel(channel_id)
        try:
            await channel.get_partial_message(message_id).add_reaction(emoji)  # type: ignore[attr-defined]
        except discord.HTTPException as exc:
            raise UpstreamUnavailable(f"react on {message_id}: {exc}") from exc

    async def edit_card(self, channel_id: int, message_id: int, card: BottleCard) -> None:
        channel = await self._channel(channel_id)
        try:
            await channel.get_partial_message(message_id).edit(  # type: ignore[attr-defined]
                content=None, embed=build_bottle_embed(card), attachments=[],
            )
        except discord.HTTPException as exc:
            raise UpstreamUnavailable(f"edit {message_id}: {exc}") from exc

    async def resolve_user(self, user_id: int) -> Identity | None:
        user = self.client.get_user(user_id)
        if user is None:
            try:
                user = await self.client.fetch_user(user_id)
            except discord.HTTPException:
                logger.debug("Could not resolve user %d", user_id)
                return None
        return Identity(name=user.name, icon_url=user.display_avatar.url)

    async def resolve_guild(self, guild_id: int) -> Identity | None:
        guild = self.client.get_guild(guild_id)
        if guild is None:
            try:
                guild = await self.client.fetch_guild(guild_id)
            except discord.HTTPException:
                logger.debug("Could not resolve guild %d", guild_id)
                return None
        return Identity(name=guild.name, icon_url=guild.icon.url if guild.icon else None)
