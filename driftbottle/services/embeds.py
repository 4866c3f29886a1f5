"""
driftbottle.services.embeds — BottleCard → discord.Embed
=========================================================

All embed construction lives here so the services only deal in
:class:`~driftbottle.engine.cards.BottleCard` values.
"""

from __future__ import annotations

import discord

from driftbottle.engine.cards import BottleCard


def build_bottle_embed(card: BottleCard) -> discord.Embed:
    """Build the Discord embed for a rendered (or deleted) bottle."""
    embed = discord.Embed(
        title=card.title,
        description=card.description,
        color=discord.Color(card.color),
        timestamp=card.timestamp,
        url=card.url,
    )
    if card.author_name:
        embed.set_author(name=card.author_name, url=card.author_url, icon_url=card.author_icon_url)
    if card.footer_text:
        embed.set_footer(text=card.footer_text, icon_url=card.footer_icon_url)
    if card.image_url:
        embed.set_image(url=card.image_url)
    return embed
