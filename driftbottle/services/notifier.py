"""
driftbottle.services.notifier — Chat platform port
===================================================

The distribution, moderation and report services talk to the chat
platform only through :class:`Notifier`.  The Discord implementation
lives in :mod:`driftbottle.bot.notifier`; tests use a recording fake.

Contract:

* ``send_card`` / ``send_text`` / ``add_reaction`` / ``edit_card`` raise
  :class:`~driftbottle.errors.UpstreamUnavailable` on failure.
* ``resolve_user`` / ``resolve_guild`` return ``None`` instead of raising.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from driftbottle.config import BottleConfig
from driftbottle.engine.cards import BottleCard, build_bottle_card
from driftbottle.engine.views import BottleView, Community, Identity


class Notifier(Protocol):
    """Chat operations required by the core services."""

    async def send_card(self, channel_id: int, card: BottleCard) -> int:
        ...

    async def send_text(self, channel_id: int, text: str) -> int:
        ...

    async def add_reaction(self, channel_id: int, message_id: int, emoji: str) -> None:
        ...

    async def edit_card(self, channel_id: int, message_id: int, card: BottleCard) -> None:
        ...

    async def resolve_user(self, user_id: int) -> Identity | None:
        ...

    async def resolve_guild(self, guild_id: int) -> Identity | None:
        ...


async def render_bottle(
    notifier: Notifier,
    cfg: BottleConfig,
    bottle: BottleView,
    depth: int,
) -> BottleCard:
    """Resolve author and community identities, then build the card."""
    author_lookup = notifier.resolve_user(bottle.user_id)
    if isinstance(bottle.origin, Community):
        author, guild = await asyncio.gather(
            author_lookup, notifier.resolve_guild(bottle.origin.guild_id)
        )
    else:
        author, guild = await author_lookup, None
    return build_bottle_card(bottle, depth, cfg, author=author, guild=guild)
