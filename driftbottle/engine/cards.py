"""
driftbottle.engine.cards — Pure bottle rendering
=================================================

Builds a platform-neutral :class:`BottleCard` from a bottle view plus the
resolved identities of its author and community.  The Discord adapter
turns a card into an embed (:mod:`driftbottle.services.embeds`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from driftbottle.config import BottleConfig
from driftbottle.engine.views import Anonymous, BottleView, Community, Identity

# Colour per chain depth, cycled.
COLOR_WHEEL: tuple[int, ...] = (
    0x5865F2,  # blurple
    0x3498DB,  # blue
    0x1ABC9C,  # teal
    0x1F8B4C,  # dark green
    0x99AAB5,  # greyple
    0xF1C40F,  # gold
    0x992D22,  # dark red
    0xE91E63,  # magenta
)

ROOT_TITLE = "You have recovered a bottle!"
REPLY_TITLE = "You have found a message glued to the bottle!"
DELETED_TITLE = "DELETED"
DELETED_BODY = "This bottle has been deleted."
ANONYMOUS_NAME = "Anonymous"
UNKNOWN_USER_NAME = "Error fetching username"
UNKNOWN_GUILD_NAME = "No guild found"


@dataclass(frozen=True, slots=True)
class BottleCard:
    title: str
    description: str
    color: int
    timestamp: datetime | None = None
    author_name: str | None = None
    author_icon_url: str | None = None
    author_url: str | None = None
    footer_text: str | None = None
    footer_icon_url: str | None = None
    image_url: str | None = None
    url: str | None = None


def color_for_depth(depth: int) -> int:
    return COLOR_WHEEL[depth % len(COLOR_WHEEL)]


def user_url(cfg: BottleConfig, user_id: int) -> str | None:
    return f"{cfg.site_url}/user/{user_id}" if cfg.site_url else None


def guild_url(cfg: BottleConfig, guild_id: int) -> str | None:
    return f"{cfg.site_url}/guild/{guild_id}" if cfg.site_url else None


def report_url(cfg: BottleConfig, bottle_id: int) -> str | None:
    return f"{cfg.site_url}/report/{bottle_id}" if cfg.site_url else None


def _description(bottle: BottleView, cfg: BottleConfig) -> str:
    parts = [bottle.contents] if bottle.contents else []
    if bottle.url and not bottle.contents:
        parts.append(f"[Link]({bottle.url})")
    if isinstance(bottle.origin, Community):
        link = guild_url(cfg, bottle.origin.guild_id)
        if link:
            parts.append(f"[Guild]({link})")
    link = report_url(cfg, bottle.id)
    if link:
        parts.append(f"[Report]({link})")
    return " ".join(parts)


def build_bottle_card(
    bottle: BottleView,
    depth: int,
    cfg: BottleConfig,
    author: Identity | None = None,
    guild: Identity | None = None,
) -> BottleCard:
    """Render *bottle* as it appears at *depth* in its chain.

    *author* and *guild* are ``None`` when the lookup failed; the card then
    falls back to placeholders.  Anonymous bottles never show their author.
    """
    if isinstance(bottle.origin, Anonymous):
        author_name = ANONYMOUS_NAME
        author_icon = cfg.anonymous_avatar_url
        author_link = None
    else:
        author_name = author.name if author else UNKNOWN_USER_NAME
        author_icon = (author.icon_url if author else None) or cfg.anonymous_avatar_url
        author_link = user_url(cfg, bottle.user_id)

    guild_name = guild.name if guild else UNKNOWN_GUILD_NAME

    url = bottle.url or bottle.image

    return BottleCard(
        title=REPLY_TITLE if depth > 0 else ROOT_TITLE,
        description=_description(bottle, cfg),
        color=color_for_depth(depth),
        timestamp=bottle.time_pushed,
        author_name=author_name,
        author_icon_url=author_icon,
        author_url=author_link,
        footer_text=f"{guild_name} · Bottle #{bottle.id}",
        footer_icon_url=guild.icon_url if guild else None,
        image_url=bottle.image,
        url=url,
    )


def deleted_card() -> BottleCard:
    """Placeholder that replaces every rendered copy of a deleted bottle."""
    return BottleCard(title=DELETED_TITLE, description=DELETED_BODY, color=color_for_depth(6))
