"""
driftbottle.config — YAML Configuration Loader
===============================================

Reads ``config.yaml`` for everything that is not a secret: the admin
channel, gameplay tuning (cooldown, minimum length, ticket limit, XP
values, fan-out width) and the moderation emoji.  Secrets
(``DISCORD_TOKEN``, ``DATABASE_URL``) stay in the environment.

Usage::

    from driftbottle.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.cooldown_minutes)      # 2
    print(cfg.xp.push)               # 10
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_ANONYMOUS_AVATAR = "https://cdn.discordapp.com/embed/avatars/0.png"


# ---------------------------------------------------------------------------
# XP values per scored action
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class XpConfig:
    """Fixed experience values.  All awards are additive."""

    push: int = 10     # pushing any bottle
    url: int = 5       # bottle carries an external link
    image: int = 15    # bottle carries media
    reply: int = 5     # credited to the replied-to author
    report: int = 5    # first report of a given bottle


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BottleConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Discord
    bot_prefix: str
    admin_channel_id: int  # Where reports are rendered for moderators

    # Submission guard
    cooldown_minutes: int = 2
    min_chars: int = 10
    max_tickets: int = 5
    reply_prefixes: tuple[str, ...] = ("#reply", "#r")

    # Distribution
    deliver_count: int = 3
    max_chain_depth: int = 25
    max_reseed_depth: int = 3

    # Moderation
    ban_emoji: str = "\U0001f528"     # 🔨
    delete_emoji: str = "❌"      # ❌
    admin_user_ids: tuple[int, ...] = ()

    # Rendering
    site_url: str | None = None
    anonymous_avatar_url: str = DEFAULT_ANONYMOUS_AVATAR

    xp: XpConfig = field(default_factory=XpConfig)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BottleConfig:
    """Read *path* and return a :class:`BottleConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return parse_config(raw)


def parse_config(raw: dict) -> BottleConfig:
    """Build a :class:`BottleConfig` from an already-parsed mapping."""
    defaults = BottleConfig(bot_prefix="", admin_channel_id=0)
    xp_raw: dict = raw.get("xp") or {}
    xp_defaults = XpConfig()

    site_url = raw.get("site_url")

    return BottleConfig(
        bot_prefix=raw["bot_prefix"],
        admin_channel_id=int(raw["admin_channel_id"]),
        cooldown_minutes=int(raw.get("cooldown_minutes", defaults.cooldown_minutes)),
        min_chars=int(raw.get("min_chars", defaults.min_chars)),
        max_tickets=int(raw.get("max_tickets", defaults.max_tickets)),
        reply_prefixes=tuple(raw.get("reply_prefixes", defaults.reply_prefixes)),
        deliver_count=int(raw.get("deliver_count", defaults.deliver_count)),
        max_chain_depth=int(raw.get("max_chain_depth", defaults.max_chain_depth)),
        max_reseed_depth=int(raw.get("max_reseed_depth", defaults.max_reseed_depth)),
        ban_emoji=str(raw.get("ban_emoji", defaults.ban_emoji)),
        delete_emoji=str(raw.get("delete_emoji", defaults.delete_emoji)),
        admin_user_ids=tuple(int(uid) for uid in raw.get("admin_user_ids") or ()),
        site_url=site_url.rstrip("/") if site_url else None,
        anonymous_avatar_url=raw.get("anonymous_avatar_url") or defaults.anonymous_avatar_url,
        xp=XpConfig(
            push=int(xp_raw.get("push", xp_defaults.push)),
            url=int(xp_raw.get("url", xp_defaults.url)),
            image=int(xp_raw.get("image", xp_defaults.image)),
            reply=int(xp_raw.get("reply", xp_defaults.reply)),
            report=int(xp_raw.get("report", xp_defaults.report)),
        ),
    )
