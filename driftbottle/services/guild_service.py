"""
driftbottle.services.guild_service — Community configuration
=============================================================

Guild rows are created lazily when a community configures its inbound
channel or invite, and deleted when the bot is removed from it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from driftbottle.database.engine import get_session
from driftbottle.database.models import Guild

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def get_or_default_guild(session: Session, guild_id: int) -> Guild:
    guild = session.get(Guild, guild_id)
    if guild is None:
        guild = Guild(id=guild_id)
        session.add(guild)
        session.flush()
    return guild


def get_bottle_channel(engine: Engine, guild_id: int) -> int | None:
    with Session(engine) as session:
        guild = session.get(Guild, guild_id)
        return guild.bottle_channel_id if guild else None


def set_bottle_channel(engine: Engine, guild_id: int, channel_id: int | None) -> None:
    with get_session(engine) as session:
        get_or_default_guild(session, guild_id).bottle_channel_id = channel_id
    logger.info("Guild %d inbound channel → %s", guild_id, channel_id)


def set_invite(engine: Engine, guild_id: int, invite: str | None) -> None:
    with get_session(engine) as session:
        get_or_default_guild(session, guild_id).invite = invite


def delete_guild(engine: Engine, guild_id: int) -> bool:
    with get_session(engine) as session:
        result = session.execute(delete(Guild).where(Guild.id == guild_id))
        removed = result.rowcount > 0
    if removed:
        logger.info("Guild %d removed", guild_id)
    return removed


def sample_guild_channels(
    engine: Engine,
    limit: int,
    *,
    exclude_guild_id: int | None = None,
    exclude_channel_id: int | None = None,
) -> list[int]:
    """Pick up to *limit* inbound channels uniformly at random.

    The origin community and channel are excluded.
    """
    stmt = select(Guild.bottle_channel_id).where(Guild.bottle_channel_id.is_not(None))
    if exclude_guild_id is not None:
        stmt = stmt.where(Guild.id != exclude_guild_id)
    if exclude_channel_id is not None:
        stmt = stmt.where(Guild.bottle_channel_id != exclude_channel_id)
    stmt = stmt.order_by(func.random()).limit(limit)

    with Session(engine) as session:
        return list(session.scalars(stmt))
