"""
driftbottle.services.scoring_service — XP application
======================================================

Applies the numbers from :mod:`driftbottle.engine.scoring` to the store.
XP earned through a community bottle also counts toward that
community's leaderboard via :class:`GuildContribution`.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from driftbottle.database.models import Bottle, GuildContribution, User
from driftbottle.services.user_service import get_or_default_user

logger = logging.getLogger(__name__)


def get_or_create_contribution(session: Session, guild_id: int, user_id: int) -> GuildContribution:
    """Fetch or insert the (guild, user) contribution row."""
    contribution = session.get(GuildContribution, (guild_id, user_id))
    if contribution is None:
        contribution = GuildContribution(guild_id=guild_id, user_id=user_id, xp=0)
        session.add(contribution)
        session.flush()
    return contribution


def credit_user(session: Session, user_id: int, xp: int) -> User:
    """Add *xp* to a user with no community attribution."""
    user = get_or_default_user(session, user_id)
    user.xp += xp
    return user


def give_xp(session: Session, bottle: Bottle, xp: int) -> None:
    """Credit *xp* to the author of *bottle* and to its community, if any."""
    if xp == 0:
        return
    credit_user(session, bottle.user_id, xp)
    if bottle.guild_id is not None:
        contribution = get_or_create_contribution(session, bottle.guild_id, bottle.user_id)
        contribution.xp += xp
    logger.debug("+%d XP to user %d via bottle %s", xp, bottle.user_id, bottle.id)
