"""
driftbottle.services.user_service — Users, bans and admin seeding
==================================================================

Users are created lazily: :func:`get_or_default_user` returns the stored
row or adds a fresh one to the session, so the first scored action of a
member persists them.  Users are never hard-deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from driftbottle.database.engine import get_session
from driftbottle.database.models import Ban, Bottle, User

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def get_or_default_user(session: Session, user_id: int) -> User:
    """Fetch or insert a User row."""
    user = session.get(User, user_id)
    if user is None:
        user = User(id=user_id, admin=False, xp=0, tickets=0)
        session.add(user)
        session.flush()
    return user


def last_bottle(session: Session, user_id: int) -> Bottle | None:
    """The user's most recently pushed bottle."""
    return session.scalar(
        select(Bottle)
        .where(Bottle.user_id == user_id)
        .order_by(Bottle.time_pushed.desc(), Bottle.id.desc())
        .limit(1)
    )


def user_bottle_ids(session: Session, user_id: int) -> list[int]:
    return list(session.scalars(select(Bottle.id).where(Bottle.user_id == user_id)))


# ---------------------------------------------------------------------------
# Bans
# ---------------------------------------------------------------------------
def is_banned(session: Session, user_id: int) -> bool:
    return session.get(Ban, user_id) is not None


def set_ban(session: Session, user_id: int, report_id: int | None = None) -> Ban:
    """Create (or re-link) the Ban row for *user_id*."""
    ban = session.get(Ban, user_id)
    if ban is None:
        ban = Ban(user_id=user_id, report_id=report_id)
        session.add(ban)
    else:
        ban.report_id = report_id
    session.flush()
    logger.info("User %d banned (report=%s)", user_id, report_id)
    return ban


def lift_ban(session: Session, user_id: int) -> bool:
    """Delete the Ban row.  Returns False if the user was not banned."""
    ban = session.get(Ban, user_id)
    if ban is None:
        return False
    session.delete(ban)
    session.flush()
    logger.info("User %d unbanned", user_id)
    return True


# ---------------------------------------------------------------------------
# Engine-level helpers (call via run_db)
# ---------------------------------------------------------------------------
def is_admin(engine: Engine, user_id: int) -> bool:
    with Session(engine) as session:
        user = session.get(User, user_id)
        return bool(user and user.admin)


def ban_user(engine: Engine, user_id: int, report_id: int | None = None) -> None:
    with get_session(engine) as session:
        set_ban(session, user_id, report_id)


def unban_user(engine: Engine, user_id: int) -> bool:
    with get_session(engine) as session:
        return lift_ban(session, user_id)


def list_user_bottles(engine: Engine, user_id: int) -> list[int]:
    with Session(engine) as session:
        return user_bottle_ids(session, user_id)


def seed_admins(engine: Engine, admin_ids: Iterable[int]) -> int:
    """Upsert every id in *admin_ids* with ``admin = True``."""
    count = 0
    with get_session(engine) as session:
        for user_id in admin_ids:
            user = get_or_default_user(session, user_id)
            if not user.admin:
                user.admin = True
                count += 1
    if count:
        logger.info("Seeded %d admin user(s)", count)
    return count
